#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Resolution of per-side game jars and their libraries in the workspace.

Workspace layout (all relative to the workspace root):
    versions/<id>/<client|server>.jar                                  raw downloads
    libraries/com/mojang/minecraft-<side>/<id>/minecraft-<side>-<id>.jar resolved jars
    libraries/<maven path>                                              libraries and tools

Every step is idempotent: existing files are trusted and reused.
"""

import os
import shutil
import logging
import subprocess
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from matchlib.constants import (
    LIBRARIES_DIR,
    MERGE_JAR_FLAGS,
    PARTIAL_JAR_SUFFIX,
    RAW_JAR_KEYS,
    SIDE_MERGED,
    SIDES,
    STITCH_ARTIFACT,
    STITCH_CLASSIFIER,
    STITCH_GROUP,
    STITCH_MAVEN,
    STITCH_VERSION,
    VERSIONS_DIR,
    ExternalToolError,
    UnexpectedDownloadError,
)
from matchlib.download_utils import MavenTool, download_all, download_file, tool_artifact_path, tool_artifact_url
from matchlib.tool_detection import find_java
from matchlib.version_catalog import VersionCatalog

logger = logging.getLogger(__name__)

STITCH = MavenTool(maven=STITCH_MAVEN, group=STITCH_GROUP, artifact=STITCH_ARTIFACT, version=STITCH_VERSION, classifier=STITCH_CLASSIFIER)

# (url, dest) -> fetched
Downloader = Callable[[str, str], bool]
# [(url, dest), ...] -> [fetched, ...]
BulkDownloader = Callable[[Sequence[Tuple[str, str]]], List[bool]]


def resolved_jar_path(workspace: str, version_id: str, side: str) -> str:
    """Deterministic destination of the resolved jar for (side, version)."""
    name = f"minecraft-{side}"
    return os.path.join(workspace, LIBRARIES_DIR, "com", "mojang", name, version_id, f"{name}-{version_id}.jar")


def raw_jar_path(workspace: str, version_id: str, key: str) -> str:
    return os.path.join(workspace, VERSIONS_DIR, version_id, key + ".jar")


def partial_path(dest: str) -> str:
    """Temporary sibling of dest, written first and renamed onto dest when complete."""
    return dest + PARTIAL_JAR_SUFFIX


def link_or_copy(src: str, dest: str) -> None:
    """Hard-link src to dest, copying when the filesystem refuses links.

    A copy goes through a temporary file, so an interrupted copy never leaves a
    truncated jar at dest.
    """
    try:
        os.link(src, dest)
        return
    except OSError as e:
        logger.debug("Hard link %s -> %s failed (%s), copying", src, dest, e)
    part = partial_path(dest)
    try:
        shutil.copyfile(src, part)
        os.replace(part, dest)
    finally:
        if os.path.exists(part):
            os.remove(part)


class ArtifactResolver:
    """Materializes jars for (version, side) pairs.

    Args:
        workspace: Workspace root directory
        catalog: Version catalog handle
        downloader: Single file download function, defaults to download_utils.download_file
        bulk_downloader: Concurrent download function, defaults to download_utils.download_all
        java: Java command, detected on first merge when not given
    """

    def __init__(
        self,
        workspace: str,
        catalog: VersionCatalog,
        downloader: Optional[Downloader] = None,
        bulk_downloader: Optional[BulkDownloader] = None,
        java: Optional[str] = None,
    ):
        self.workspace = os.path.abspath(workspace)
        self.catalog = catalog
        self.downloader: Downloader = downloader or download_file
        self.bulk_downloader: BulkDownloader = bulk_downloader or download_all
        self._java = java

    def raw_jars(self, version_id: str) -> Dict[str, str]:
        """Ensure the raw jar downloads of a version exist locally.

        Returns:
            Download key ("client"/"server") -> local path

        Raises:
            UnexpectedDownloadError: If a jar download has another key, or there is no jar at all
        """
        version = self.catalog.get_version(version_id)
        files: Dict[str, str] = {}
        for key, url in version.downloads:
            if not url.endswith(".jar"):
                continue
            if key not in RAW_JAR_KEYS:
                raise UnexpectedDownloadError(f"Unexpected jar download '{key}' for {version_id}")
            path = raw_jar_path(self.workspace, version_id, key)
            self.downloader(url, path)
            files[key] = path
        if not files:
            raise UnexpectedDownloadError(f"Expected at least one jar for {version_id}")
        return files

    def resolve_jar(self, version_id: str, side: str) -> Optional[str]:
        """Resolve the jar of a version for one side.

        Returns:
            Path of the resolved jar, or None if this side cannot be produced
            (missing raw jar, or no shared mappings for a merged jar)

        Raises:
            ValueError: For an unknown side
            UnexpectedDownloadError: For an unexpected download manifest
            ExternalToolError: If the merge tool fails
        """
        if side not in SIDES:
            raise ValueError(f"Unknown side '{side}'")

        files = self.raw_jars(version_id)
        dest = resolved_jar_path(self.workspace, version_id, side)
        if os.path.exists(dest):
            return dest

        if side == SIDE_MERGED:
            version = self.catalog.get_version(version_id)
            client = files.get("client")
            server = files.get("server")
            if not client or not server or not version.shared_mappings:
                logger.debug("No merged jar for %s (client=%s, server=%s, shared=%s)", version_id, bool(client), bool(server), version.shared_mappings)
                return None
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            self.merge_jars(client, server, dest)
        else:
            raw = files.get(side)
            if not raw:
                logger.debug("No %s jar for %s", side, version_id)
                return None
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            link_or_copy(raw, dest)
        return dest

    def resolve_libraries(self, launcher_info: Dict[str, Any]) -> List[str]:
        """Ensure every library artifact of a launcher document exists locally.

        Returns:
            Local library paths in declaration order
        """
        files: List[str] = []
        jobs: List[Tuple[str, str]] = []
        for lib in launcher_info.get("libraries") or []:
            downloads = lib.get("downloads") if isinstance(lib, dict) else None
            if not downloads:
                continue
            artifact = downloads.get("artifact")
            if not artifact or not artifact.get("path") or not artifact.get("url"):
                continue
            path = os.path.join(self.workspace, LIBRARIES_DIR, *artifact["path"].split("/"))
            if path in files:
                continue
            files.append(path)
            jobs.append((artifact["url"], path))
        self.bulk_downloader(jobs)
        return files

    def get_tool(self, tool: MavenTool) -> str:
        path = os.path.join(self.workspace, LIBRARIES_DIR, *tool_artifact_path(tool).split("/"))
        self.downloader(tool_artifact_url(tool), path)
        return path

    @property
    def java(self) -> str:
        if self._java is None:
            tool_info = find_java()
            if not tool_info.is_found():
                raise ExternalToolError(tool_info.error_message or "java not found")
            self._java = tool_info.command
        return self._java  # type: ignore[return-value]

    def merge_jars(self, client: str, server: str, dest: str) -> None:
        """Merge a client and server jar with stitch.

        stitch writes to a temporary sibling of dest that is renamed into place
        only after a successful run. dest therefore either holds a complete jar
        or does not exist, also when the run is interrupted.

        Raises:
            ExternalToolError: If java is missing, stitch exits non-zero or writes no jar
        """
        part = partial_path(dest)
        cmd = [self.java, "-jar", self.get_tool(STITCH), "mergeJar", client, server, part, *MERGE_JAR_FLAGS]
        logger.info("Merging %s + %s -> %s", os.path.basename(client), os.path.basename(server), dest)
        try:
            try:
                result = subprocess.run(cmd, check=False)
            except OSError as e:
                raise ExternalToolError(f"Cannot run {cmd[0]}: {e}") from e
            if result.returncode != 0:
                raise ExternalToolError(f"mergeJar failed with exit code {result.returncode} for {dest}")
            if not os.path.exists(part):
                raise ExternalToolError(f"mergeJar produced no output for {dest}")
            os.replace(part, dest)
        finally:
            if os.path.exists(part):
                os.remove(part)
