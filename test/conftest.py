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
"""Pytest configuration and shared fixtures for the match tool tests.

Fixtures build a throw-away workspace with a minimal version catalog
(mc-versions/data) so that catalog, resolver, registry and walker can be
exercised without network access or a Java runtime:
- CatalogBuilder writes version documents, launcher documents and the manifest
- FakeDownloader stands in for HTTP downloads and records every request
- MatchEnv wires the real components on top of both

Fixture Scopes:
- function: Default, recreated for each test
"""

import os
import sys
import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from matchlib.artifact_resolver import ArtifactResolver
from matchlib.era_utils import era_of
from matchlib.match_registry import MatchRegistry
from matchlib.match_walker import MatchSetup
from matchlib.version_catalog import VersionCatalog
from matchlib.workspace import Workspace


class CatalogBuilder:
    """Writes a minimal mc-versions/data tree."""

    def __init__(self, workspace: str):
        self.workspace = workspace
        self.data_dir = os.path.join(workspace, "mc-versions", "data")
        self.entries: List[Dict[str, str]] = []
        os.makedirs(os.path.join(self.data_dir, "version"), exist_ok=True)
        os.makedirs(os.path.join(self.data_dir, "manifest"), exist_ok=True)
        self.write_manifest()

    def write_manifest(self) -> None:
        with open(os.path.join(self.data_dir, "version_manifest.json"), "w", encoding="utf-8") as f:
            json.dump({"versions": self.entries}, f, indent=2)

    def add_version(
        self,
        version_id: str,
        release_time: str = "2014-01-01T00:00:00+00:00",
        next: Sequence[str] = (),
        release_target: Optional[str] = None,
        client: bool = True,
        server: bool = False,
        shared_mappings: bool = False,
        downloads: Optional[Dict[str, Dict[str, str]]] = None,
        libraries: Sequence[str] = (),
        in_manifest: bool = True,
    ) -> str:
        """Add a version; libraries are maven paths like "org/lwjgl/lwjgl/2.9/lwjgl-2.9.jar"."""
        if downloads is None:
            downloads = {}
            if client:
                downloads["client"] = {"url": f"https://example.invalid/{version_id}/client.jar"}
            if server:
                downloads["server"] = {"url": f"https://example.invalid/{version_id}/server.jar"}
        details: Dict[str, Any] = {
            "id": version_id,
            "releaseTime": release_time,
            "next": list(next),
            "client": client,
            "server": server,
            "sharedMappings": shared_mappings,
            "downloads": downloads,
        }
        if release_target is not None:
            details["releaseTarget"] = release_target
        with open(os.path.join(self.data_dir, "version", version_id + ".json"), "w", encoding="utf-8") as f:
            json.dump(details, f, indent=2)

        if in_manifest:
            launcher = {
                "id": version_id,
                "libraries": [{"name": p, "downloads": {"artifact": {"path": p, "url": f"https://libraries.invalid/{p}"}}} for p in libraries],
            }
            rel = f"manifest/{version_id}.json"
            with open(os.path.join(self.data_dir, rel), "w", encoding="utf-8") as f:
                json.dump(launcher, f, indent=2)
            self.entries.append({"omniId": version_id, "url": rel})
            self.write_manifest()
        return version_id


class FakeDownloader:
    """Download stand-in writing the URL as file content."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.bulk_calls: List[List[Tuple[str, str]]] = []

    def __call__(self, url: str, dest: str) -> bool:
        self.calls.append((url, dest))
        if os.path.exists(dest):
            return False
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        with open(dest, "w", encoding="utf-8") as f:
            f.write(url)
        return True

    def bulk(self, jobs: Sequence[Tuple[str, str]]) -> List[bool]:
        self.bulk_calls.append(list(jobs))
        return [self(url, dest) for url, dest in jobs]

    @property
    def fetched_urls(self) -> List[str]:
        return [url for url, _ in self.calls]


class MatchEnv:
    """Catalog builder plus real components backed by fakes for I/O."""

    def __init__(self, workspace: str):
        self.workspace = workspace
        self.catalog_builder = CatalogBuilder(workspace)
        self.downloader = FakeDownloader()
        self.merges: List[Tuple[str, str, str]] = []

    def add_version(self, version_id: str, **kwargs: Any) -> str:
        return self.catalog_builder.add_version(version_id, **kwargs)

    def _fake_merge(self, client: str, server: str, dest: str) -> None:
        self.merges.append((client, server, dest))
        with open(dest, "w", encoding="utf-8") as f:
            f.write("merged")

    def build(self) -> Workspace:
        catalog = VersionCatalog(self.catalog_builder.data_dir)
        resolver = ArtifactResolver(self.workspace, catalog, downloader=self.downloader, bulk_downloader=self.downloader.bulk, java="java")
        resolver.merge_jars = self._fake_merge  # type: ignore[method-assign]
        registry = MatchRegistry(self.workspace, lambda version_id: era_of(version_id, catalog=catalog))
        setup = MatchSetup(catalog, resolver, registry, self.workspace)
        return Workspace(root=self.workspace, catalog=catalog, resolver=resolver, registry=registry, setup=setup)


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="matchtool_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def workspace(temp_dir: str) -> str:
    """Empty workspace root directory."""
    root = os.path.join(temp_dir, "workspace")
    os.makedirs(root)
    return root


@pytest.fixture
def catalog_builder(workspace: str) -> CatalogBuilder:
    """Catalog builder writing into <workspace>/mc-versions/data."""
    return CatalogBuilder(workspace)


@pytest.fixture
def match_env(workspace: str) -> MatchEnv:
    """Workspace with catalog builder, fake downloads and fake jar merging.

    Dependencies: workspace
    Use for: Resolver, walker and registry tests
    """
    return MatchEnv(workspace)


@pytest.fixture
def offline_downloads(monkeypatch: Any) -> FakeDownloader:
    """Replace the resolver's default downloaders for components built by open_workspace().

    Use for: CLI tests running main()
    """
    downloader = FakeDownloader()
    monkeypatch.setattr("matchlib.artifact_resolver.download_file", downloader)
    monkeypatch.setattr("matchlib.artifact_resolver.download_all", downloader.bulk)
    return downloader


def write_file(path: str, content: str = "") -> str:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


@pytest.fixture
def make_file() -> Any:
    """Helper creating a file (and parent directories) with optional content."""
    return write_file
