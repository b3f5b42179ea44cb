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
"""HTTP download helpers for jars, libraries and tool artifacts.

Downloads are cached by destination-file existence: once a file is present it is
trusted and never fetched again. Bodies are streamed to a temporary ".part" file
and renamed into place, so an interrupted download never leaves a truncated file
behind that would later be trusted.
"""

import os
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from urllib.parse import urljoin

import urllib3

from matchlib.constants import DEFAULT_DOWNLOAD_WORKERS, DOWNLOAD_CHUNK_SIZE, DownloadError

logger = logging.getLogger(__name__)

_http: Optional[urllib3.PoolManager] = None


def get_pool_manager() -> urllib3.PoolManager:
    global _http
    if _http is None:
        _http = urllib3.PoolManager()
    return _http


@dataclass(frozen=True)
class MavenTool:
    """A tool jar published to a maven repository.

    Attributes:
        maven: Repository base URL (e.g., "https://maven.fabricmc.net/")
        group: Group id (e.g., "net.fabricmc")
        artifact: Artifact id (e.g., "stitch")
        version: Artifact version
        classifier: Optional classifier (e.g., "all")
    """

    maven: str
    group: str
    artifact: str
    version: str
    classifier: Optional[str] = None


def tool_artifact_path(tool: MavenTool) -> str:
    """Maven-relative path of a tool jar.

    Example:
        net.fabricmc:stitch:0.6.1:all -> net/fabricmc/stitch/0.6.1/stitch-0.6.1-all.jar
    """
    suffix = f"-{tool.classifier}" if tool.classifier else ""
    group_path = tool.group.replace(".", "/")
    return f"{group_path}/{tool.artifact}/{tool.version}/{tool.artifact}-{tool.version}{suffix}.jar"


def tool_artifact_url(tool: MavenTool) -> str:
    return urljoin(tool.maven, tool_artifact_path(tool))


def download_file(url: str, dest: str) -> bool:
    """Download url to dest unless dest already exists.

    Args:
        url: Source URL
        dest: Destination file path

    Returns:
        True if the file was fetched, False if it already existed

    Raises:
        DownloadError: On a non-200 response or a transport failure
    """
    if os.path.exists(dest):
        return False

    logger.info("Downloading %s", url)
    os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
    part = dest + ".part"
    try:
        resp = get_pool_manager().request("GET", url, preload_content=False)
    except urllib3.exceptions.HTTPError as e:
        raise DownloadError(f"Cannot fetch {url}: {e}") from e

    try:
        if resp.status != 200:
            raise DownloadError(f"Cannot fetch {url}: HTTP {resp.status}")
        with open(part, "wb") as f:
            for chunk in resp.stream(DOWNLOAD_CHUNK_SIZE):
                f.write(chunk)
        os.replace(part, dest)
    except urllib3.exceptions.HTTPError as e:
        raise DownloadError(f"Download of {url} failed: {e}") from e
    finally:
        resp.release_conn()
        if os.path.exists(part):
            os.remove(part)

    logger.debug("Saved %s", dest)
    return True


def download_all(jobs: Sequence[Tuple[str, str]], max_workers: int = DEFAULT_DOWNLOAD_WORKERS) -> List[bool]:
    """Download several (url, dest) pairs concurrently.

    Jobs must target distinct destinations. Every job runs to completion before
    the first failure (in job order) is re-raised.

    Returns:
        One fetched flag per job, in job order
    """
    if not jobs:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(jobs)))) as executor:
        futures: List[Future[bool]] = [executor.submit(download_file, url, dest) for url, dest in jobs]

    results = []
    for (url, _), future in zip(jobs, futures):
        error = future.exception()
        if error is not None:
            logger.error("Download failed: %s (%s)", url, error)
            raise error
        results.append(future.result())
    return results
