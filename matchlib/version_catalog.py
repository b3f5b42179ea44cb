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
"""Read-only access to the version catalog (mc-versions data checkout).

The catalog consists of:
    - version_manifest.json: every known version with its omniId and the relative
      path of its launcher document
    - version/<id>.json: per-version details (release time, successors, release
      target, side availability, downloads)

A VersionCatalog instance is passed explicitly to every component that needs
version data; nothing in matchlib keeps catalog state at module level.
"""

import os
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass

import networkx as nx

from matchlib.constants import CATALOG_MANIFEST, CATALOG_VERSION_DIR, CatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Version:
    """Details of a single version as stored in version/<id>.json.

    Attributes:
        id: Globally unique version identifier
        release_time: ISO 8601 release timestamp
        next: Successor identifiers in the release graph
        release_target: Coarse version family hint (e.g. "1.12"), may be None
        client: True if a client jar exists
        server: True if a server jar exists
        shared_mappings: True if client and server share one obfuscation mapping
        downloads: (download key, URL) pairs in document order, e.g. ("client", "https://.../client.jar")
    """

    id: str
    release_time: str = ""
    next: Tuple[str, ...] = ()
    release_target: Optional[str] = None
    client: bool = False
    server: bool = False
    shared_mappings: bool = False
    downloads: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Version":
        """Build a Version from a parsed version/<id>.json document."""
        downloads = tuple(
            (key, download["url"]) for key, download in (data.get("downloads") or {}).items() if isinstance(download, dict) and download.get("url")
        )
        return cls(
            id=data["id"],
            release_time=data.get("releaseTime", ""),
            next=tuple(data.get("next") or ()),
            release_target=data.get("releaseTarget"),
            client=bool(data.get("client", False)),
            server=bool(data.get("server", False)),
            shared_mappings=bool(data.get("sharedMappings", False)),
            downloads=downloads,
        )


def _read_json(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e


class VersionCatalog:
    """Read-only handle on a version catalog directory.

    Documents are loaded lazily and cached for the lifetime of the handle.
    """

    def __init__(self, data_dir: str):
        self.data_dir = os.path.abspath(data_dir)
        self._manifest: Optional[Dict[str, Any]] = None
        self._manifest_index: Dict[str, Dict[str, Any]] = {}
        self._versions: Dict[str, Version] = {}

    @property
    def version_dir(self) -> str:
        return os.path.join(self.data_dir, CATALOG_VERSION_DIR)

    def load_manifest(self) -> Dict[str, Any]:
        """Load version_manifest.json.

        Raises:
            CatalogError: If the manifest is missing or malformed
        """
        if self._manifest is None:
            manifest = _read_json(os.path.join(self.data_dir, CATALOG_MANIFEST))
            if not isinstance(manifest, dict) or not isinstance(manifest.get("versions"), list):
                raise CatalogError(f"Malformed manifest in {self.data_dir}: missing 'versions' list")
            self._manifest = manifest
            self._manifest_index = {}
            for entry in manifest["versions"]:
                omni_id = entry.get("omniId")
                if omni_id and omni_id not in self._manifest_index:
                    self._manifest_index[omni_id] = entry
            logger.debug("Loaded manifest with %d versions", len(self._manifest_index))
        return self._manifest

    def get_version(self, version_id: str) -> Version:
        """Load the details document of a version.

        Raises:
            CatalogError: If version/<id>.json is missing or malformed
        """
        cached = self._versions.get(version_id)
        if cached is not None:
            return cached
        data = _read_json(os.path.join(self.version_dir, version_id + ".json"))
        try:
            version = Version.from_json(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise CatalogError(f"Malformed version document for {version_id}: {e}") from e
        self._versions[version_id] = version
        return version

    def find_version(self, version_id: str) -> Optional[Version]:
        """Like get_version(), but returns None for unknown versions."""
        try:
            return self.get_version(version_id)
        except CatalogError as e:
            logger.debug("%s", e)
            return None

    def successors(self, version_id: str) -> Tuple[str, ...]:
        return self.get_version(version_id).next

    def get_launcher_info(self, version_id: str) -> Optional[Dict[str, Any]]:
        """Load the launcher document (libraries, downloads) of a version.

        Returns:
            Parsed launcher document, or None if the manifest does not list the version
        """
        self.load_manifest()
        entry = self._manifest_index.get(version_id)
        if entry is None or not entry.get("url"):
            logger.error("%s not found", version_id)
            return None
        info = _read_json(os.path.join(self.data_dir, entry["url"]))
        if not isinstance(info, dict):
            raise CatalogError(f"Malformed launcher document for {version_id}")
        return info

    def all_versions(self) -> List[Version]:
        """Load every document in version/, sorted by release time."""
        if not os.path.isdir(self.version_dir):
            raise CatalogError(f"Catalog version directory not found: {self.version_dir}")
        versions = []
        for name in sorted(os.listdir(self.version_dir)):
            if not name.endswith(".json"):
                continue
            path = os.path.join(self.version_dir, name)
            if not os.path.isfile(path):
                continue
            versions.append(self.get_version(name[: -len(".json")]))
        versions.sort(key=lambda v: v.release_time)
        return versions

    def succession_graph(self) -> "nx.DiGraph[str]":
        """Build the version succession graph (version -> next version edges).

        Successor pointers to versions without a document still produce a node,
        flagged with known=False.
        """
        versions = self.all_versions()
        G: nx.DiGraph[str] = nx.DiGraph()
        for version in versions:
            G.add_node(version.id, known=True, release_time=version.release_time)
        for version in versions:
            for nxt in version.next:
                if nxt not in G:
                    G.add_node(nxt, known=False, release_time="")
                G.add_edge(version.id, nxt)
        return G
