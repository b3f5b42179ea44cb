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
"""Discovery of version pairs that still need a match record.

The walker does a breadth-first traversal of the version succession graph,
starting from the earliest known client and server versions. For every edge
(current -> next) it tries the side combinations of MATCH_CANDIDATES in priority
order and stops at the first combination that is viable, whether or not that
combination produced a new record (it may already exist).

Two stopping modes share the same step logic:
    - WalkMode.NEXT: stop after the first newly created record
    - WalkMode.ALL: cover the whole reachable graph

A failure while setting up one pair is logged and recorded, never fatal for the
traversal.
"""

import os
import logging
from collections import deque
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Set, Tuple
from dataclasses import dataclass, field

from matchlib.artifact_resolver import ArtifactResolver
from matchlib.constants import (
    CURRENT_MATCH_FILE,
    DEFAULT_ROOTS,
    MATCH_CANDIDATES,
    SIDE_SERVER,
    CatalogError,
    MatchToolError,
)
from matchlib.match_registry import MatchKey, MatchRegistry, compute_shared
from matchlib.version_catalog import VersionCatalog

logger = logging.getLogger(__name__)

# Failures that only affect the pair being set up
PAIR_ERRORS = (MatchToolError, OSError, ValueError)


class WalkMode(Enum):
    NEXT = "next"
    ALL = "all"


class SetupOutcome(NamedTuple):
    """Result of trying one side combination for a version pair.

    Attributes:
        can_create: Both jars are available (or the pair is filtered out / already recorded)
        did_create: A new record was written
    """

    can_create: bool
    did_create: bool


@dataclass(frozen=True)
class PairError:
    version_a: str
    version_b: Optional[str]
    message: str


@dataclass
class WalkResult:
    """Outcome of a traversal.

    Attributes:
        created: Newly created match keys, in creation order
        visited: Versions whose successors were examined, in visit order
        errors: Pairs (or nodes) that failed and were skipped
    """

    created: List[MatchKey] = field(default_factory=list)
    visited: List[str] = field(default_factory=list)
    errors: List[PairError] = field(default_factory=list)


@dataclass
class RefreshResult:
    refreshed: List[Tuple[str, str]] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    errors: List[PairError] = field(default_factory=list)


class MatchSetup:
    """Creates match records for version pairs.

    Args:
        catalog: Version catalog handle
        resolver: Artifact resolver for jars and libraries
        registry: Match record registry
        workspace: Workspace root, receives current.txt
    """

    def __init__(self, catalog: VersionCatalog, resolver: ArtifactResolver, registry: MatchRegistry, workspace: str):
        self.catalog = catalog
        self.resolver = resolver
        self.registry = registry
        self.workspace = os.path.abspath(workspace)

    def setup_match(self, key: MatchKey, era: Optional[str] = None) -> SetupOutcome:
        """Create the record for one side combination if it is missing and possible.

        Args:
            key: Match to set up
            era: Only create records whose version B falls in this era

        Returns:
            SetupOutcome(can_create, did_create)
        """
        if era and self.registry.era_lookup(key.version_b) != era:
            return SetupOutcome(True, False)

        if self.registry.exists(key):
            logger.debug("Match %s already exists", key)
            return SetupOutcome(True, False)

        jar_a = self.resolver.resolve_jar(key.version_a, key.side_a)
        jar_b = self.resolver.resolve_jar(key.version_b, key.side_b)
        info_a = self.catalog.get_launcher_info(key.version_a)
        info_b = self.catalog.get_launcher_info(key.version_b)
        if not jar_a or not jar_b or info_a is None or info_b is None:
            return SetupOutcome(False, False)

        libraries_a = [] if key.side_a == SIDE_SERVER else self.resolver.resolve_libraries(info_a)
        libraries_b = [] if key.side_b == SIDE_SERVER else self.resolver.resolve_libraries(info_b)
        shared, libs_a, libs_b = compute_shared(libraries_a, libraries_b)
        logger.debug("%s: %s", jar_a, libs_a)
        logger.debug("%s: %s", jar_b, libs_b)
        logger.debug("shared: %s", shared)

        self.registry.create(
            key,
            jar_a,
            jar_b,
            shared,
            libs_a,
            libs_b,
            self.catalog.get_version(key.version_a),
            self.catalog.get_version(key.version_b),
        )
        self._write_current(key)
        return SetupOutcome(True, True)

    def setup_any_match(self, version_a: str, version_b: str, era: Optional[str] = None) -> Optional[MatchKey]:
        """Set up the highest priority viable side combination for a pair.

        Returns:
            The newly created key, or None if nothing was created
        """
        for side_a, side_b in MATCH_CANDIDATES:
            key = MatchKey(side_a, version_a, side_b, version_b)
            outcome = self.setup_match(key, era)
            if outcome.did_create:
                return key
            if outcome.can_create:
                break
        return None

    def walk(self, roots: Iterable[str] = DEFAULT_ROOTS, mode: WalkMode = WalkMode.NEXT, era: Optional[str] = None) -> WalkResult:
        """Traverse the succession graph and create missing records.

        Args:
            roots: Versions to start from
            mode: WalkMode.NEXT stops after the first created record, WalkMode.ALL does not
            era: Only create records whose version B falls in this era

        Returns:
            WalkResult describing what was created, visited and skipped
        """
        result = WalkResult()
        frontier = deque(roots)
        visited: Set[str] = set()

        while frontier:
            current = frontier.popleft()
            if current in visited:
                continue
            visited.add(current)
            result.visited.append(current)

            try:
                successors = self.catalog.successors(current)
            except CatalogError as e:
                logger.warning("Skipping %s: %s", current, e)
                result.errors.append(PairError(current, None, str(e)))
                continue

            for nxt in successors:
                try:
                    created = self.setup_any_match(current, nxt, era)
                except PAIR_ERRORS as e:
                    logger.error("Cannot set up %s → %s: %s", current, nxt, e)
                    result.errors.append(PairError(current, nxt, str(e)))
                    created = None
                if created is not None:
                    result.created.append(created)
                    if mode is WalkMode.NEXT:
                        return result
                frontier.append(nxt)

        return result

    def refresh(self) -> RefreshResult:
        """Re-resolve jars and libraries for every version named by a record.

        Record contents are never touched; this only repopulates the derived
        jar and library caches of a fresh checkout.
        """
        result = RefreshResult()
        for side, version_id in sorted(self.registry.scan_versions()):
            logger.info("Refreshing %s %s", version_id, side)
            try:
                info = self.catalog.get_launcher_info(version_id)
                if info is None:
                    result.skipped.append((side, version_id))
                    continue
                self.resolver.resolve_jar(version_id, side)
                if side != SIDE_SERVER:
                    self.resolver.resolve_libraries(info)
            except PAIR_ERRORS as e:
                logger.error("Cannot refresh %s %s: %s", side, version_id, e)
                result.errors.append(PairError(version_id, None, str(e)))
                continue
            result.refreshed.append((side, version_id))
        return result

    def _write_current(self, key: MatchKey) -> None:
        path = os.path.join(self.workspace, CURRENT_MATCH_FILE)
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"Current Match: {key.version_a} → {key.version_b}")
