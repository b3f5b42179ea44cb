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
"""Era classification of versions.

An era is a coarse historical bucket ("pre-classic", "alpha", "1.12", ...) used to
group match records on disk and versions for display.
"""

import re
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from matchlib.constants import ERA_ORDER, ERA_PREFIXES, SIDE_CLIENT, SIDE_MERGED, SIDE_SERVER
from matchlib.version_catalog import Version, VersionCatalog

logger = logging.getLogger(__name__)

RE_MAJOR_MINOR = re.compile(r"^(\d+\.\d+)")


def era_from_prefix(version_id: str) -> Optional[str]:
    """Return the era of a version id from the prefix table, or None."""
    for prefix, era in ERA_PREFIXES:
        if version_id.startswith(prefix):
            return era
    return None


def era_of(version_id: str, version: Optional[Version] = None, catalog: Optional[VersionCatalog] = None) -> Optional[str]:
    """Classify a version into its era.

    The prefix table is consulted first. Otherwise the release target decides:
    "1.12.2" style targets collapse to "1.12", anything else is returned as is.

    Args:
        version_id: Version identifier
        version: Details of the version, if already loaded
        catalog: Catalog to load the details from when version is not given

    Returns:
        Era label, or None when neither prefix nor release target is available
    """
    era = era_from_prefix(version_id)
    if era is not None:
        return era

    if version is None and catalog is not None:
        version = catalog.find_version(version_id)
    if version is None:
        logger.debug("No details for %s, era unknown", version_id)
        return None

    release_target = version.release_target
    if release_target:
        m = RE_MAJOR_MINOR.match(release_target)
        if m:
            return m.group(1)
    return release_target


def _minor(era: str) -> Optional[int]:
    try:
        return int(era[2:])
    except ValueError:
        return None


def compare_eras(a: str, b: str) -> int:
    """Compare two era labels for display ordering (cmp style).

    Named eras come first in historical order, then "1.x" eras by minor number,
    then everything else lexically.
    """
    a_index = ERA_ORDER.index(a) if a in ERA_ORDER else -1
    b_index = ERA_ORDER.index(b) if b in ERA_ORDER else -1
    if a_index >= 0 and b_index >= 0 and a_index != b_index:
        return a_index - b_index
    if a_index >= 0 and b_index < 0:
        return -1
    if a_index < 0 and b_index >= 0:
        return 1
    if a.startswith("1.") and b.startswith("1."):
        minor_a = _minor(a)
        minor_b = _minor(b)
        if minor_a is not None and minor_b is not None and minor_a != minor_b:
            return minor_a - minor_b
    return (a > b) - (a < b)


def sides_for(version: Version) -> List[str]:
    """Sides under which a version takes part in matches."""
    if version.client and version.server and version.shared_mappings:
        return [SIDE_MERGED]
    sides = []
    if version.client:
        sides.append(SIDE_CLIENT)
    if version.server:
        sides.append(SIDE_SERVER)
    return sides


def group_versions_by_era(versions: Iterable[Version]) -> Dict[str, List[str]]:
    """Group versions by era as "<side>-<id>" keys, keeping input order.

    Versions without an era are grouped under "unknown".
    """
    by_era: Dict[str, List[str]] = defaultdict(list)
    for version in versions:
        era = era_of(version.id, version) or "unknown"
        for side in sides_for(version):
            by_era[era].append(f"{side}-{version.id}")
    return dict(by_era)
