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
"""On-disk registry of match records.

Layout:
    matches/<bucket>/[<era>/]<prefixA><versionA>#<prefixB><versionB>.match

The bucket is the side name when both sides agree, otherwise "cross". Only in the
cross bucket are version ids prefixed with "<side>-". The era is the era of
version B and is left out when it cannot be determined.
"""

import os
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, TypeVar
from dataclasses import dataclass

from matchlib.constants import (
    CROSS_BUCKET,
    MATCH_FILE_SUFFIX,
    MATCH_HEADER,
    MATCH_PLACEHOLDER,
    MATCH_SEPARATOR,
    MATCHES_DIR,
    NON_OBF_CUTOFF,
    NON_OBF_EXEMPT_PREFIX,
    NON_OBF_KINDS,
    NON_OBF_PATTERN,
    SIDES,
)
from matchlib.version_catalog import Version

logger = logging.getLogger(__name__)

T = TypeVar("T")

# version id -> era (or None)
EraLookup = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class MatchKey:
    """Directional match between (side_a, version_a) and (side_b, version_b)."""

    side_a: str
    version_a: str
    side_b: str
    version_b: str

    @property
    def bucket(self) -> str:
        return self.side_a if self.side_a == self.side_b else CROSS_BUCKET

    @property
    def filename(self) -> str:
        if self.bucket == CROSS_BUCKET:
            a = f"{self.side_a}-{self.version_a}"
            b = f"{self.side_b}-{self.version_b}"
        else:
            a, b = self.version_a, self.version_b
        return f"{a}{MATCH_SEPARATOR}{b}{MATCH_FILE_SUFFIX}"

    def __str__(self) -> str:
        return f"{self.side_a}-{self.version_a} → {self.side_b}-{self.version_b}"


@dataclass(frozen=True)
class MatchRecordRef:
    """A match record found on disk.

    Attributes:
        key: Match key reconstructed from bucket and file name
        path: Absolute path of the record
        bucket: Bucket directory name
        era: Era directory name, or None for records directly under the bucket
    """

    key: MatchKey
    path: str
    bucket: str
    era: Optional[str]


def split_side_and_version(name: str) -> Tuple[Optional[str], str]:
    """Split a "<side>-<version>" name, returning (None, name) when unprefixed."""
    for side in SIDES:
        if name.startswith(side + "-"):
            return side, name[len(side) + 1 :]
    return None, name


def parse_match_filename(bucket: str, filename: str) -> Optional[MatchKey]:
    """Reconstruct the match key of a record file name inside a bucket.

    Returns:
        MatchKey, or None if the name is not a well-formed record name
    """
    if not filename.endswith(MATCH_FILE_SUFFIX):
        return None
    stem = filename[: -len(MATCH_FILE_SUFFIX)]
    parts = stem.split(MATCH_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    a, b = parts
    if bucket == CROSS_BUCKET:
        side_a, version_a = split_side_and_version(a)
        side_b, version_b = split_side_and_version(b)
        if side_a is None or side_b is None:
            return None
        return MatchKey(side_a, version_a, side_b, version_b)
    return MatchKey(bucket, a, bucket, b)


def compute_shared(a: Sequence[T], b: Sequence[T]) -> Tuple[List[T], List[T], List[T]]:
    """Split two collections into (shared, only in a, only in b).

    Order follows first appearance across a then b; duplicates are dropped.
    """
    set_a = set(a)
    set_b = set(b)
    shared: List[T] = []
    only_a: List[T] = []
    only_b: List[T] = []
    seen: Set[T] = set()
    for e in list(a) + list(b):
        if e in seen:
            continue
        seen.add(e)
        if e in set_a and e in set_b:
            shared.append(e)
        elif e in set_a:
            only_a.append(e)
        else:
            only_b.append(e)
    return shared, only_a, only_b


def has_non_obfuscated_libraries(version: Version) -> bool:
    """True if a release predates the cutoff and is not part of the 1.5 line."""
    return version.release_time < NON_OBF_CUTOFF and not version.id.startswith(NON_OBF_EXEMPT_PREFIX)


def format_match_record(
    jar_a: str,
    jar_b: str,
    shared: Iterable[str],
    libs_a: Iterable[str],
    libs_b: Iterable[str],
    version_a: Version,
    version_b: Version,
) -> str:
    """Render the text of a new match record."""
    lines = [MATCH_HEADER]
    lines += ["\ta:", f"\t\t{os.path.basename(jar_a)}"]
    lines += ["\tb:", f"\t\t{os.path.basename(jar_b)}"]
    lines.append("\tcp:")
    lines += [f"\t\t{os.path.basename(cp)}" for cp in shared]
    lines.append("\tcp a:")
    lines += [f"\t\t{os.path.basename(cp)}" for cp in libs_a]
    lines.append("\tcp b:")
    lines += [f"\t\t{os.path.basename(cp)}" for cp in libs_b]
    for kind in NON_OBF_KINDS:
        for side, version in (("a", version_a), ("b", version_b)):
            if has_non_obfuscated_libraries(version):
                lines.append(f"\tnon-obf {kind} {side}\t{NON_OBF_PATTERN}")
    lines += [MATCH_PLACEHOLDER, ""]
    return "\n".join(lines)


class MatchRegistry:
    """The set of match records under <workspace>/matches.

    Args:
        workspace: Workspace root directory
        era_lookup: Function mapping a version id to its era (or None)
    """

    def __init__(self, workspace: str, era_lookup: EraLookup):
        self.root = os.path.join(os.path.abspath(workspace), MATCHES_DIR)
        self.era_lookup = era_lookup

    def path_for(self, key: MatchKey) -> str:
        era = self.era_lookup(key.version_b)
        parts = [self.root, key.bucket]
        if era:
            parts.append(era)
        return os.path.join(*parts, key.filename)

    def exists(self, key: MatchKey) -> bool:
        return os.path.exists(self.path_for(key))

    def create(
        self,
        key: MatchKey,
        jar_a: str,
        jar_b: str,
        shared: Iterable[str],
        libs_a: Iterable[str],
        libs_b: Iterable[str],
        version_a: Version,
        version_b: Version,
    ) -> str:
        """Write a new match record.

        Existing records are edited by hand and are never replaced.

        Returns:
            Path of the written record

        Raises:
            FileExistsError: If the record already exists
        """
        path = self.path_for(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "x", encoding="utf-8", newline="\n") as f:
            f.write(format_match_record(jar_a, jar_b, shared, libs_a, libs_b, version_a, version_b))
        logger.info("Created match %s", os.path.relpath(path, os.path.dirname(self.root)))
        return path

    def _record_ref(self, bucket: str, era: Optional[str], path: str) -> Optional[MatchRecordRef]:
        key = parse_match_filename(bucket, os.path.basename(path))
        if key is None:
            logger.warning("Ignoring malformed match file name: %s", path)
            return None
        return MatchRecordRef(key=key, path=path, bucket=bucket, era=era)

    def iter_records(self) -> Iterator[MatchRecordRef]:
        """Yield every match record in sorted order.

        Records may sit in an era directory or directly inside the bucket.
        """
        if not os.path.isdir(self.root):
            return
        for bucket in sorted(os.listdir(self.root)):
            bucket_dir = os.path.join(self.root, bucket)
            if not os.path.isdir(bucket_dir):
                continue
            if bucket not in SIDES and bucket != CROSS_BUCKET:
                logger.debug("Skipping unknown bucket %s", bucket)
                continue
            for entry in sorted(os.listdir(bucket_dir)):
                entry_path = os.path.join(bucket_dir, entry)
                if not os.path.isdir(entry_path):
                    if entry.endswith(MATCH_FILE_SUFFIX):
                        ref = self._record_ref(bucket, None, entry_path)
                        if ref is not None:
                            yield ref
                    continue
                for name in sorted(os.listdir(entry_path)):
                    if not name.endswith(MATCH_FILE_SUFFIX):
                        continue
                    ref = self._record_ref(bucket, entry, os.path.join(entry_path, name))
                    if ref is not None:
                        yield ref

    def scan_versions(self) -> Set[Tuple[str, str]]:
        """Every (side, version) mentioned by an existing record."""
        versions: Set[Tuple[str, str]] = set()
        for ref in self.iter_records():
            versions.add((ref.key.side_a, ref.key.version_a))
            versions.add((ref.key.side_b, ref.key.version_b))
        return versions
