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
"""Shared constants for the match tools.

This module provides centralized constants used across the match setup and
reporting tools so that directory names, side names and the candidate order
stay consistent between them.
"""

from typing import Tuple

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Workspace Layout
# =============================================================================

MATCHES_DIR = "matches"  # Root of the match record tree
VERSIONS_DIR = "versions"  # Raw per-version downloads (versions/<id>/<key>.jar)
LIBRARIES_DIR = "libraries"  # Maven style library cache
CATALOG_DIR = "mc-versions/data"  # Version catalog checkout, relative to the workspace
CATALOG_MANIFEST = "version_manifest.json"  # Manifest listing every version document
CATALOG_VERSION_DIR = "version"  # Per-version detail documents (<id>.json)
CURRENT_MATCH_FILE = "current.txt"  # Last created match, for the operator
MATCH_FILE_SUFFIX = ".match"
MATCH_SEPARATOR = "#"
PARTIAL_JAR_SUFFIX = ".part.jar"  # Jars being merged or copied, renamed into place when complete

# =============================================================================
# Sides
# =============================================================================

SIDE_CLIENT = "client"
SIDE_SERVER = "server"
SIDE_MERGED = "merged"
SIDES: Tuple[str, ...] = (SIDE_CLIENT, SIDE_SERVER, SIDE_MERGED)
RAW_JAR_KEYS: Tuple[str, ...] = (SIDE_CLIENT, SIDE_SERVER)

CROSS_BUCKET = "cross"  # Bucket for matches between two different sides

# Side combinations tried for a version pair, highest priority first
MATCH_CANDIDATES: Tuple[Tuple[str, str], ...] = (
    (SIDE_MERGED, SIDE_MERGED),
    (SIDE_CLIENT, SIDE_MERGED),
    (SIDE_CLIENT, SIDE_CLIENT),
    (SIDE_SERVER, SIDE_MERGED),
    (SIDE_SERVER, SIDE_SERVER),
)

# Earliest known client and server versions of the succession graph
DEFAULT_ROOTS: Tuple[str, ...] = ("rd-132211-launcher", "server-c1.2")

# =============================================================================
# Eras
# =============================================================================

# Ordered prefix table, first match wins ("inf" must precede "in")
ERA_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("inf", "infdev"),
    ("in", "indev"),
    ("af", "april-fools"),
    ("a", "alpha"),
    ("server-a", "alpha"),
    ("b", "beta"),
    ("combat", "combat"),
    ("c", "classic"),
    ("server-c", "classic"),
    ("rd", "pre-classic"),
)

# Display order of the named eras, numbered eras sort after these
ERA_ORDER: Tuple[str, ...] = ("pre-classic", "classic", "indev", "infdev", "alpha", "beta")

# =============================================================================
# Match Record Format
# =============================================================================

MATCH_HEADER = "Matches saved auto-generated"
MATCH_PLACEHOLDER = "c\tLdummy;\tLdummy;"
NON_OBF_CUTOFF = "2013-04-18"  # Releases before this ship non-obfuscated libraries
NON_OBF_EXEMPT_PREFIX = "1.5"
NON_OBF_KINDS: Tuple[str, ...] = ("cls", "mem")
NON_OBF_PATTERN = "paulscode|jcraft"

# Weights of classes, methods, fields and method arguments in the overall progress
STATUS_WEIGHTS: Tuple[float, ...] = (2.0, 1.0, 1.0, 0.25)

# =============================================================================
# External Tools
# =============================================================================

STITCH_MAVEN = "https://maven.fabricmc.net/"
STITCH_GROUP = "net.fabricmc"
STITCH_ARTIFACT = "stitch"
STITCH_VERSION = "0.6.1"
STITCH_CLASSIFIER = "all"
MERGE_JAR_FLAGS: Tuple[str, ...] = ("--removeSnowman", "--syntheticparams")

# Timeouts (seconds)
JAVA_VERSION_TIMEOUT = 10  # Timeout for "java -version" detection

# Parallel downloads
DEFAULT_DOWNLOAD_WORKERS = 8
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# =============================================================================
# Exception Classes
# =============================================================================


class MatchToolError(Exception):
    """Base exception for all match tool errors.

    All match tool exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(MatchToolError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class CatalogError(MatchToolError):
    """Raised when the version catalog or one of its documents cannot be read."""


class UnexpectedDownloadError(MatchToolError):
    """Raised when a version declares jar downloads that cannot be classified."""


class DownloadError(MatchToolError):
    """Raised when an HTTP download fails."""


# External tool errors
class ExternalToolError(MatchToolError):
    """Raised when external tools (java, stitch) fail or are missing."""
