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
"""Wiring of catalog, resolver, registry and walker for one workspace."""

import os
import logging
from typing import Optional
from dataclasses import dataclass

from matchlib.artifact_resolver import ArtifactResolver
from matchlib.constants import CATALOG_DIR, ValidationError
from matchlib.era_utils import era_of
from matchlib.match_registry import MatchRegistry
from matchlib.match_walker import MatchSetup
from matchlib.version_catalog import VersionCatalog

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    root: str
    catalog: VersionCatalog
    resolver: ArtifactResolver
    registry: MatchRegistry
    setup: MatchSetup


def open_workspace(root: str, catalog_dir: Optional[str] = None) -> Workspace:
    """Create the components operating on a workspace directory.

    Args:
        root: Workspace root (holds matches/, versions/, libraries/)
        catalog_dir: Catalog data directory, defaults to <root>/mc-versions/data

    Raises:
        ValidationError: If the workspace or catalog directory does not exist
    """
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise ValidationError(f"Workspace directory not found: {root}")

    catalog_dir = os.path.abspath(catalog_dir) if catalog_dir else os.path.join(root, CATALOG_DIR)
    if not os.path.isdir(catalog_dir):
        raise ValidationError(f"Catalog directory not found: {catalog_dir}")

    logger.debug("Workspace %s, catalog %s", root, catalog_dir)
    catalog = VersionCatalog(catalog_dir)
    resolver = ArtifactResolver(root, catalog)
    registry = MatchRegistry(root, lambda version_id: era_of(version_id, catalog=catalog))
    setup = MatchSetup(catalog, resolver, registry, root)
    return Workspace(root=root, catalog=catalog, resolver=resolver, registry=registry, setup=setup)
