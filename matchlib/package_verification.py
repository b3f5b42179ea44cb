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
"""Runtime dependency checks for the match tools.

Each script verifies the distributions it relies on before touching the
workspace, so a missing or outdated package is reported with an install hint
instead of surfacing as an ImportError halfway through a walk.
"""

import sys
import logging
import argparse
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass

from importlib.metadata import version, PackageNotFoundError
from packaging.version import InvalidVersion, parse

from matchlib.color_utils import print_error, print_success
from matchlib.constants import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, MatchToolError

logger = logging.getLogger(__name__)

# Minimum versions, keyed by distribution name
PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "networkx": "2.8.8",  # succession graph
    "urllib3": "2.0.0",  # jar, library and tool downloads
    "colorama": "0.4.6",
    "packaging": "24.0",
}


@dataclass(frozen=True)
class PackageStatus:
    """Installed state of one distribution.

    Attributes:
        name: Distribution name
        required: Minimum version
        installed: Installed version, or None when missing
    """

    name: str
    required: str
    installed: Optional[str]

    @property
    def ok(self) -> bool:
        if self.installed is None:
            return False
        try:
            return parse(self.installed) >= parse(self.required)
        except InvalidVersion:
            logger.warning("Cannot compare %s version '%s'", self.name, self.installed)
            return False

    @property
    def install_hint(self) -> str:
        upgrade = "--upgrade " if self.installed is not None else ""
        return f"pip install {upgrade}'{self.name}>={self.required}'"

    def describe(self) -> str:
        if self.installed is None:
            return f"{self.name} is not installed"
        if not self.ok:
            return f"{self.name} {self.installed} is too old (need >={self.required})"
        return f"{self.name} {self.installed}"


def check_package(name: str, min_version: Optional[str] = None) -> PackageStatus:
    """Look up the installed version of a distribution.

    Raises:
        ValueError: If min_version is None and PACKAGE_REQUIREMENTS has no entry
    """
    required = min_version or PACKAGE_REQUIREMENTS.get(name)
    if required is None:
        raise ValueError(f"No version requirement specified for {name}")
    try:
        installed: Optional[str] = version(name)
    except PackageNotFoundError:
        installed = None
    return PackageStatus(name=name, required=required, installed=installed)


def check_packages(names: Optional[Iterable[str]] = None) -> List[PackageStatus]:
    """Status of the given distributions (default: every known requirement)."""
    return [check_package(name) for name in (PACKAGE_REQUIREMENTS if names is None else names)]


def require_packages(names: Iterable[str], context: str = "this tool") -> None:
    """Fail unless every distribution is installed in a recent enough version.

    Raises:
        MatchToolError: Listing each problem with its install command
    """
    failed = [status for status in check_packages(names) if not status.ok]
    if not failed:
        return
    lines = [f"Missing dependencies for {context}:"]
    for status in failed:
        lines.append(f"  {status.describe()}, install with: {status.install_hint}")
    raise MatchToolError("\n".join(lines), EXIT_RUNTIME_ERROR)


def check_all_packages() -> bool:
    """Print the status of every runtime dependency.

    Returns:
        True if all packages are OK
    """
    print("Match Tools Package Verification")
    print("=" * 40)
    statuses = check_packages()
    for status in statuses:
        if status.ok:
            print_success(status.describe(), prefix=False)
        else:
            print_error(status.describe(), prefix=False)
    print("=" * 40)

    failed = [status for status in statuses if not status.ok]
    if not failed:
        print_success("All required packages are available", prefix=False)
        return True
    print_error("Some required packages are missing or too old", prefix=False)
    print("Install them with:")
    for status in failed:
        print(f"  {status.install_hint}")
    return False


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Verify match tool package dependencies")
    parser.add_argument("--check-all", action="store_true", help="Check all runtime packages")
    args = parser.parse_args(argv)

    if args.check_all:
        return EXIT_SUCCESS if check_all_packages() else EXIT_RUNTIME_ERROR

    parser.print_help()
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
