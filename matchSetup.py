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
"""Create and maintain match records between game versions.

A match record marks that a mapping workspace exists for an ordered pair of
versions (and sides). This script creates missing records, either for a given
pair or by walking the version succession graph, and repopulates the jar and
library caches of a fresh checkout.

Requirements:
    - Python 3.8+
    - networkx, urllib3, colorama, packaging
    - Java runtime (JAVA_HOME or java on PATH) for merged jars

USAGE:
    python3 matchSetup.py [options] <command> ...

EXAMPLES:
    # Create the record for an explicit side combination
    python3 matchSetup.py pair client 1.0 merged 1.1

    # Create the best possible record for a version pair
    python3 matchSetup.py any b1.7.3 b1.8-pre1

    # Find the next pair without a record (optionally within one era)
    python3 matchSetup.py next --era beta

    # Create every missing record reachable from the roots
    python3 matchSetup.py all

    # Re-download jars and libraries referenced by existing records
    python3 matchSetup.py refresh

Exit Codes:
    0: Success (including walks that skipped failing pairs)
    1: Invalid arguments or directory
    2: Catalog unreadable or the requested pair failed
    130: Interrupted
"""

import os
import sys
import signal
import logging
import argparse
from typing import Any, List, Optional

__version__ = "1.0.0"
__author__ = "Mana Battery"

from matchlib.color_utils import Colors, print_error, print_info, print_success, print_warning, should_use_color
from matchlib.constants import (
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    SIDES,
    MatchToolError,
)
from matchlib.match_registry import MatchKey
from matchlib.match_walker import PairError, WalkMode
from matchlib.package_verification import require_packages
from matchlib.workspace import Workspace, open_workspace

logger = logging.getLogger(__name__)

# Export for tests
__all__ = ["EXIT_SUCCESS", "main", "build_parser"]


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create and maintain match records between game versions.",
        epilog=f"Version {__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--workspace", "-w", default=".", help="Workspace root holding matches/, versions/ and libraries/ (default: current directory)")
    parser.add_argument("--catalog", metavar="DIR", help="Version catalog data directory (default: <workspace>/mc-versions/data)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    pair = sub.add_parser("pair", help="Create the record for an explicit side combination")
    pair.add_argument("side_a", choices=SIDES)
    pair.add_argument("version_a")
    pair.add_argument("side_b", choices=SIDES)
    pair.add_argument("version_b")

    any_pair = sub.add_parser("any", help="Create the highest priority possible record for a version pair")
    any_pair.add_argument("version_a")
    any_pair.add_argument("version_b")

    for name, help_text in (("next", "Create the next missing record found by walking the succession graph"), ("all", "Create every missing record reachable from the roots")):
        walk = sub.add_parser(name, help=help_text)
        walk.add_argument("--era", help="Only create records whose second version falls in this era")
        walk.add_argument("--root", action="append", dest="roots", metavar="VERSION", help="Start version (repeatable, default: earliest client and server)")

    sub.add_parser("refresh", help="Re-resolve jars and libraries of every version named by a record")
    return parser


def print_errors(errors: List[PairError]) -> None:
    if not errors:
        return
    print_warning(f"{len(errors)} pair(s) skipped due to errors:")
    for error in errors:
        target = f"{error.version_a} → {error.version_b}" if error.version_b else error.version_a
        print(f"  {Colors.DIM}{target}{Colors.RESET}: {error.message}", file=sys.stderr)


def run_pair(ws: Workspace, args: argparse.Namespace) -> int:
    key = MatchKey(args.side_a, args.version_a, args.side_b, args.version_b)
    outcome = ws.setup.setup_match(key)
    if outcome.did_create:
        print_success(f"Created {os.path.relpath(ws.registry.path_for(key), ws.root)}")
    elif outcome.can_create:
        print_info(f"Match {key} already exists")
    else:
        print_warning(f"Match {key} cannot be created (missing jar or unknown version)")
    return EXIT_SUCCESS


def run_any(ws: Workspace, args: argparse.Namespace) -> int:
    key = ws.setup.setup_any_match(args.version_a, args.version_b)
    if key is None:
        print_info(f"No new match created for {args.version_a} → {args.version_b}")
    else:
        print_success(f"Created {os.path.relpath(ws.registry.path_for(key), ws.root)}")
    return EXIT_SUCCESS


def run_walk(ws: Workspace, args: argparse.Namespace) -> int:
    mode = WalkMode(args.command)
    kwargs = {"roots": args.roots} if args.roots else {}
    result = ws.setup.walk(mode=mode, era=args.era, **kwargs)
    for key in result.created:
        print_success(f"Created {os.path.relpath(ws.registry.path_for(key), ws.root)}")
    if not result.created:
        print_info(f"No missing matches found ({len(result.visited)} versions visited)")
    print_errors(result.errors)
    return EXIT_SUCCESS


def run_refresh(ws: Workspace, args: argparse.Namespace) -> int:
    result = ws.setup.refresh()
    print_success(f"Refreshed {len(result.refreshed)} version(s)")
    if result.skipped:
        print_warning(f"{len(result.skipped)} version(s) not in the catalog: " + ", ".join(f"{side}-{v}" for side, v in result.skipped))
    print_errors(result.errors)
    return EXIT_SUCCESS


COMMANDS = {
    "pair": run_pair,
    "any": run_any,
    "next": run_walk,
    "all": run_walk,
    "refresh": run_refresh,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    args = build_parser().parse_args(argv)

    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")

    try:
        require_packages(("networkx", "urllib3"), "matchSetup.py")
        ws = open_workspace(args.workspace, args.catalog)
        ws.catalog.load_manifest()
    except MatchToolError as e:
        print_error(str(e))
        return e.exit_code

    try:
        return COMMANDS[args.command](ws, args)
    except MatchToolError as e:
        print_error(str(e))
        return e.exit_code
    except (OSError, ValueError) as e:
        print_error(f"Unexpected failure: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("Interrupted.", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except MatchToolError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(e.exit_code)
