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
"""Report on match records and the version succession graph.

Console companion of matchSetup.py. It reads the match record tree and the
version catalog without modifying anything.

USAGE:
    python3 matchReport.py [options] <command>

EXAMPLES:
    # Matching progress of every record, grouped by era
    python3 matchReport.py status

    # Every catalog version grouped by era with incoming/outgoing record counts
    python3 matchReport.py eras

    # Structural problems in the succession graph (unreachable versions, cycles)
    python3 matchReport.py check --format json

Exit Codes:
    0: Success
    1: Invalid arguments or directory
    2: Catalog unreadable
    130: Interrupted
"""

import sys
import json
import signal
import logging
import argparse
import functools
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

__version__ = "1.0.0"
__author__ = "Mana Battery"

from matchlib.color_utils import PROGRESS_DONE, Colors, print_error, print_info, print_success, print_warning, progress_bar, progress_color, should_use_color
from matchlib.constants import DEFAULT_ROOTS, EXIT_KEYBOARD_INTERRUPT, EXIT_SUCCESS, MatchToolError
from matchlib.era_utils import compare_eras, group_versions_by_era
from matchlib.graph_utils import analyze_succession_graph
from matchlib.match_registry import MatchRecordRef
from matchlib.match_status import MatchStatus, collect_statuses
from matchlib.package_verification import require_packages
from matchlib.workspace import Workspace, open_workspace

logger = logging.getLogger(__name__)

__all__ = ["EXIT_SUCCESS", "main", "build_parser"]

UNKNOWN_ERA = "unknown"


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report on match records and the version succession graph.",
        epilog=f"Version {__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--workspace", "-w", default=".", help="Workspace root holding matches/ (default: current directory)")
    parser.add_argument("--catalog", metavar="DIR", help="Version catalog data directory (default: <workspace>/mc-versions/data)")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format (default: text)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True
    sub.add_parser("status", help="Matching progress of every record")
    sub.add_parser("eras", help="Catalog versions grouped by era")
    check = sub.add_parser("check", help="Succession graph health")
    check.add_argument("--root", action="append", dest="roots", metavar="VERSION", help="Walk root (repeatable, default: earliest client and server)")
    return parser


def sorted_eras(eras: List[str]) -> List[str]:
    return sorted(eras, key=functools.cmp_to_key(compare_eras))


def group_records_by_era(refs: List[MatchRecordRef]) -> Dict[str, List[MatchRecordRef]]:
    by_era: Dict[str, List[MatchRecordRef]] = defaultdict(list)
    for ref in refs:
        by_era[ref.era or UNKNOWN_ERA].append(ref)
    return dict(by_era)


def status_to_dict(status: Optional[MatchStatus]) -> Optional[Dict[str, Any]]:
    if status is None:
        return None
    return {
        "classes": list(status.classes),
        "methods": list(status.methods),
        "fields": list(status.fields),
        "method_args": list(status.method_args),
        "percent": status.as_percent(),
    }


def run_status(ws: Workspace, args: argparse.Namespace) -> int:
    refs = list(ws.registry.iter_records())
    statuses = collect_statuses(refs)
    by_era = group_records_by_era(refs)

    if args.format == "json":
        output = {
            era: [
                {"a": f"{ref.key.side_a}-{ref.key.version_a}", "b": f"{ref.key.side_b}-{ref.key.version_b}", "status": status_to_dict(statuses[ref.path])}
                for ref in by_era[era]
            ]
            for era in sorted_eras(list(by_era))
        }
        print(json.dumps(output, indent=2))
        return EXIT_SUCCESS

    if not refs:
        print_info("No match records found")
        return EXIT_SUCCESS

    for era in sorted_eras(list(by_era)):
        print(f"\n{Colors.BRIGHT}{era}{Colors.RESET}")
        for ref in by_era[era]:
            status = statuses[ref.path]
            label = f"{ref.key.side_a}-{ref.key.version_a} → {ref.key.side_b}-{ref.key.version_b}"
            if status is None:
                print(f"  {label:<50} {Colors.DIM}not started{Colors.RESET}")
            else:
                fraction = status.overall
                print(f"  {label:<50} {progress_bar(fraction, color=progress_color(fraction))}")

    with_status = [s for s in statuses.values() if s is not None]
    complete = sum(1 for s in with_status if s.overall >= PROGRESS_DONE)
    print()
    print_success(f"{len(refs)} record(s), {len(with_status)} in progress, {complete} complete", prefix=False)
    return EXIT_SUCCESS


def count_record_edges(refs: List[MatchRecordRef]) -> Dict[str, Tuple[int, int]]:
    """(incoming, outgoing) record counts per "<side>-<id>" key."""
    incoming: Dict[str, int] = defaultdict(int)
    outgoing: Dict[str, int] = defaultdict(int)
    for ref in refs:
        outgoing[f"{ref.key.side_a}-{ref.key.version_a}"] += 1
        incoming[f"{ref.key.side_b}-{ref.key.version_b}"] += 1
    keys = set(incoming) | set(outgoing)
    return {k: (incoming.get(k, 0), outgoing.get(k, 0)) for k in keys}


def run_eras(ws: Workspace, args: argparse.Namespace) -> int:
    by_era = group_versions_by_era(ws.catalog.all_versions())
    edges = count_record_edges(list(ws.registry.iter_records()))

    if args.format == "json":
        output = {era: [{"id": key, "incoming": edges.get(key, (0, 0))[0], "outgoing": edges.get(key, (0, 0))[1]} for key in by_era[era]] for era in sorted_eras(list(by_era))}
        print(json.dumps(output, indent=2))
        return EXIT_SUCCESS

    for era in sorted_eras(list(by_era)):
        print(f"\n{Colors.BRIGHT}{era}{Colors.RESET} ({len(by_era[era])})")
        for key in by_era[era]:
            n_in, n_out = edges.get(key, (0, 0))
            color = Colors.DIM if n_in == 0 and n_out == 0 else ""
            print(f"  {color}{key:<40}{Colors.RESET} in: {n_in:2}  out: {n_out:2}")
    return EXIT_SUCCESS


def run_check(ws: Workspace, args: argparse.Namespace) -> int:
    roots = args.roots or list(DEFAULT_ROOTS)
    report = analyze_succession_graph(ws.catalog.succession_graph(), roots)

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
        return EXIT_SUCCESS

    print(f"\n{Colors.BRIGHT}Succession Graph:{Colors.RESET}")
    print(f"  Versions: {report.node_count}")
    print(f"  Successor edges: {report.edge_count}")
    if report.missing_roots:
        print_warning(f"Walk roots not in catalog: {', '.join(report.missing_roots)}")
    if report.unreachable:
        print_warning(f"{len(report.unreachable)} version(s) unreachable from {', '.join(roots)}:")
        for version_id in report.unreachable:
            print(f"  {Colors.DIM}{version_id}{Colors.RESET}")
    if report.dangling:
        print_warning(f"{len(report.dangling)} successor pointer(s) to unknown versions:")
        for version_id, nxt in report.dangling:
            print(f"  {version_id} → {Colors.RED}{nxt}{Colors.RESET}")
    for cycle in report.cycles:
        print_warning(f"Cycle: {', '.join(sorted(cycle))}")
    for version_id in report.self_loops:
        print_warning(f"Self loop: {version_id}")
    if report.is_healthy():
        print_success("Succession graph is healthy", prefix=False)
    return EXIT_SUCCESS


COMMANDS = {
    "status": run_status,
    "eras": run_eras,
    "check": run_check,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    args = build_parser().parse_args(argv)

    if args.format == "json" or not should_use_color(no_color=args.no_color):
        Colors.disable()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s: %(message)s")

    try:
        require_packages(("networkx",), "matchReport.py")
        ws = open_workspace(args.workspace, args.catalog)
        return COMMANDS[args.command](ws, args)
    except MatchToolError as e:
        print_error(str(e))
        return e.exit_code


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("Interrupted.", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
