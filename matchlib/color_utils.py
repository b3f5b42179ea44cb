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
"""Colored console output for the match tools (colorama).

Messages go to stdout, except errors and warnings which go to stderr so that
JSON reports on stdout stay machine readable.
"""

import sys
import os
import logging
from typing import Optional, TextIO

from colorama import Fore, Style, init

logger = logging.getLogger(__name__)

# Keep escape codes when stdout is piped, disable() strips them explicitly
init(autoreset=False, strip=False)

# Progress thresholds for progress_color()
PROGRESS_DONE = 0.999
PROGRESS_CLOSE = 0.9


class Colors:
    """Escape codes used by the reports, emptied by disable()."""

    RED = Fore.RED
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    CYAN = Fore.CYAN
    RESET = Style.RESET_ALL
    BRIGHT = Style.BRIGHT
    DIM = Style.DIM

    @staticmethod
    def disable() -> None:
        """Disable all color output."""
        for attr in dir(Colors):
            if not attr.startswith("_") and attr != "disable":
                setattr(Colors, attr, "")


def colored(text: str, color: str = "", style: str = "") -> str:
    """Wrap text in style and color codes followed by a reset."""
    if not color:
        return text
    return f"{style}{color}{text}{Colors.RESET}"


def print_colored(text: str, color: str = "", style: str = "", file: Optional[TextIO] = None) -> None:
    print(colored(text, color, style), file=file or sys.stdout)


def _print_labeled(text: str, color: str, label: str, prefix: bool, file: Optional[TextIO]) -> None:
    message = f"{label}: {text}" if prefix else text
    print_colored(message, color, file=file)


def print_success(text: str, file: Optional[TextIO] = None, prefix: bool = False) -> None:
    """Print a green message to stdout, e.g. a created record."""
    _print_labeled(text, Colors.GREEN, "Success", prefix, file)


def print_error(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    """Print a red "Error: ..." message to stderr."""
    _print_labeled(text, Colors.RED, "Error", prefix, file or sys.stderr)


def print_warning(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    """Print a yellow "Warning: ..." message to stderr."""
    _print_labeled(text, Colors.YELLOW, "Warning", prefix, file or sys.stderr)


def print_info(text: str, file: Optional[TextIO] = None) -> None:
    _print_labeled(text, Colors.CYAN, "", False, file)


def should_use_color(force_color: bool = False, no_color: bool = False) -> bool:
    """Decide on colored output from the flags, the terminal and NO_COLOR.

    --no-color beats force_color, which beats terminal detection.
    """
    if no_color:
        return False
    if force_color:
        return True
    if not sys.stdout.isatty():
        return False
    # See no-color.org
    return not os.environ.get("NO_COLOR")


def progress_color(fraction: float) -> str:
    """Green for a finished record, yellow when close, red otherwise."""
    if fraction >= PROGRESS_DONE:
        return Colors.GREEN
    if fraction >= PROGRESS_CLOSE:
        return Colors.YELLOW
    return Colors.RED


def progress_bar(fraction: float, width: int = 30, color: str = "") -> str:
    """Render a completion fraction as "[█████░░░░░] 50.00%".

    Fractions outside 0.0 - 1.0 are clamped.
    """
    fraction = max(0.0, min(1.0, fraction))
    filled = int(width * fraction)
    bar = "█" * filled + "░" * (width - filled)
    if color:
        bar = f"{color}{bar}{Colors.RESET}"
    return f"[{bar}] {fraction * 100:.2f}%"
