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
"""External tool detection for the match tools.

The only external program needed is a Java runtime, used to run the jar merging
tool. JAVA_HOME takes priority over the PATH.

Detection results are cached within the Python process session to avoid repeated
subprocess calls.

CLI Interface:
    python3 -m matchlib.tool_detection --find-java    # Output java command, exit 0/1
"""

import os
import sys
import shutil
import logging
import argparse
import subprocess
from typing import Optional, Dict, List
from dataclasses import dataclass

from matchlib.constants import JAVA_VERSION_TIMEOUT

logger = logging.getLogger(__name__)

JAVA_COMMANDS = ["java"]

# Session-level cache for tool detection results (keyed by function name)
_tool_cache: Dict[str, "ToolInfo"] = {}


@dataclass
class ToolInfo:
    """Information about a detected external tool.

    Attributes:
        command: Command or absolute path to invoke (e.g., "java", "/opt/jdk/bin/java")
        version: First line of the version banner (e.g., 'openjdk version "21.0.2"')
        error_message: Why the tool was not found, if it was not
    """

    command: Optional[str]
    version: Optional[str]
    error_message: Optional[str] = None

    def is_found(self) -> bool:
        return self.command is not None


def clear_cache() -> None:
    """Clear the tool detection cache.

    Useful for testing or when environment changes during process lifetime.
    """
    _tool_cache.clear()
    logger.debug("Tool detection cache cleared")


def _try_java(cmd: str, timeout: int = JAVA_VERSION_TIMEOUT) -> Optional[str]:
    """Run "<cmd> -version" and return the first banner line.

    java prints its version banner to stderr.
    """
    try:
        result = subprocess.run([cmd, "-version"], capture_output=True, text=True, check=True, timeout=timeout)
    except (subprocess.CalledProcessError, FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
        return None
    output = (result.stderr or result.stdout).strip()
    return output.split("\n")[0].strip() if output else ""


def _java_candidates() -> List[str]:
    candidates = []
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidates.append(os.path.join(java_home, "bin", "java"))
    for cmd in JAVA_COMMANDS:
        resolved = shutil.which(cmd)
        if resolved:
            candidates.append(resolved)
    return candidates


def find_java() -> ToolInfo:
    """Find a usable Java runtime.

    Tries $JAVA_HOME/bin/java first, then java on the PATH.

    Returns:
        ToolInfo with command and version if found, or empty ToolInfo if not found
    """
    cache_key = "find_java"
    if cache_key in _tool_cache:
        return _tool_cache[cache_key]

    tried = []
    for cmd in _java_candidates():
        tried.append(cmd)
        logger.debug("Trying %s...", cmd)
        version = _try_java(cmd)
        if version is not None:
            logger.debug("Found %s (%s)", cmd, version)
            tool_info = ToolInfo(command=cmd, version=version)
            _tool_cache[cache_key] = tool_info
            return tool_info
        logger.debug("%s did not respond to -version", cmd)

    detail = f"tried: {', '.join(tried)}" if tried else "set JAVA_HOME or add java to PATH"
    logger.debug("java not found (%s)", detail)
    tool_info = ToolInfo(command=None, version=None, error_message=f"java not found ({detail})")
    _tool_cache[cache_key] = tool_info
    return tool_info


def main() -> int:
    parser = argparse.ArgumentParser(description="Detect external tools used by the match tools")
    parser.add_argument("--find-java", action="store_true", help="Print the java command and exit 0, or exit 1 if missing")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.find_java:
        tool_info = find_java()
        if not tool_info.is_found():
            print(tool_info.error_message, file=sys.stderr)
            return 1
        print(tool_info.command)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
