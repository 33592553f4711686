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
"""External compiler and runtime detection and invocation.

The compiler and runtime are opaque subprocesses. A build issues exactly one
compiler invocation for the whole changed set, and `run` issues exactly one
runtime invocation. Both block until the process exits and capture its
streams. No timeout is imposed on either.

Tool lookup honours, in order: an explicit environment override (JAVAC /
JAVA), $JAVA_HOME/bin, and the PATH. Detection results are cached within the
Python process session to avoid repeated subprocess calls.
"""

import os
import shutil
import logging
import subprocess
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass

from jbuild.constants import (
    DEFAULT_COMPILER,
    DEFAULT_RUNTIME,
    JAVA_ENV_VAR,
    JAVA_HOME_ENV_VAR,
    JAVAC_ENV_VAR,
    TOOL_VERSION_TIMEOUT,
    ToolNotFoundError,
)

logger = logging.getLogger(__name__)

# Session-level cache for tool detection results (keyed by tool name)
_tool_cache: Dict[str, "ToolInfo"] = {}


@dataclass
class ToolInfo:
    """Information about a detected external tool.

    Attributes:
        command: Resolved executable path, None if not found
        version: First line of the tool's version output, if it reported one
    """

    command: Optional[str]
    version: Optional[str] = None

    def is_found(self) -> bool:
        """Check if tool was found."""
        return self.command is not None


@dataclass
class ProcessResult:
    """Outcome of one external process invocation.

    Attributes:
        command: Command line that was executed
        returncode: Exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    command: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        """True if the process exited with status 0."""
        return self.returncode == 0

    @property
    def diagnostics(self) -> str:
        """Combined output; javac reports on both streams."""
        if self.stdout and self.stderr:
            return self.stdout + ("" if self.stdout.endswith("\n") else "\n") + self.stderr
        return self.stdout or self.stderr


def clear_cache() -> None:
    """Clear the tool detection cache.

    Useful for testing or when environment changes during process lifetime.
    """
    _tool_cache.clear()
    logger.debug("Tool detection cache cleared")


def _query_version(executable: str) -> Optional[str]:
    """Ask a tool for its version. javac/java print it on either stream."""
    try:
        result = subprocess.run([executable, "-version"], capture_output=True, text=True, timeout=TOOL_VERSION_TIMEOUT, check=False)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("%s -version failed: %s", executable, e)
        return None
    output = (result.stdout or result.stderr).strip()
    return output.splitlines()[0].strip() if output else None


def _find_java_tool(name: str, env_var: str) -> ToolInfo:
    """Locate a JDK tool.

    Args:
        name: Executable name (e.g., 'javac')
        env_var: Environment variable that may point at the executable

    Returns:
        ToolInfo (command None if not found)
    """
    if name in _tool_cache:
        return _tool_cache[name]

    candidates: List[str] = []
    override = os.environ.get(env_var)
    if override:
        candidates.append(override)
    java_home = os.environ.get(JAVA_HOME_ENV_VAR)
    if java_home:
        candidates.append(os.path.join(java_home, "bin", name))
    candidates.append(name)

    tool_info = ToolInfo(command=None)
    for candidate in candidates:
        logger.debug("Trying %s...", candidate)
        resolved = shutil.which(candidate)
        if resolved:
            tool_info = ToolInfo(command=resolved, version=_query_version(resolved))
            logger.debug("Found %s: %s (%s)", name, resolved, tool_info.version)
            break

    if not tool_info.is_found():
        logger.debug("%s not found", name)
    _tool_cache[name] = tool_info
    return tool_info


def find_java_compiler() -> ToolInfo:
    """Find the Java compiler (JAVAC, then $JAVA_HOME/bin/javac, then PATH)."""
    return _find_java_tool(DEFAULT_COMPILER, JAVAC_ENV_VAR)


def find_java_runtime() -> ToolInfo:
    """Find the Java runtime (JAVA, then $JAVA_HOME/bin/java, then PATH)."""
    return _find_java_tool(DEFAULT_RUNTIME, JAVA_ENV_VAR)


def resolve_command(command: Sequence[str]) -> List[str]:
    """Resolve the executable of a configured command line.

    The stock 'javac'/'java' names go through JDK detection; anything else must
    be an existing path or be found on the PATH.

    Args:
        command: Configured command (executable plus leading arguments)

    Returns:
        Command with the executable resolved

    Raises:
        ToolNotFoundError: If the executable cannot be found
    """
    if not command:
        raise ToolNotFoundError("No command configured")

    executable, rest = command[0], list(command[1:])

    if executable == DEFAULT_COMPILER:
        info = find_java_compiler()
    elif executable == DEFAULT_RUNTIME:
        info = find_java_runtime()
    else:
        info = ToolInfo(command=shutil.which(executable) or (executable if os.path.isfile(executable) else None))

    if not info.is_found():
        raise ToolNotFoundError(f"'{executable}' not found. Install a JDK or set {JAVA_HOME_ENV_VAR}.")

    return [str(info.command)] + rest


def _run(command: List[str]) -> ProcessResult:
    logger.debug("Running: %s", " ".join(command))
    try:
        result = subprocess.run(command, capture_output=True, text=True, errors="replace", check=False)
    except OSError as e:
        raise ToolNotFoundError(f"Failed to run {command[0]}: {e}") from e
    return ProcessResult(command=command, returncode=result.returncode, stdout=result.stdout, stderr=result.stderr)


def run_compiler(command: Sequence[str], sources: Sequence[str], out_dir: str, options: Sequence[str] = ()) -> ProcessResult:
    """Compile a batch of source files with one compiler invocation.

    The output directory doubles as class path so that files compiled in an
    earlier build resolve for the files compiled now.

    Args:
        command: Compiler command
        sources: Source file paths, in build order
        out_dir: Directory receiving the artifacts
        options: Extra compiler options

    Returns:
        ProcessResult of the invocation
    """
    full_command = resolve_command(command) + list(options) + ["-d", out_dir, "-cp", out_dir] + list(sources)
    return _run(full_command)


def run_runtime(command: Sequence[str], out_dir: str, entry_symbol: str, options: Sequence[str] = (), program_args: Sequence[str] = ()) -> ProcessResult:
    """Run a built program with one runtime invocation.

    Args:
        command: Runtime command
        out_dir: Directory holding the artifacts (used as class path)
        entry_symbol: Fully qualified entry type
        options: Runtime options (e.g., -Xmx256m)
        program_args: Arguments passed to the program

    Returns:
        ProcessResult of the invocation
    """
    full_command = resolve_command(command) + ["-cp", out_dir] + list(options) + [entry_symbol] + list(program_args)
    return _run(full_command)
