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
"""Shared constants for the jbuild tools.

This module provides centralized constants used across the jbuild modules
to ensure consistency and make it easy to adjust defaults, together with the
exception hierarchy the command line maps to exit codes.
"""

from typing import List, Optional

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_BUILD_FAILED = 3  # External compiler reported errors
EXIT_PROGRAM_FAILED = 4  # Built program exited non-zero
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Source Layout Defaults
# =============================================================================

DEFAULT_SOURCE_EXTENSION = ".java"
DEFAULT_ANNOTATION_KEYWORD = "using"  # using "Helper.java"
DEFAULT_ENTRY_FILE = "Main.java"
ARTIFACT_EXTENSION = ".class"

# =============================================================================
# Configuration Defaults
# =============================================================================

CONFIG_FILENAME = "jbuild.toml"
DEFAULT_SOURCE_ROOT = "."
DEFAULT_OUT_DIR = "./out"
DEFAULT_CACHE_FILE = "./jbuild-cache.json"

# =============================================================================
# External Tools
# =============================================================================

DEFAULT_COMPILER = "javac"
DEFAULT_RUNTIME = "java"
JAVAC_ENV_VAR = "JAVAC"
JAVA_ENV_VAR = "JAVA"
JAVA_HOME_ENV_VAR = "JAVA_HOME"
TOOL_VERSION_TIMEOUT = 10  # Only for --version checks, builds are never timed out

# =============================================================================
# Cache Constants
# =============================================================================

CACHE_FORMAT_VERSION = 1

# =============================================================================
# Tree Display Symbols
# =============================================================================

TREE_ROOT_MARKER = "📦"
TREE_BRANCH = "└─"
TREE_INDENT = "  "

# =============================================================================
# Exception Classes
# =============================================================================


class JBuildError(Exception):
    """Base exception for all jbuild errors.

    All jbuild exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(JBuildError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class EntryFileError(ValidationError):
    """Raised when the requested entry file cannot be found."""


class ConfigError(ValidationError):
    """Raised when jbuild.toml holds values of the wrong shape."""


# Graph construction errors (EXIT_RUNTIME_ERROR)
class GraphBuildError(JBuildError):
    """Raised when dependency graph construction fails."""


class MissingDependencyError(GraphBuildError):
    """Raised when a declared dependency does not resolve to a file under the source root.

    Attributes:
        missing: Dependency name exactly as declared
        referrer: Key of the file that declared it
    """

    def __init__(self, missing: str, referrer: str):
        super().__init__(f"Dependency not found: '{missing}' (declared in {referrer})")
        self.missing = missing
        self.referrer = referrer


class CircularDependencyError(GraphBuildError):
    """Raised when the declared dependencies form a cycle.

    Attributes:
        cycle: Files on the cycle in traversal order, first file repeated at the end
    """

    def __init__(self, cycle: List[str]):
        super().__init__(f"Circular dependency detected involving: {cycle[0]} ({' -> '.join(cycle)})")
        self.cycle = cycle


# External tool errors
class ExternalToolError(JBuildError):
    """Raised when the external compiler or runtime cannot be used."""


class ToolNotFoundError(ExternalToolError):
    """Raised when the compiler or runtime executable cannot be located."""


class CompilationError(ExternalToolError):
    """Raised when the compiler exits non-zero.

    Attributes:
        returncode: Compiler exit status
        diagnostics: Captured compiler output, unmodified
        command: Command line that was executed
    """

    def __init__(self, returncode: int, diagnostics: str, command: Optional[List[str]] = None):
        super().__init__(f"Compilation failed with exit code {returncode}", EXIT_BUILD_FAILED)
        self.returncode = returncode
        self.diagnostics = diagnostics
        self.command = command or []


class RuntimeFailureError(ExternalToolError):
    """Raised when the built program exits non-zero.

    Attributes:
        returncode: Program exit status
        stderr: Captured error stream, unmodified
    """

    def __init__(self, returncode: int, stderr: str = ""):
        super().__init__(f"Program exited with status code: {returncode}", EXIT_PROGRAM_FAILED)
        self.returncode = returncode
        self.stderr = stderr


class CacheCorruptionError(JBuildError):
    """Raised when the persisted build cache cannot be read as a cache document."""
