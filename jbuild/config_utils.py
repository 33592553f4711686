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
"""Loading and initializing the jbuild.toml project configuration."""

import os
import shlex
import logging
import tomllib
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from jbuild.cache_utils import InvalidationPolicy
from jbuild.constants import (
    CONFIG_FILENAME,
    DEFAULT_ANNOTATION_KEYWORD,
    DEFAULT_CACHE_FILE,
    DEFAULT_COMPILER,
    DEFAULT_OUT_DIR,
    DEFAULT_RUNTIME,
    DEFAULT_SOURCE_EXTENSION,
    DEFAULT_SOURCE_ROOT,
    ConfigError,
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# jbuild Configuration File

# Source directory containing your Java files
# Defaults to "." (current directory)
src_dir = "."

# Output directory for compiled .class files
out_dir = "./out"

# Location of the build cache file
cache_file = "./jbuild-cache.json"

# Default entrypoint when no file is specified
# This is useful when you have multiple classes with main() methods
entrypoint = "Main.java"

# JVM options to pass when running your program
jvm_opts = ["-Xmx256m"]

# Additional javac options
# javac_opts = ["-Xlint:unchecked", "-g"]

# Compile classes that are referenced but not declared with 'using'
# auto_include_implicit_deps = false

# "content": recompile only files whose own content changed
# "transitive": also recompile every file depending on a changed file
# invalidation = "content"
"""


@dataclass
class JBuildConfig:
    """Project configuration.

    Attributes:
        source_root: Directory declared dependencies resolve against
        out_dir: Directory receiving compiled artifacts
        cache_file: Path of the persisted build cache
        entrypoint: Default entry file when none is given on the command line
        compiler: Compiler command (executable plus leading arguments)
        compiler_options: Extra options passed on every compiler invocation
        runtime: Runtime command
        runtime_options: Options passed to the runtime before the entry symbol
        auto_include_implicit_deps: Promote implicit references to compiled dependencies
        invalidation: Changed-set invalidation policy
        annotation_keyword: Directive keyword in the header comment
        source_extension: Source file extension
    """

    source_root: str = DEFAULT_SOURCE_ROOT
    out_dir: str = DEFAULT_OUT_DIR
    cache_file: str = DEFAULT_CACHE_FILE
    entrypoint: Optional[str] = None
    compiler: List[str] = field(default_factory=lambda: [DEFAULT_COMPILER])
    compiler_options: List[str] = field(default_factory=list)
    runtime: List[str] = field(default_factory=lambda: [DEFAULT_RUNTIME])
    runtime_options: List[str] = field(default_factory=list)
    auto_include_implicit_deps: bool = False
    invalidation: InvalidationPolicy = InvalidationPolicy.CONTENT
    annotation_keyword: str = DEFAULT_ANNOTATION_KEYWORD
    source_extension: str = DEFAULT_SOURCE_EXTENSION


def _expect_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _expect_str_list(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must be a list of strings")
    return list(value)


def _expect_command(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    """Accept a command either as a shell-style string or as a list of strings."""
    value = data.get(key)
    if isinstance(value, str):
        parts = shlex.split(value)
        if not parts:
            raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must not be empty")
        return parts
    parts_list = _expect_str_list(data, key)
    if parts_list is not None and not parts_list:
        raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must not be empty")
    return parts_list


def config_from_dict(data: Dict[str, Any], base_dir: str = ".") -> JBuildConfig:
    """Build a configuration from a parsed TOML table.

    Relative paths resolve against base_dir (the directory holding the file).

    Args:
        data: Parsed TOML document
        base_dir: Directory relative paths are anchored to

    Returns:
        JBuildConfig with defaults for missing keys

    Raises:
        ConfigError: If a value has the wrong type or an unknown policy is named
    """
    config = JBuildConfig()

    known = {
        "src_dir",
        "out_dir",
        "cache_file",
        "entrypoint",
        "compiler",
        "javac_opts",
        "runtime",
        "jvm_opts",
        "auto_include_implicit_deps",
        "invalidation",
        "annotation_keyword",
        "source_extension",
    }
    for key in sorted(set(data) - known):
        logger.debug("Ignoring unknown %s key: %s", CONFIG_FILENAME, key)

    for attr, key in (("source_root", "src_dir"), ("out_dir", "out_dir"), ("cache_file", "cache_file")):
        value = _expect_str(data, key)
        setattr(config, attr, value if value is not None else getattr(config, attr))

    for attr, key in (("annotation_keyword", "annotation_keyword"), ("source_extension", "source_extension")):
        value = _expect_str(data, key)
        if value is not None:
            if not value:
                raise ConfigError(f"{CONFIG_FILENAME}: '{key}' must not be empty")
            setattr(config, attr, value)

    config.entrypoint = _expect_str(data, "entrypoint")

    compiler = _expect_command(data, "compiler")
    if compiler is not None:
        config.compiler = compiler
    runtime = _expect_command(data, "runtime")
    if runtime is not None:
        config.runtime = runtime

    config.compiler_options = _expect_str_list(data, "javac_opts") or []
    config.runtime_options = _expect_str_list(data, "jvm_opts") or []

    auto_include = data.get("auto_include_implicit_deps", False)
    if not isinstance(auto_include, bool):
        raise ConfigError(f"{CONFIG_FILENAME}: 'auto_include_implicit_deps' must be true or false")
    config.auto_include_implicit_deps = auto_include

    invalidation = _expect_str(data, "invalidation")
    if invalidation is not None:
        try:
            config.invalidation = InvalidationPolicy(invalidation)
        except ValueError as e:
            choices = ", ".join(p.value for p in InvalidationPolicy)
            raise ConfigError(f"{CONFIG_FILENAME}: unknown invalidation policy '{invalidation}' (choose from {choices})") from e

    for attr in ("source_root", "out_dir", "cache_file"):
        path = getattr(config, attr)
        if not os.path.isabs(path):
            setattr(config, attr, os.path.normpath(os.path.join(base_dir, path)))

    return config


def load_config(path: Optional[str] = None) -> JBuildConfig:
    """Load the project configuration.

    A missing file yields the defaults. So does a file that cannot be read or
    is not valid TOML, with a warning. Values of the wrong shape raise.

    Args:
        path: Config file path (default: jbuild.toml in the current directory)

    Returns:
        JBuildConfig

    Raises:
        ConfigError: If the file holds invalid values
    """
    config_path = path or CONFIG_FILENAME
    base_dir = os.path.dirname(os.path.abspath(config_path))

    if not os.path.exists(config_path):
        if path is not None:
            logger.warning("Config file %s not found, using default configuration", config_path)
        else:
            logger.debug("No %s found, using default configuration", CONFIG_FILENAME)
        return config_from_dict({}, base_dir)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        logger.warning("Failed to read %s: %s. Using default configuration", config_path, e)
        return config_from_dict({}, base_dir)
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse %s: %s. Using default configuration", config_path, e)
        return config_from_dict({}, base_dir)

    logger.debug("Loaded configuration from %s", config_path)
    return config_from_dict(data, base_dir)


def write_config_template(path: Optional[str] = None, force: bool = False) -> str:
    """Create a commented jbuild.toml with default settings.

    Args:
        path: Destination (default: jbuild.toml in the current directory)
        force: Overwrite an existing file

    Returns:
        Path of the written file

    Raises:
        ConfigError: If the file exists and force is not set
    """
    config_path = path or CONFIG_FILENAME

    if os.path.exists(config_path) and not force:
        raise ConfigError(f"{config_path} already exists. Use --force to overwrite.")

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(CONFIG_TEMPLATE)
    except OSError as e:
        raise ConfigError(f"Failed to create {config_path}: {e}") from e

    logger.debug("Wrote configuration template to %s", config_path)
    return config_path
