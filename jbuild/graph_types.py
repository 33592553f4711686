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
"""Type definitions for dependency resolution.

This module contains the dataclasses and enums shared by graph construction,
ordering, caching and the build orchestrator.
"""

import enum
import hashlib
import logging
import os
from typing import Dict, FrozenSet, List, Optional, Tuple
from dataclasses import dataclass, field

from jbuild.annotation_parser import parse_declared_dependencies
from jbuild.constants import DEFAULT_ANNOTATION_KEYWORD, DEFAULT_SOURCE_EXTENSION
from jbuild.reference_scanner import find_declared_types, find_package_name

logger = logging.getLogger(__name__)


class EdgeKind(enum.Enum):
    """How a dependency between two source files became known."""

    DECLARED = "declared"
    IMPLICIT = "implicit"


@dataclass(frozen=True)
class SourceFile:
    """Snapshot of one source file taken during a single build invocation.

    Attributes:
        key: Normalized path identifying the file in the graph
        path: Filesystem path the content was read from
        content: Raw file content
        content_hash: SHA-256 hex digest of the file bytes
        declared_dependencies: Declared dependency names, as written
        inferred_dependencies: Keys of sibling files referenced without a declaration
        type_names: Types declared by the file (public first)
        package: Declared package, None for the default package
    """

    key: str
    path: str
    content: str
    content_hash: str
    declared_dependencies: Tuple[str, ...] = ()
    inferred_dependencies: FrozenSet[str] = frozenset()
    type_names: Tuple[str, ...] = ()
    package: Optional[str] = None

    @property
    def stem(self) -> str:
        """File name without directory and extension."""
        return os.path.splitext(os.path.basename(self.key))[0]

    @property
    def primary_type(self) -> str:
        """The type named after the file, else the first declared type, else the file stem."""
        if self.stem in self.type_names:
            return self.stem
        return self.type_names[0] if self.type_names else self.stem

    @property
    def entry_symbol(self) -> str:
        """Fully qualified name the runtime is invoked with."""
        if self.package:
            return f"{self.package}.{self.primary_type}"
        return self.primary_type

    @classmethod
    def load(cls, path: str, key: str, keyword: str = DEFAULT_ANNOTATION_KEYWORD) -> "SourceFile":
        """Read, hash and parse a source file.

        Args:
            path: Filesystem path to read
            key: Graph key for the file
            keyword: Annotation directive keyword

        Returns:
            New SourceFile snapshot (inferred dependencies are filled in by the graph builder)
        """
        with open(path, "rb") as f:
            raw = f.read()

        content = raw.decode("utf-8", errors="replace")
        return cls(
            key=key,
            path=path,
            content=content,
            content_hash=hashlib.sha256(raw).hexdigest(),
            declared_dependencies=tuple(parse_declared_dependencies(content, keyword)),
            type_names=tuple(find_declared_types(content)),
            package=find_package_name(content),
        )


@dataclass(frozen=True)
class DependencyEdge:
    """A dependency of one source file on another.

    Attributes:
        source: Key of the dependent file
        target: Key of the file depended upon
        kind: Declared or implicit
        promoted: Implicit edge treated as declared for this build (auto-include)
    """

    source: str
    target: str
    kind: EdgeKind
    promoted: bool = False

    @property
    def orders(self) -> bool:
        """True if the edge constrains compilation order and takes part in cycle detection."""
        return self.kind is EdgeKind.DECLARED or self.promoted


@dataclass
class BuildPlan:
    """Topologically ordered files for one entry point.

    Attributes:
        order: Every reachable file, dependencies before dependents
        to_compile: Files selected for recompilation, in plan order
        reasons: Why each selected file is recompiled
    """

    order: List[str]
    to_compile: List[str] = field(default_factory=list)
    reasons: Dict[str, str] = field(default_factory=dict)

    @property
    def skipped(self) -> List[str]:
        """Files in the plan that are not recompiled."""
        selected = set(self.to_compile)
        return [key for key in self.order if key not in selected]


def source_key_for(path: str, source_root: str) -> str:
    """Compute the graph key of a file.

    Files under the source root are keyed by their POSIX path relative to it;
    anything else by its absolute path.

    Args:
        path: File path
        source_root: Configured source root

    Returns:
        Normalized key
    """
    abs_path = os.path.normpath(os.path.abspath(path))
    abs_root = os.path.normpath(os.path.abspath(source_root))

    try:
        rel = os.path.relpath(abs_path, abs_root)
    except ValueError:
        rel = None

    if rel is None or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return abs_path.replace(os.sep, "/")
    return rel.replace(os.sep, "/")


def type_name_for(key: str, extension: str = DEFAULT_SOURCE_EXTENSION) -> str:
    """Derive the type name of a file from its key (file name minus extension)."""
    name = os.path.basename(key)
    return name[: -len(extension)] if name.endswith(extension) else os.path.splitext(name)[0]
