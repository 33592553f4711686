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
"""Dependency graph construction from annotated source files using NetworkX.

The graph is rebuilt from the file system on every invocation. Starting at the
entry file, declared dependencies are resolved depth-first against a single
source root. Implicit references are recorded as advisory edges, or promoted to
declared-equivalent edges for this build when auto-include is active.
"""

import os
import logging
import dataclasses
from typing import Iterable, List, Optional, Set, Tuple

import networkx as nx

from jbuild.constants import DEFAULT_ANNOTATION_KEYWORD, DEFAULT_SOURCE_EXTENSION, CircularDependencyError, MissingDependencyError
from jbuild.graph_types import DependencyEdge, EdgeKind, SourceFile, source_key_for, type_name_for
from jbuild.reference_scanner import list_sibling_type_names, scan_references
from jbuild.topo_order import find_cycle

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Source files and the dependency edges between them.

    Nodes are keyed by normalized path. A node carries its SourceFile in the
    'source' attribute; advisory nodes reached only through an implicit edge
    have source None. Edges carry 'kind' (EdgeKind) and 'promoted' attributes.
    """

    def __init__(self, entry: str, source_root: str):
        self.entry = entry
        self.source_root = source_root
        self._graph: "nx.DiGraph[str]" = nx.DiGraph()
        self._discovery_order: List[str] = []

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has_source(key)

    def __len__(self) -> int:
        return len(self._discovery_order)

    @property
    def graph(self) -> "nx.DiGraph[str]":
        """Underlying NetworkX graph (all edge kinds)."""
        return self._graph

    def add_source(self, source: SourceFile) -> None:
        """Register a discovered file.

        Raises:
            ValueError: If a file with the same key is already registered
        """
        if self.has_source(source.key):
            raise ValueError(f"Duplicate source file in graph: {source.key}")
        self._graph.add_node(source.key, source=source)
        self._discovery_order.append(source.key)

    def has_source(self, key: str) -> bool:
        """True if the file was read during construction."""
        return key in self._graph and self._graph.nodes[key].get("source") is not None

    def source(self, key: str) -> SourceFile:
        """Return the SourceFile registered for a key.

        Raises:
            KeyError: If the key was never discovered
        """
        if not self.has_source(key):
            raise KeyError(key)
        source: SourceFile = self._graph.nodes[key]["source"]
        return source

    def source_keys(self) -> List[str]:
        """Keys of discovered files in discovery order."""
        return list(self._discovery_order)

    def sources(self) -> List[SourceFile]:
        """Discovered files in discovery order."""
        return [self.source(key) for key in self._discovery_order]

    def add_dependency(self, source: str, target: str, kind: EdgeKind, promoted: bool = False) -> None:
        """Record that source depends on target.

        A declared edge is never downgraded by a later implicit one.
        """
        if self._graph.has_edge(source, target) and self._graph.edges[source, target]["kind"] is EdgeKind.DECLARED:
            return
        if target not in self._graph:
            self._graph.add_node(target, source=None)
        self._graph.add_edge(source, target, kind=kind, promoted=promoted and kind is EdgeKind.IMPLICIT)

    def _edge(self, source: str, target: str) -> DependencyEdge:
        data = self._graph.edges[source, target]
        return DependencyEdge(source=source, target=target, kind=data["kind"], promoted=data["promoted"])

    def dependencies(self, key: str) -> List[DependencyEdge]:
        """All outgoing edges of a file in display order.

        Declared edges come first in declaration order, then promoted implicit
        edges, then advisory implicit edges, each implicit group sorted by key.
        """
        if key not in self._graph:
            return []
        edges = [self._edge(key, target) for target in self._graph.successors(key)]
        declared = [e for e in edges if e.kind is EdgeKind.DECLARED]
        promoted = sorted((e for e in edges if e.kind is EdgeKind.IMPLICIT and e.promoted), key=lambda e: e.target)
        advisory = sorted((e for e in edges if e.kind is EdgeKind.IMPLICIT and not e.promoted), key=lambda e: e.target)
        return declared + promoted + advisory

    def ordering_dependencies(self, key: str) -> List[str]:
        """Targets of the edges that constrain compilation order, in traversal order."""
        return [edge.target for edge in self.dependencies(key) if edge.orders]

    def implicit_dependencies(self, key: str) -> List[DependencyEdge]:
        """Implicit edges of a file, promoted or not, sorted by target."""
        return sorted((e for e in self.dependencies(key) if e.kind is EdgeKind.IMPLICIT), key=lambda e: e.target)

    def edges(self, kind: Optional[EdgeKind] = None) -> List[DependencyEdge]:
        """All edges, optionally restricted to one kind."""
        result = []
        for key in self._graph.nodes():
            for edge in self.dependencies(key):
                if kind is None or edge.kind is kind:
                    result.append(edge)
        return result

    def ordering_subgraph(self) -> "nx.DiGraph[str]":
        """Read-only view containing only the ordering edges."""

        def _orders(source: str, target: str) -> bool:
            data = self._graph.edges[source, target]
            return bool(data["kind"] is EdgeKind.DECLARED or data["promoted"])

        view: "nx.DiGraph[str]" = nx.subgraph_view(self._graph, filter_edge=_orders)
        return view

    def transitive_dependents(self, keys: Iterable[str]) -> Set[str]:
        """Files that depend, directly or indirectly, on any of the given files.

        Args:
            keys: Files whose dependents are wanted

        Returns:
            Set of dependent keys (the given files are not included unless they depend on each other)
        """
        ordering = self.ordering_subgraph()
        dependents: Set[str] = set()
        for key in keys:
            if key in ordering:
                dependents.update(nx.ancestors(ordering, key))
        return dependents


def _sibling_path(directory: str, name: str, extension: str) -> str:
    return os.path.join(directory, name + extension)


def _find_implicit_references(source: SourceFile, extension: str, source_root: str) -> List[Tuple[str, str]]:
    """Resolve a file's undeclared references to sibling files.

    A sibling counts as declared only when a declaration resolves to that
    same file. A declaration of model/Helper.java does not cover Helper.java.

    Returns:
        Sorted list of (key, path) for each referenced sibling
    """
    directory = os.path.dirname(source.path)
    siblings = list_sibling_type_names(directory, extension, exclude=[os.path.basename(source.path)])
    declared_keys = {source_key_for(os.path.join(source_root, name), source_root) for name in source.declared_dependencies}
    declared_names = {name for name in siblings if source_key_for(_sibling_path(directory, name, extension), source_root) in declared_keys}
    own_names = {source.stem, *source.type_names}

    referenced = scan_references(source.content, siblings, own_names=own_names, declared_names=declared_names)

    resolved = []
    for name in referenced:
        path = _sibling_path(directory, name, extension)
        resolved.append((source_key_for(path, source_root), path))
    return sorted(resolved)


def _report_implicit(source: SourceFile, implicit: List[Tuple[str, str]], auto_include: bool, keyword: str) -> None:
    """Log the undeclared references of one file."""
    for key, _ in implicit:
        name = os.path.basename(key)
        if auto_include:
            logger.info("%s references %s without declaring it; auto-including '%s' in compilation", source.key, type_name_for(key), name)
        else:
            logger.warning("%s references class '%s' without declaring it; add '%s \"%s\"' to the header comment", source.key, type_name_for(key), keyword, name)


def build_dependency_graph(
    entry_path: str,
    source_root: str,
    auto_include: bool = False,
    keyword: str = DEFAULT_ANNOTATION_KEYWORD,
    extension: str = DEFAULT_SOURCE_EXTENSION,
) -> DependencyGraph:
    """Build and validate the dependency graph reachable from an entry file.

    Discovery is depth-first with an explicit stack. Each file is read once.
    Declared names resolve relative to the source root. With auto_include,
    implicit references are followed like declarations, so a promoted file's
    own dependencies are discovered too.

    Args:
        entry_path: Path to the entry file
        source_root: Directory declared names resolve against
        auto_include: Promote implicit references to ordering edges for this build
        keyword: Annotation directive keyword
        extension: Source file extension

    Returns:
        Validated DependencyGraph

    Raises:
        MissingDependencyError: If a declared file does not exist under the source root
        CircularDependencyError: If ordering edges form a cycle
        OSError: If a discovered file cannot be read
    """
    entry_key = source_key_for(entry_path, source_root)
    graph = DependencyGraph(entry_key, source_root)
    stack: List[Tuple[str, str]] = [(entry_key, entry_path)]

    while stack:
        key, path = stack.pop()
        if graph.has_source(key):
            continue

        loaded = SourceFile.load(path, key, keyword)
        implicit = _find_implicit_references(loaded, extension, source_root)
        source = dataclasses.replace(loaded, inferred_dependencies=frozenset(k for k, _ in implicit))
        graph.add_source(source)

        children: List[Tuple[str, str]] = []
        for name in source.declared_dependencies:
            dep_path = os.path.join(source_root, name)
            if not os.path.isfile(dep_path):
                raise MissingDependencyError(name, key)
            dep_key = source_key_for(dep_path, source_root)
            if any(dep_key == seen for seen, _ in children):
                logger.debug("%s declares %s more than once", key, name)
                continue
            graph.add_dependency(key, dep_key, EdgeKind.DECLARED)
            children.append((dep_key, dep_path))

        declared_keys = {dep_key for dep_key, _ in children}
        implicit = [(k, p) for k, p in implicit if k not in declared_keys]
        for imp_key, imp_path in implicit:
            graph.add_dependency(key, imp_key, EdgeKind.IMPLICIT, promoted=auto_include)
            if auto_include:
                children.append((imp_key, imp_path))

        if implicit:
            _report_implicit(source, implicit, auto_include, keyword)

        for child in reversed(children):
            if not graph.has_source(child[0]):
                stack.append(child)

    cycle = find_cycle(graph)
    if cycle is not None:
        raise CircularDependencyError(cycle)

    logger.debug("Built graph with %s files and %s edges", len(graph), graph.graph.number_of_edges())
    return graph
