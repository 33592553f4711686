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
"""Deterministic ordering and traversal of a dependency graph.

Both cycle detection and build ordering use one iterative depth-first search
with three-colour state tagging (unvisited / in progress / done), so the
search needs no recursion and reports the exact files on a cycle. Only
ordering edges (declared, or implicit edges promoted by auto-include) are
followed. Advisory implicit edges never create a cycle.

Children are visited in declaration order, which makes the output identical
across runs over an unchanged graph.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Tuple
from dataclasses import dataclass

from jbuild.constants import CircularDependencyError
from jbuild.graph_types import EdgeKind

if TYPE_CHECKING:
    from jbuild.dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)

WHITE = 0  # Unvisited
GREY = 1  # On the current DFS path
BLACK = 2  # Finished, all dependencies emitted


def _depth_first(graph: "DependencyGraph", roots: Iterable[str]) -> Tuple[List[str], Optional[List[str]]]:
    """Run the three-colour DFS from each root in turn.

    Args:
        graph: Dependency graph
        roots: Start nodes, visited in the given order

    Returns:
        Tuple of (post-order of finished nodes, cycle or None). A cycle lists the
        files on it in traversal order with the first file repeated at the end.
    """
    color: Dict[str, int] = {}
    post_order: List[str] = []

    for root in roots:
        if color.get(root, WHITE) != WHITE:
            continue

        color[root] = GREY
        path: List[str] = [root]
        stack: List[Iterator[str]] = [iter(graph.ordering_dependencies(root))]

        while stack:
            advanced = False
            for child in stack[-1]:
                state = color.get(child, WHITE)
                if state == GREY:
                    cycle = path[path.index(child) :] + [child]
                    logger.debug("Back edge %s -> %s closes cycle %s", path[-1], child, cycle)
                    return post_order, cycle
                if state == WHITE:
                    color[child] = GREY
                    path.append(child)
                    stack.append(iter(graph.ordering_dependencies(child)))
                    advanced = True
                    break

            if not advanced:
                stack.pop()
                node = path.pop()
                color[node] = BLACK
                post_order.append(node)

    return post_order, None


def find_cycle(graph: "DependencyGraph", roots: Optional[Iterable[str]] = None) -> Optional[List[str]]:
    """Find a cycle along ordering edges.

    Args:
        graph: Dependency graph
        roots: Start nodes (default: every discovered file, in discovery order)

    Returns:
        Files on the first cycle found (first file repeated at the end), or None
    """
    if roots is None:
        roots = graph.source_keys()
    _, cycle = _depth_first(graph, roots)
    return cycle


def compute_build_order(graph: "DependencyGraph", entry: Optional[str] = None) -> List[str]:
    """Order every file reachable from the entry so dependencies precede dependents.

    Args:
        graph: Dependency graph
        entry: Entry key (default: the graph's entry)

    Returns:
        Build order, entry file last

    Raises:
        CircularDependencyError: If the ordering edges reachable from entry form a cycle
    """
    root = entry if entry is not None else graph.entry
    order, cycle = _depth_first(graph, [root])
    if cycle is not None:
        raise CircularDependencyError(cycle)
    logger.debug("Build order: %s", order)
    return order


@dataclass(frozen=True)
class TreeRow:
    """One line of the dependency tree view.

    Attributes:
        depth: Nesting level, 0 for the entry file
        key: File key
        kind: Kind of the edge leading here (None for the entry file)
        promoted: Implicit edge auto-included in this build
        already_shown: The file was expanded earlier in the walk
        discovered: The file was read during graph construction
    """

    depth: int
    key: str
    kind: Optional[EdgeKind] = None
    promoted: bool = False
    already_shown: bool = False
    discovered: bool = True


def walk_dependency_tree(graph: "DependencyGraph", entry: Optional[str] = None) -> Iterator[TreeRow]:
    """Walk the dependency tree pre-order for display.

    Ordering dependencies come first, in declaration order, followed by advisory
    implicit dependencies. A file is expanded once. Later occurrences are
    yielded with already_shown set and no children.

    Args:
        graph: Dependency graph
        entry: Entry key (default: the graph's entry)

    Yields:
        TreeRow per displayed line
    """
    root = entry if entry is not None else graph.entry
    shown = set()
    stack: List[TreeRow] = [TreeRow(depth=0, key=root, discovered=graph.has_source(root))]

    while stack:
        row = stack.pop()

        if row.key in shown:
            yield TreeRow(row.depth, row.key, row.kind, row.promoted, already_shown=True, discovered=row.discovered)
            continue

        yield row
        if not row.discovered:
            continue
        shown.add(row.key)

        children: List[TreeRow] = []
        for edge in graph.dependencies(row.key):
            children.append(
                TreeRow(depth=row.depth + 1, key=edge.target, kind=edge.kind, promoted=edge.promoted, discovered=graph.has_source(edge.target))
            )
        stack.extend(reversed(children))
