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
"""Human-readable dependency tree rendering."""

import logging
from typing import List, Optional

from jbuild.color_utils import Colors, colored
from jbuild.constants import TREE_BRANCH, TREE_INDENT, TREE_ROOT_MARKER
from jbuild.dependency_graph import DependencyGraph
from jbuild.graph_types import EdgeKind
from jbuild.topo_order import TreeRow, walk_dependency_tree

logger = logging.getLogger(__name__)

IMPLICIT_TAG = "(implicit)"
AUTO_INCLUDED_TAG = "(auto-included)"
ALREADY_SHOWN_TAG = "(already shown)"


def format_tree_row(row: TreeRow) -> str:
    """Format one tree row.

    Declared edges are green. Implicit edges are magenta and tagged, so they
    stay distinguishable from declared ones even without color.

    Args:
        row: Row from walk_dependency_tree

    Returns:
        Display line
    """
    if row.depth == 0:
        return f"{TREE_ROOT_MARKER} {colored(row.key, Colors.GREEN, Colors.BRIGHT)}"

    indent = TREE_INDENT * row.depth
    if row.kind is EdgeKind.IMPLICIT:
        branch = colored(TREE_BRANCH, Colors.YELLOW)
        name = colored(row.key, Colors.MAGENTA)
        tag = AUTO_INCLUDED_TAG if row.promoted else IMPLICIT_TAG
        line = f"{indent}{branch} {name} {colored(tag, Colors.BRIGHT_BLACK)}"
    else:
        line = f"{indent}{colored(TREE_BRANCH, Colors.BLUE)} {colored(row.key, Colors.GREEN)}"

    if row.already_shown:
        line += f" {colored(ALREADY_SHOWN_TAG, Colors.YELLOW)}"
    return line


def render_dependency_tree(graph: DependencyGraph, entry: Optional[str] = None) -> List[str]:
    """Render the dependency tree of an entry file.

    Args:
        graph: Dependency graph
        entry: Entry key (default: the graph's entry)

    Returns:
        Display lines, entry file first
    """
    return [format_tree_row(row) for row in walk_dependency_tree(graph, entry)]
