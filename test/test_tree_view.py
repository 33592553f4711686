#!/usr/bin/env python3
#****************************************************************************************************************************************************
#* BSD 3-Clause License
#*
#* Copyright (c) 2025, Mana Battery
#* All rights reserved.
#*
#* Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
#*
#* 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
#* 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
#*    documentation and/or other materials provided with the distribution.
#* 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
#*    software without specific prior written permission.
#*
#* THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
#* THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
#* CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
#* PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
#* LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
#* EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#****************************************************************************************************************************************************
"""Tests for jbuild.tree_view."""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jbuild.constants import TREE_BRANCH, TREE_INDENT, TREE_ROOT_MARKER
from jbuild.dependency_graph import DependencyGraph
from jbuild.graph_types import EdgeKind, SourceFile
from jbuild.topo_order import TreeRow
from jbuild.tree_view import ALREADY_SHOWN_TAG, AUTO_INCLUDED_TAG, IMPLICIT_TAG, format_tree_row, render_dependency_tree


class TestFormatTreeRow:
    """Test single row rendering."""

    def test_root_row(self) -> None:
        """The entry file carries the root marker."""
        line = format_tree_row(TreeRow(depth=0, key="Main.java"))
        assert line.startswith(TREE_ROOT_MARKER)
        assert "Main.java" in line

    def test_declared_row(self) -> None:
        """Declared rows are indented by depth and untagged."""
        line = format_tree_row(TreeRow(depth=2, key="A.java", kind=EdgeKind.DECLARED))
        assert line.startswith(TREE_INDENT * 2)
        assert TREE_BRANCH in line
        assert IMPLICIT_TAG not in line

    def test_implicit_and_promoted_rows(self) -> None:
        """Implicit rows are tagged by whether they were auto-included."""
        advisory = format_tree_row(TreeRow(depth=1, key="Helper.java", kind=EdgeKind.IMPLICIT))
        promoted = format_tree_row(TreeRow(depth=1, key="Helper.java", kind=EdgeKind.IMPLICIT, promoted=True))
        assert IMPLICIT_TAG in advisory
        assert AUTO_INCLUDED_TAG in promoted

    def test_already_shown_row(self) -> None:
        """Repeated files are marked."""
        line = format_tree_row(TreeRow(depth=1, key="C.java", kind=EdgeKind.DECLARED, already_shown=True))
        assert ALREADY_SHOWN_TAG in line


class TestRenderDependencyTree:
    """Test whole-tree rendering."""

    def test_render(self) -> None:
        """One line per row, entry first."""
        graph = DependencyGraph("Main.java", ".")
        for key in ("Main.java", "A.java", "B.java"):
            graph.add_source(SourceFile(key=key, path=key, content="", content_hash=key))
        graph.add_dependency("Main.java", "A.java", EdgeKind.DECLARED)
        graph.add_dependency("Main.java", "B.java", EdgeKind.DECLARED)
        graph.add_dependency("A.java", "B.java", EdgeKind.DECLARED)

        lines = render_dependency_tree(graph)

        assert len(lines) == 4
        assert "Main.java" in lines[0]
        assert "A.java" in lines[1]
        assert "B.java" in lines[2] and ALREADY_SHOWN_TAG not in lines[2]
        assert "B.java" in lines[3] and ALREADY_SHOWN_TAG in lines[3]
