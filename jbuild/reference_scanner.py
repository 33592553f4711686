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
"""Textual reference scanning for undeclared (implicit) dependencies.

The scanner is a syntactic approximation. It tokenizes identifiers in the body
of a file and intersects them with the type names of sibling source files. A
name mentioned only in a comment or string literal is still reported: false
positives are acceptable noise, a missed true reference is not.
"""

import os
import re
import logging
from typing import Iterable, List, Optional, Set

from jbuild.annotation_parser import split_leading_comment
from jbuild.constants import DEFAULT_SOURCE_EXTENSION

logger = logging.getLogger(__name__)

RE_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
RE_TYPE_DECLARATION = re.compile(
    r"^[ \t]*((?:(?:public|protected|private|abstract|final|static|sealed|non-sealed|strictfp)\s+)*)(class|interface|enum|record|@interface)\s+([A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
RE_PACKAGE = re.compile(r"^\s*package\s+([A-Za-z_$][\w$]*(?:\s*\.\s*[A-Za-z_$][\w$]*)*)\s*;", re.MULTILINE)
RE_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
RE_LINE_COMMENT = re.compile(r"//[^\n]*")


def _strip_comments(content: str) -> str:
    """Remove comments so that declarations inside them are not picked up."""
    return RE_LINE_COMMENT.sub("", RE_BLOCK_COMMENT.sub("", content))


def find_declared_types(content: str) -> List[str]:
    """Find the type names declared at the start of a line in a source file.

    Public types come first, so the first entry is the file's public type when
    it has one.

    Args:
        content: Raw file content

    Returns:
        List of declared type names (public first, then source order)
    """
    public_types: List[str] = []
    other_types: List[str] = []

    for match in RE_TYPE_DECLARATION.finditer(_strip_comments(content)):
        modifiers, _, name = match.groups()
        target = public_types if "public" in modifiers.split() else other_types
        if name not in public_types and name not in other_types:
            target.append(name)

    return public_types + other_types


def find_package_name(content: str) -> Optional[str]:
    """Return the package declared by a source file, if any.

    Args:
        content: Raw file content

    Returns:
        Dotted package name, or None for the default package
    """
    match = RE_PACKAGE.search(_strip_comments(content))
    if not match:
        return None
    return re.sub(r"\s+", "", match.group(1))


def list_sibling_type_names(directory: str, extension: str = DEFAULT_SOURCE_EXTENSION, exclude: Iterable[str] = ()) -> Set[str]:
    """List type names derived from the source files in a directory.

    The type name of a source file is its file name without the extension.

    Args:
        directory: Directory to list
        extension: Source file extension
        exclude: File names to leave out (e.g., the file being scanned)

    Returns:
        Set of sibling type names
    """
    excluded = set(exclude)
    names: Set[str] = set()

    try:
        entries = os.listdir(directory or ".")
    except OSError as e:
        logger.warning("Cannot list %s for reference scanning: %s", directory, e)
        return names

    for entry in entries:
        if entry in excluded or not entry.endswith(extension):
            continue
        if not os.path.isfile(os.path.join(directory or ".", entry)):
            continue
        names.add(entry[: -len(extension)])

    return names


def scan_references(content: str, known_names: Iterable[str], own_names: Iterable[str] = (), declared_names: Iterable[str] = ()) -> Set[str]:
    """Return the known names that appear as free-standing identifiers in a file body.

    The leading annotation comment is not part of the body, so a name that
    appears only in a directive is not a reference.

    Args:
        content: Raw file content
        known_names: Candidate names (sibling type names)
        own_names: Names of the file itself, never reported
        declared_names: Names already declared, never reported

    Returns:
        Set of referenced names that are neither own nor declared
    """
    candidates = set(known_names) - set(own_names) - set(declared_names)
    if not candidates:
        return set()

    _, body = split_leading_comment(content)
    found: Set[str] = set()

    for match in RE_IDENTIFIER.finditer(body):
        token = match.group(0)
        if token in candidates:
            found.add(token)
            if len(found) == len(candidates):
                break

    return found
