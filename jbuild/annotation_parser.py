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
"""Parser for dependency annotations in the leading comment of a source file.

A source file declares the files it depends on inside the block comment that
opens the file:

    /*
     * using "Helper.java"
     * using "model/Order.java"
     */
    public class Main { ... }

Only that first block comment is honored. A directive further down the file is
ignored so that every dependency declaration stays visible at the top.
"""

import re
import logging
from typing import Dict, List, Optional, Pattern, Tuple

from jbuild.constants import DEFAULT_ANNOTATION_KEYWORD

logger = logging.getLogger(__name__)

BLOCK_COMMENT_START = "/*"
BLOCK_COMMENT_END = "*/"
LINE_COMMENT = "//"

_directive_patterns: Dict[str, Pattern[str]] = {}


def _directive_pattern(keyword: str) -> Pattern[str]:
    """Return the compiled directive regex for a keyword.

    Args:
        keyword: Directive keyword (e.g., 'using')

    Returns:
        Pattern capturing the quoted file name
    """
    pattern = _directive_patterns.get(keyword)
    if pattern is None:
        pattern = re.compile(r"(?<![\w])" + re.escape(keyword) + r'\s+"([^"\r\n]+)"')
        _directive_patterns[keyword] = pattern
    return pattern


def split_leading_comment(content: str) -> Tuple[Optional[str], str]:
    """Split content into its leading block comment and the remaining body.

    Blank lines and line comments may precede the block comment. Anything else
    before it means the file has no leading comment.

    Args:
        content: Raw file content

    Returns:
        Tuple of (comment text including delimiters or None, body after the comment)
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    pos = 0
    length = len(content)
    while pos < length:
        # Skip whitespace
        while pos < length and content[pos].isspace():
            pos += 1
        if content.startswith(LINE_COMMENT, pos):
            newline = content.find("\n", pos)
            pos = length if newline == -1 else newline + 1
            continue
        break

    if not content.startswith(BLOCK_COMMENT_START, pos):
        return None, content

    end = content.find(BLOCK_COMMENT_END, pos + len(BLOCK_COMMENT_START))
    if end == -1:
        # Unterminated comment runs to end of file
        return content[pos:], ""

    end += len(BLOCK_COMMENT_END)
    return content[pos:end], content[end:]


def parse_directives(comment: str, keyword: str = DEFAULT_ANNOTATION_KEYWORD) -> List[str]:
    """Extract directive targets from a block comment, one per line.

    Args:
        comment: Block comment text
        keyword: Directive keyword

    Returns:
        Declared names in written order, repeats included
    """
    pattern = _directive_pattern(keyword)
    declared: List[str] = []

    for line in comment.splitlines():
        match = pattern.search(line)
        if not match:
            continue
        name = match.group(1).strip()
        if not name:
            logger.debug("Skipping empty directive: %r", line)
            continue
        declared.append(name)

    return declared


def parse_declared_dependencies(content: str, keyword: str = DEFAULT_ANNOTATION_KEYWORD) -> List[str]:
    """Return the declared dependency names of a source file.

    Never fails: a file without a leading comment, or whose leading comment has
    no matching directive lines, declares nothing.

    Args:
        content: Raw file content
        keyword: Directive keyword

    Returns:
        Ordered list of declared file names, as written
    """
    comment, _ = split_leading_comment(content)
    if comment is None:
        return []
    return parse_directives(comment, keyword)
