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
"""Reformatting of compiler and runtime diagnostics for the terminal.

The formatting is cosmetic only: callers always keep the raw text, and when a
compiler report cannot be parsed it is shown unchanged.
"""

import re
import logging
from typing import List, Optional
from dataclasses import dataclass, field

from jbuild.color_utils import Colors, colored, separator, terminal_width

logger = logging.getLogger(__name__)

# ./src/Main.java:10: error: cannot find symbol
RE_DIAGNOSTIC = re.compile(r"^(?P<file>.+?\.java):(?P<line>\d+): (?P<severity>error|warning): (?P<message>.*)$")
RE_SUMMARY = re.compile(r"^\d+ (error|errors|warning|warnings)$")
MAX_CONTEXT_LINES = 7
MAX_STACK_FRAMES = 10


@dataclass
class CompilerDiagnostic:
    """One javac diagnostic.

    Attributes:
        file: Source file the diagnostic refers to
        line: 1-based line number
        severity: 'error' or 'warning'
        message: Diagnostic message
        source_line: Offending source line, if javac echoed it
        caret_offset: Column of the caret under source_line, if present
        context: Additional lines such as 'symbol:' and 'location:'
    """

    file: str
    line: int
    severity: str
    message: str
    source_line: Optional[str] = None
    caret_offset: Optional[int] = None
    context: List[str] = field(default_factory=list)


def parse_compiler_diagnostics(text: str) -> List[CompilerDiagnostic]:
    """Parse javac output into diagnostics.

    Args:
        text: Raw compiler output

    Returns:
        Diagnostics in the order reported (empty if none could be parsed)
    """
    diagnostics: List[CompilerDiagnostic] = []
    lines = text.splitlines()
    i = 0

    while i < len(lines):
        match = RE_DIAGNOSTIC.match(lines[i].strip())
        if not match:
            i += 1
            continue

        diag = CompilerDiagnostic(file=match.group("file"), line=int(match.group("line")), severity=match.group("severity"), message=match.group("message").strip())
        i += 1

        # Echoed source line followed by the caret line
        if i < len(lines) and lines[i].strip() and not lines[i].strip().startswith("^") and not RE_DIAGNOSTIC.match(lines[i].strip()):
            code_line = lines[i]
            diag.source_line = code_line.strip()
            i += 1
            if i < len(lines) and lines[i].strip().startswith("^"):
                code_indent = len(code_line) - len(code_line.lstrip())
                caret_indent = len(lines[i]) - len(lines[i].lstrip())
                diag.caret_offset = max(0, caret_indent - code_indent)
                i += 1

        while i < len(lines) and len(diag.context) < MAX_CONTEXT_LINES:
            context_line = lines[i].strip()
            if not context_line or RE_DIAGNOSTIC.match(context_line) or RE_SUMMARY.match(context_line):
                break
            diag.context.append(context_line)
            i += 1

        diagnostics.append(diag)

    logger.debug("Parsed %s compiler diagnostics", len(diagnostics))
    return diagnostics


def format_compiler_errors(text: str) -> str:
    """Render compiler output as a readable report.

    Args:
        text: Raw compiler output

    Returns:
        Formatted report; the raw text, indented, when nothing could be parsed
    """
    out: List[str] = ["", colored("💥 Compilation Failed", Colors.RED, Colors.BRIGHT)]
    diagnostics = parse_compiler_diagnostics(text)

    if not diagnostics:
        out.append("")
        out.extend(f"  {colored(line, Colors.RED)}" for line in text.splitlines())
        return "\n".join(out) + "\n"

    errors = 0
    for diag in diagnostics:
        if diag.severity == "error":
            errors += 1
            title = f"Error #{errors}"
            color = Colors.YELLOW
        else:
            title = "Warning"
            color = Colors.MAGENTA

        out.append("")
        out.append(f"{colored(title, color, Colors.BRIGHT)} {colored(separator(terminal_width() - len(title) - 3), color)}")
        out.append(f"  📄 {colored(diag.file, Colors.CYAN)}")
        out.append(f"  📍 Line {colored(str(diag.line), Colors.YELLOW, Colors.BRIGHT)}")
        out.append(f"  💬 {colored(diag.message, Colors.WHITE)}")

        if diag.source_line:
            out.append("")
            out.append(f"  {diag.source_line}")
            if diag.caret_offset is not None:
                out.append(f"  {colored(' ' * diag.caret_offset + '^', Colors.RED, Colors.BRIGHT)}")

        for context_line in diag.context:
            bullet = colored("•", Colors.BLUE)
            out.append(f"    {bullet} {colored(context_line, Colors.BRIGHT_BLACK)}")

    out.append("")
    out.append(colored(separator(), Colors.YELLOW))
    word = "error" if errors == 1 else "errors"
    out.append(f"📊 {colored(f'{errors} {word}', Colors.RED, Colors.BRIGHT)}")
    out.append("")
    out.append(colored("💡 Fix the errors above and try again.", Colors.CYAN))
    return "\n".join(out) + "\n"


def format_runtime_errors(text: str) -> str:
    """Render a program's error stream, highlighting exceptions and stack frames.

    Args:
        text: Captured standard error of the program

    Returns:
        Formatted report
    """
    lines = text.splitlines()

    if any("StackOverflowError" in line for line in lines):
        frames = [line.strip() for line in lines if line.strip().startswith("at ")]
        out = ["", colored("🔄 Stack Overflow Error - Infinite Recursion Detected!", Colors.RED, Colors.BRIGHT), colored(separator(), Colors.RED)]
        out.append("")
        out.append(f"  💡 {colored('This usually happens when:', Colors.YELLOW, Colors.BRIGHT)}")
        out.append("    • A method calls itself without a proper base case")
        out.append("    • Methods call each other in a circular pattern")
        if frames:
            out.append("")
            out.append(f"  📍 {colored('Top of call stack (most recent calls):', Colors.CYAN, Colors.BRIGHT)}")
            for number, frame in enumerate(frames[:MAX_STACK_FRAMES], 1):
                out.append(f"    {number}. {colored(frame, Colors.CYAN if '.java:' in frame else Colors.BRIGHT_BLACK)}")
            if len(frames) > MAX_STACK_FRAMES:
                out.append(f"    ↓ ... and {len(frames) - MAX_STACK_FRAMES} more recursive calls")
        out.append(colored(separator(), Colors.RED))
        return "\n".join(out) + "\n"

    if not any("Exception" in line or "Error" in line for line in lines):
        return f"⚠️  {colored('Error:', Colors.YELLOW, Colors.BRIGHT)}\n{colored(text, Colors.RED)}"

    out = ["", colored("💥 Runtime Error", Colors.RED, Colors.BRIGHT), colored(separator(), Colors.RED)]
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("at "):
            if ".java:" in stripped:
                out.append(f"    → {colored(stripped, Colors.CYAN)}")
            else:
                out.append(f"    · {colored(stripped, Colors.BRIGHT_BLACK)}")
        elif stripped.startswith("Caused by:"):
            out.append("")
            out.append(f"  ↳ {colored(stripped, Colors.YELLOW)}")
        elif index == 0 or stripped.startswith("Exception in thread"):
            out.append("")
            out.append(f"  🔥 {colored(stripped, Colors.RED, Colors.BRIGHT)}")
        else:
            out.append(f"  {colored(stripped, Colors.RED)}")

    out.append("")
    out.append(colored(separator(), Colors.RED))
    out.append("💡 Check the stack trace above to find the issue.")
    return "\n".join(out) + "\n"
