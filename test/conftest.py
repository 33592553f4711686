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
"""Pytest configuration and shared fixtures for jbuild tests.

The external compiler and runtime are replaced by small Python scripts that
honour the javac/java command-line contract, so builds exercise the real
subprocess path without needing a JDK:

- fake javac: writes <out>/<package dirs>/<Stem>.class for every source, appends
  the batch of file names to <out>/../compile.log, and fails with a javac-style
  diagnostic when a source contains SYNTAX_ERROR.
- fake java: prints the entry symbol, its options and program arguments; a
  symbol ending in 'Crash' throws and exits 3.
"""

import os
import sys
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Sequence

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jbuild.config_utils import JBuildConfig
from jbuild.toolchain import clear_cache

FAKE_JAVAC = r'''
import os
import re
import sys

args = sys.argv[1:]
out = args[args.index("-d") + 1]
sources = [a for a in args if a.endswith(".java")]

log_path = os.path.join(os.path.dirname(os.path.abspath(out)), "compile.log")
with open(log_path, "a", encoding="utf-8") as log:
    log.write(" ".join(os.path.basename(s) for s in sources) + "\n")

failed = False
for src in sources:
    with open(src, encoding="utf-8") as f:
        lines = f.read().splitlines()
    for number, line in enumerate(lines, 1):
        if "SYNTAX_ERROR" in line:
            sys.stderr.write(f"{src}:{number}: error: ';' expected\n{line}\n{' ' * (len(line) - len(line.lstrip()))}^\n1 error\n")
            failed = True
if failed:
    sys.exit(1)

for src in sources:
    with open(src, encoding="utf-8") as f:
        text = f.read()
    match = re.search(r"^\s*package\s+([\w.]+)\s*;", text, re.MULTILINE)
    target = os.path.join(out, *match.group(1).split(".")) if match else out
    os.makedirs(target, exist_ok=True)
    with open(os.path.join(target, os.path.splitext(os.path.basename(src))[0] + ".class"), "w", encoding="utf-8") as f:
        f.write("compiled")
'''

FAKE_JAVA = r'''
import sys

args = sys.argv[1:]
index = args.index("-cp")
rest = args[index + 2:]
count = 0
while count < len(rest) and rest[count].startswith("-"):
    count += 1
options, symbol, program_args = rest[:count], rest[count], rest[count + 1:]

if symbol.endswith("Crash"):
    sys.stderr.write(f'Exception in thread "main" java.lang.IllegalStateException: boom\n\tat {symbol}.main({symbol}.java:3)\n')
    sys.exit(3)

print(f"Hello from {symbol}")
print("args: " + " ".join(program_args))
print("opts: " + " ".join(options))
'''


@pytest.fixture(autouse=True)
def reset_tool_cache() -> Generator[None, None, None]:
    """Keep tool detection results from leaking between tests."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="jbuild_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def src_dir(temp_dir: str) -> str:
    """Source root inside the temporary directory."""
    path = os.path.join(temp_dir, "src")
    os.makedirs(path)
    return path


@pytest.fixture
def write_sources(src_dir: str) -> Callable[[Dict[str, str]], Dict[str, str]]:
    """Factory writing {relative name: content} under the source root.

    Returns:
        Callable returning {relative name: absolute path}
    """

    def _write(files: Dict[str, str]) -> Dict[str, str]:
        paths = {}
        for name, content in files.items():
            path = os.path.join(src_dir, name)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
            paths[name] = path
        return paths

    return _write


@pytest.fixture
def fake_toolchain(temp_dir: str) -> Dict[str, List[str]]:
    """Write the fake javac/java scripts and return their command lines."""
    tools = os.path.join(temp_dir, "tools")
    os.makedirs(tools)
    commands = {}
    for name, script in (("javac", FAKE_JAVAC), ("java", FAKE_JAVA)):
        path = os.path.join(tools, f"fake_{name}.py")
        with open(path, "w", encoding="utf-8") as f:
            f.write(script)
        commands[name] = [sys.executable, path]
    return commands


@pytest.fixture
def config(temp_dir: str, src_dir: str, fake_toolchain: Dict[str, List[str]]) -> JBuildConfig:
    """Configuration pointing at the temporary project and the fake toolchain."""
    return JBuildConfig(
        source_root=src_dir,
        out_dir=os.path.join(temp_dir, "out"),
        cache_file=os.path.join(temp_dir, "jbuild-cache.json"),
        compiler=fake_toolchain["javac"],
        runtime=fake_toolchain["java"],
    )


@pytest.fixture
def compile_log(temp_dir: str) -> Callable[[], List[List[str]]]:
    """Reader for the fake compiler's invocation log (one file list per invocation)."""

    def _read() -> List[List[str]]:
        path = os.path.join(temp_dir, "compile.log")
        if not os.path.exists(path):
            return []
        with open(path, encoding="utf-8") as f:
            return [line.split() for line in f.read().splitlines()]

    return _read


def _java_class(name: str, body: str = "", using: Sequence[str] = (), package: str = "") -> str:
    header = ""
    if using:
        header = "/*\n" + "".join(f' * using "{dep}"\n' for dep in using) + " */\n"
    package_line = f"package {package};\n\n" if package else ""
    return f"{header}{package_line}public class {name} {{\n{body}}}\n"


@pytest.fixture
def java_class() -> Callable[..., str]:
    """Render a minimal public Java class: java_class(name, body="", using=(), package="")."""
    return _java_class
