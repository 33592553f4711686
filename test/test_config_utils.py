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
"""Tests for jbuild.config_utils."""

import os
import sys
import logging
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jbuild.cache_utils import InvalidationPolicy
from jbuild.config_utils import CONFIG_TEMPLATE, JBuildConfig, config_from_dict, load_config, write_config_template
from jbuild.constants import DEFAULT_COMPILER, DEFAULT_RUNTIME, EXIT_INVALID_ARGS, ConfigError


def write_config(directory: str, text: str) -> str:
    path = os.path.join(directory, "jbuild.toml")
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


class TestLoadConfig:
    """Test reading jbuild.toml."""

    def test_missing_file_gives_defaults(self, temp_dir: str) -> None:
        """Without a config file every default applies, anchored at the file's directory."""
        config = load_config(os.path.join(temp_dir, "jbuild.toml"))

        assert config.source_root == os.path.normpath(temp_dir)
        assert config.out_dir == os.path.join(os.path.normpath(temp_dir), "out")
        assert config.cache_file == os.path.join(os.path.normpath(temp_dir), "jbuild-cache.json")
        assert config.compiler == [DEFAULT_COMPILER]
        assert config.runtime == [DEFAULT_RUNTIME]
        assert config.invalidation is InvalidationPolicy.CONTENT
        assert config.auto_include_implicit_deps is False

    def test_values_read(self, temp_dir: str) -> None:
        """Every supported key is read and relative paths resolve against the file."""
        path = write_config(
            temp_dir,
            """
src_dir = "src"
out_dir = "build/classes"
entrypoint = "App.java"
jvm_opts = ["-Xmx256m", "-ea"]
javac_opts = ["-g"]
compiler = "javac -J-Xmx1g"
runtime = ["java"]
auto_include_implicit_deps = true
invalidation = "transitive"
""",
        )
        config = load_config(path)

        assert config.source_root == os.path.join(os.path.normpath(temp_dir), "src")
        assert config.out_dir == os.path.join(os.path.normpath(temp_dir), "build", "classes")
        assert config.entrypoint == "App.java"
        assert config.runtime_options == ["-Xmx256m", "-ea"]
        assert config.compiler_options == ["-g"]
        assert config.compiler == ["javac", "-J-Xmx1g"]
        assert config.runtime == ["java"]
        assert config.auto_include_implicit_deps is True
        assert config.invalidation is InvalidationPolicy.TRANSITIVE

    def test_absolute_paths_kept(self, temp_dir: str) -> None:
        """Absolute paths are not re-anchored."""
        out = os.path.join(temp_dir, "elsewhere")
        config = config_from_dict({"out_dir": out}, base_dir="/ignored")
        assert config.out_dir == out

    def test_invalid_toml_falls_back_to_defaults(self, temp_dir: str, caplog: pytest.LogCaptureFixture) -> None:
        """A file that is not TOML is reported and ignored."""
        path = write_config(temp_dir, "src_dir = [unclosed\n")

        with caplog.at_level(logging.WARNING):
            config = load_config(path)

        assert config.source_root == os.path.normpath(temp_dir)
        assert "Failed to parse" in caplog.text

    def test_unknown_keys_ignored(self, temp_dir: str) -> None:
        """Unknown keys do not fail loading."""
        config = load_config(write_config(temp_dir, 'colour = "blue"\n'))
        assert isinstance(config, JBuildConfig)

    @pytest.mark.parametrize(
        "text",
        [
            "src_dir = 3\n",
            'jvm_opts = "-Xmx1g"\n',
            'auto_include_implicit_deps = "yes"\n',
            'invalidation = "sometimes"\n',
            "compiler = []\n",
            'annotation_keyword = ""\n',
        ],
    )
    def test_invalid_values_raise(self, temp_dir: str, text: str) -> None:
        """Values of the wrong shape are configuration errors."""
        with pytest.raises(ConfigError) as exc_info:
            load_config(write_config(temp_dir, text))
        assert exc_info.value.exit_code == EXIT_INVALID_ARGS


class TestWriteConfigTemplate:
    """Test the init template."""

    def test_creates_template(self, temp_dir: str) -> None:
        """The template is written and loads as a valid configuration."""
        path = write_config_template(os.path.join(temp_dir, "jbuild.toml"))

        with open(path, encoding="utf-8") as f:
            assert f.read() == CONFIG_TEMPLATE
        config = load_config(path)
        assert config.entrypoint == "Main.java"
        assert config.runtime_options == ["-Xmx256m"]

    def test_refuses_to_overwrite(self, temp_dir: str) -> None:
        """An existing file is kept unless forced."""
        path = write_config(temp_dir, 'src_dir = "mine"\n')

        with pytest.raises(ConfigError):
            write_config_template(path)
        with open(path, encoding="utf-8") as f:
            assert f.read() == 'src_dir = "mine"\n'

        write_config_template(path, force=True)
        with open(path, encoding="utf-8") as f:
            assert f.read() == CONFIG_TEMPLATE
