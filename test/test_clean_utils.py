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
"""Tests for jbuild.clean_utils."""

import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jbuild.clean_utils import clean
from jbuild.config_utils import JBuildConfig


class TestClean:
    """Test removal of build outputs."""

    def test_removes_output_and_cache(self, config: JBuildConfig) -> None:
        """Both the output directory and the cache file are deleted."""
        os.makedirs(os.path.join(config.out_dir, "app"))
        with open(os.path.join(config.out_dir, "app", "Main.class"), "w", encoding="utf-8") as f:
            f.write("compiled")
        with open(config.cache_file, "w", encoding="utf-8") as f:
            f.write("{}")

        removed = clean(config)

        assert removed == [config.out_dir, config.cache_file]
        assert not os.path.exists(config.out_dir)
        assert not os.path.exists(config.cache_file)

    def test_idempotent(self, config: JBuildConfig) -> None:
        """Cleaning an already clean project succeeds and removes nothing."""
        assert clean(config) == []
        assert clean(config) == []

    def test_leaves_sources_alone(self, config: JBuildConfig, write_sources) -> None:
        """Source files are never touched."""
        paths = write_sources({"Main.java": "public class Main {}\n"})
        os.makedirs(config.out_dir)

        clean(config)

        assert os.path.isfile(paths["Main.java"])
