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
"""Removal of build outputs (output directory and build cache)."""

import os
import shutil
import logging
from typing import List

from jbuild.config_utils import JBuildConfig
from jbuild.constants import JBuildError

logger = logging.getLogger(__name__)


def clean(config: JBuildConfig) -> List[str]:
    """Delete the output directory and the cache file.

    Stateless and idempotent: whatever does not exist is skipped.

    Args:
        config: Project configuration

    Returns:
        Paths that were removed

    Raises:
        JBuildError: If an existing path cannot be removed
    """
    removed: List[str] = []

    if os.path.isdir(config.out_dir):
        try:
            shutil.rmtree(config.out_dir)
        except OSError as e:
            raise JBuildError(f"Failed to remove output directory {config.out_dir}: {e}") from e
        removed.append(config.out_dir)
        logger.debug("Removed output directory %s", config.out_dir)

    if os.path.isfile(config.cache_file):
        try:
            os.remove(config.cache_file)
        except OSError as e:
            raise JBuildError(f"Failed to remove cache file {config.cache_file}: {e}") from e
        removed.append(config.cache_file)
        logger.debug("Removed cache file %s", config.cache_file)

    return removed
