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
"""Runtime dependency verification for jbuild.

The command line calls require_package() for each runtime dependency before
doing any work, so a missing or outdated library is reported with an install
hint instead of an import traceback. Minimum versions follow the Ubuntu 24.04
LTS packages or the actual code requirements, whichever is higher.

Run it directly to print the status of every dependency:

    python -m jbuild.package_verification
"""

import sys
import logging
import argparse
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Optional, Tuple

from packaging.version import parse

from jbuild.color_utils import print_error, print_success
from jbuild.constants import EXIT_RUNTIME_ERROR, JBuildError

logger = logging.getLogger(__name__)

# Minimum versions of the runtime dependencies (PyPI names)
PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "networkx": "2.8.8",  # nx.subgraph_view filter arguments, nx.ancestors
    "colorama": "0.4.6",
    "packaging": "24.0",  # Needed by this module
}


class PackageRequirementError(JBuildError):
    """Raised when a runtime dependency is missing or too old."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_RUNTIME_ERROR)


def check_package_version(package_name: str, min_version: Optional[str] = None) -> Tuple[bool, bool, Optional[str]]:
    """Check whether a package is installed and new enough.

    Args:
        package_name: PyPI package name (e.g., 'networkx')
        min_version: Minimum version (default: PACKAGE_REQUIREMENTS entry)

    Returns:
        Tuple of (is_installed, meets_version, installed_version)

    Raises:
        ValueError: If no minimum version is known for the package
    """
    if min_version is None:
        min_version = PACKAGE_REQUIREMENTS.get(package_name)
        if min_version is None:
            raise ValueError(f"No version requirement specified for {package_name}")

    try:
        installed_version = version(package_name)
    except PackageNotFoundError:
        logger.debug("%s is not installed", package_name)
        return False, False, None

    meets_version = parse(installed_version) >= parse(min_version)
    logger.debug("%s %s (need >=%s)", package_name, installed_version, min_version)
    return True, meets_version, installed_version


def require_package(package_name: str, context: str = "jbuild") -> None:
    """Ensure a runtime dependency is usable.

    Args:
        package_name: PyPI package name
        context: What needs the package, used in the message

    Raises:
        PackageRequirementError: If the package is missing or too old
    """
    min_ver = PACKAGE_REQUIREMENTS.get(package_name)
    if min_ver is None:
        raise PackageRequirementError(f"Unknown package '{package_name}' - no version requirement defined")

    is_installed, meets_version, installed_version = check_package_version(package_name, min_ver)
    if not is_installed:
        raise PackageRequirementError(f"{package_name} is required for {context}. Install with: pip install '{package_name}>={min_ver}'")
    if not meets_version:
        raise PackageRequirementError(
            f"{package_name} {installed_version} is too old for {context}. "
            f"Upgrade with: pip install --upgrade '{package_name}>={min_ver}'"
        )


def require_all_packages(context: str = "jbuild") -> None:
    """Ensure every runtime dependency is usable (see require_package)."""
    for package_name in PACKAGE_REQUIREMENTS:
        require_package(package_name, context)


def check_all_packages() -> bool:
    """Check all runtime packages and print their status.

    Returns:
        True if every package is installed and new enough
    """
    print("🔍 jbuild Package Verification")
    print("=" * 40)

    all_ok = True
    for package_name, min_ver in PACKAGE_REQUIREMENTS.items():
        is_installed, meets_version, installed_version = check_package_version(package_name, min_ver)
        if is_installed and meets_version:
            print_success(f"{package_name} {installed_version}")
        elif is_installed:
            print_error(f"{package_name} {installed_version} (need >={min_ver})", prefix=False)
            all_ok = False
        else:
            print_error(f"{package_name} not installed", prefix=False)
            all_ok = False

    print("=" * 40)
    if not all_ok:
        requirements = " ".join(f"'{name}>={ver}'" for name, ver in PACKAGE_REQUIREMENTS.items())
        print(f"Install missing packages with:\n  pip install {requirements}")
    return all_ok


def main() -> int:
    """Print the dependency status. Exits 0 when everything is usable."""
    parser = argparse.ArgumentParser(description="Verify jbuild package dependencies")
    parser.parse_args()
    return 0 if check_all_packages() else 1


if __name__ == "__main__":
    sys.exit(main())
