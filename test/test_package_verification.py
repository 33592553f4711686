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
"""Tests for jbuild.package_verification."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jbuild.constants import EXIT_RUNTIME_ERROR
from jbuild.package_verification import PACKAGE_REQUIREMENTS, PackageRequirementError, check_package_version, main, require_all_packages, require_package


class TestCheckPackageVersion:
    """Test version checks against installed distributions."""

    def test_installed_package(self) -> None:
        """networkx is installed and new enough."""
        is_installed, meets_version, installed = check_package_version("networkx")
        assert is_installed and meets_version
        assert installed is not None

    def test_too_new_requirement(self) -> None:
        """An impossible minimum version is reported as not met."""
        is_installed, meets_version, _ = check_package_version("networkx", "9999.0")
        assert is_installed and not meets_version

    def test_missing_package(self) -> None:
        """A package that is not installed is reported as missing."""
        assert check_package_version("jbuild-no-such-package", "1.0") == (False, False, None)

    def test_unknown_requirement(self) -> None:
        """Packages without a registered minimum need an explicit version."""
        with pytest.raises(ValueError):
            check_package_version("jbuild-no-such-package")


class TestRequirePackage:
    """Test hard requirements."""

    def test_all_requirements_met(self) -> None:
        """The test environment satisfies every runtime dependency."""
        assert set(PACKAGE_REQUIREMENTS) == {"networkx", "colorama", "packaging"}
        require_all_packages()

    def test_too_old(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An outdated package raises with an upgrade hint."""
        monkeypatch.setitem(PACKAGE_REQUIREMENTS, "networkx", "9999.0")
        with pytest.raises(PackageRequirementError) as exc_info:
            require_package("networkx")
        assert "pip install --upgrade" in str(exc_info.value)
        assert exc_info.value.exit_code == EXIT_RUNTIME_ERROR

    def test_unknown_package(self) -> None:
        """Unregistered packages are rejected."""
        with pytest.raises(PackageRequirementError):
            require_package("jbuild-no-such-package")


class TestStatusReport:
    """Test the standalone dependency status report."""

    def test_report_succeeds(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        """Every requirement is listed and the exit status is 0."""
        monkeypatch.setattr(sys, "argv", ["package_verification"])
        assert main() == 0

        output = capsys.readouterr().out
        for name in PACKAGE_REQUIREMENTS:
            assert name in output
        assert "pip install" not in output

    def test_report_fails_with_install_hint(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        """An unmet requirement makes the report exit 1 with an install command."""
        monkeypatch.setattr(sys, "argv", ["package_verification"])
        monkeypatch.setitem(PACKAGE_REQUIREMENTS, "networkx", "9999.0")
        assert main() == 1

        captured = capsys.readouterr()
        assert "need >=9999.0" in captured.err
        assert "pip install" in captured.out
