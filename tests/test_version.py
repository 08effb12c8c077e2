"""Tests for version resolution."""

import re
from pathlib import Path

import saml_sts
from saml_sts.version import get_version


def get_pyproject_version():
    """Get version from pyproject.toml in repo root."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    content = pyproject_path.read_text()
    match = re.search(r'^version\s*=\s*"([^"]+)"', content, re.MULTILINE)
    if match:
        return match.group(1)
    raise ValueError("Could not find version in pyproject.toml")


def test_version_matches_pyproject():
    assert get_version() == get_pyproject_version()


def test_package_exports_version():
    assert saml_sts.__version__ == get_pyproject_version()


def test_build_version_override(monkeypatch):
    monkeypatch.setenv("SAML_STS_BUILD_VERSION", "1.2.3-dev.4")
    assert get_version() == "1.2.3-dev.4"
