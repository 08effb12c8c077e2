"""Version utility to read from environment or pyproject.toml"""

import os
import tomllib
from importlib import metadata
from pathlib import Path


def get_version() -> str:
    """
    Read version from SAML_STS_BUILD_VERSION, installed metadata or pyproject.toml.

    Priority:
    1. SAML_STS_BUILD_VERSION environment variable (set by release builds)
    2. pyproject.toml project.version (source checkout)
    3. Installed distribution metadata
    4. "unknown" as fallback

    Returns:
        str: Version string (e.g., "0.4.0")
    """
    if build_version := os.getenv("SAML_STS_BUILD_VERSION"):
        return build_version

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return data.get("project", {}).get("version", "unknown")

    try:
        return metadata.version("saml-sts-credentials")
    except metadata.PackageNotFoundError:
        return "unknown"


__version__ = get_version()
