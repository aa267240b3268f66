"""
Version information for Pretix Push Relay.

Single source of truth: pyproject.toml
Runtime access via importlib.metadata with fallback.
"""

from __future__ import annotations

import os
import sys
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

# Fallback version if package metadata unavailable (dev mode)
_FALLBACK_VERSION = "1.0.0"


def get_version() -> str:
    """Get the package version from metadata or fallback."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("pretix-push-relay")
    except PackageNotFoundError:
        return _FALLBACK_VERSION


VERSION = get_version()


@lru_cache(maxsize=1)
def get_build_info() -> dict[str, str | None]:
    """
    Get build metadata from environment.

    Docker builds pass these in as build args.

    Returns:
        dict with commit, build_date and build_number
    """
    commit = os.environ.get("GIT_COMMIT")
    return {
        "commit": commit[:8] if commit else None,
        "build_date": os.environ.get("BUILD_DATE"),
        "build_number": os.environ.get("BUILD_NUMBER"),
    }


def version_info() -> dict[str, Any]:
    """
    Get comprehensive version information.

    Returns:
        dict with version, python_version and build info
    """
    build = get_build_info()

    return {
        "version": VERSION,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "git_commit": build.get("commit"),
        "build_date": build.get("build_date") or datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "build_number": build.get("build_number"),
    }


__all__ = [
    "VERSION",
    "get_version",
    "get_build_info",
    "version_info",
]
