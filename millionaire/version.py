"""
Version of the Millionaire harness.

Read from the installed distribution metadata; a source checkout that was
never installed reports BASE_VERSION.
"""
from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

BASE_VERSION = "0.1.0"

_DIST_NAME = "millionaire-harness"


def get_version() -> str:
    try:
        return _pkg_version(_DIST_NAME)
    except PackageNotFoundError:
        return BASE_VERSION


__version__ = get_version()
__all__ = ["__version__", "get_version", "BASE_VERSION"]
