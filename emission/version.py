from __future__ import annotations

"""
emission.version: package version and the identity stored in contract info.

BASE_VERSION is the semver recorded at instantiate time. EMISSION_VERSION in
the environment overrides the reported package version only, never the
stored contract info.
"""

import os

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"

CONTRACT_NAME = "moon-emission"

__version__ = os.getenv("EMISSION_VERSION") or BASE_VERSION


def get_version() -> str:
    """Public helper returning the resolved version string."""
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION", "CONTRACT_NAME"]
