"""
emission.cli — operator command line.

    emissionctl --help
    python -m emission.cli.emissionctl --help
"""

from .emissionctl import app, get_app

__all__ = ["app", "get_app"]
