from __future__ import annotations
"""
moon-emission: a token-emission controller.

A trigger account calls the controller on a timer; each call releases one
month of a beneficiary's vesting schedule, burns a tier of the token supply,
or forwards native currency. The controller only decides: it returns at most
one outbound instruction and the updated configuration record, and the host
executes and persists them.

Public surface (lazily loaded):
- config, errors, metrics, version
- address, schedule, burn, messages, context
- controller, dispatch, adapters, cli
"""


from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "metrics",
    "address",
    "schedule",
    "burn",
    "messages",
    "context",
    "controller",
    "dispatch",
    "adapters",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the moon-emission package version string."""
    return __version__
