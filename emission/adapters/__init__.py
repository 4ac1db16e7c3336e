from __future__ import annotations

"""
emission.adapters
=================

Collaborators the controller consumes but does not own: key-value
persistence of the configuration record (`state_db`) and the emission token's
balance / total-supply queries (`token_ledger`).
"""

from typing import Tuple

from ..version import __version__

__all__: Tuple[str, ...] = ("__version__",)
