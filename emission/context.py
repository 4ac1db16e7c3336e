"""
emission.context — Env/MessageInfo passed to every controller operation

These lightweight environments are supplied by the host for each tick. They
contain only pure data and perform strict validation.

Design notes
------------
- Addresses here are *human* (bech32) strings, exactly as the host sees them;
  the controller canonicalizes them itself before comparing.
- All numeric fields are validated to be non-negative.
- Nothing here exposes wall-clock time; `block_time` is the consensus time
  provided by the host.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Mapping, Tuple


# ----------------------------- helpers ----------------------------- #

class ContextError(ValueError):
    """Validation or coercion failure for Env/MessageInfo."""


def _require_non_negative_int(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


def _require_str(name: str, v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ContextError(f"{name} must be a non-empty string")
    return v.strip()


# ----------------------------- models ------------------------------ #

@dataclass(frozen=True)
class Coin:
    """A native-currency amount attached to a call."""
    denom: str
    amount: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "denom", _require_str("denom", self.denom))
        object.__setattr__(self, "amount", _require_non_negative_int("amount", self.amount))

    def to_dict(self) -> Dict[str, str]:
        return {"denom": self.denom, "amount": str(self.amount)}


@dataclass(frozen=True)
class Env:
    """
    Per-tick environment.

    Fields
    ------
    contract_address: Human address of the controller itself (the treasury).
    block_height:     Block height (0-based).
    block_time:       Consensus timestamp in seconds.
    chain_id:         Chain identifier string.
    """
    contract_address: str
    block_height: int = 0
    block_time: int = 0
    chain_id: str = "localterra"

    def __post_init__(self) -> None:
        object.__setattr__(self, "contract_address", _require_str("contract_address", self.contract_address))
        object.__setattr__(self, "block_height", _require_non_negative_int("block_height", self.block_height))
        object.__setattr__(self, "block_time", _require_non_negative_int("block_time", self.block_time))
        object.__setattr__(self, "chain_id", _require_str("chain_id", self.chain_id))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Env":
        return cls(
            contract_address=d.get("contract_address", ""),
            block_height=d.get("block_height", 0),
            block_time=d.get("block_time", 0),
            chain_id=d.get("chain_id", "localterra"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MessageInfo:
    """
    Per-call caller identity.

    Fields
    ------
    sender: Human address of the account invoking the operation.
    funds:  Native coins attached to the call (unused by the controller).
    """
    sender: str
    funds: Tuple[Coin, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", _require_str("sender", self.sender))
        object.__setattr__(self, "funds", tuple(self.funds))

    def to_dict(self) -> Dict[str, Any]:
        return {"sender": self.sender, "funds": [c.to_dict() for c in self.funds]}


__all__ = [
    "ContextError",
    "Coin",
    "Env",
    "MessageInfo",
]
