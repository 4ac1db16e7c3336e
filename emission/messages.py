from __future__ import annotations

"""
Outbound instructions and the operation Response.

The controller never moves funds itself. Each operation returns a `Response`
carrying zero or one instruction; the host executes it after the call returns
successfully. Instructions hold *human* addresses: canonical bytes are
humanized exactly once, when the instruction is built.

Wire form (`to_dict()`) follows the host's message envelope:

    TokenTransfer → {"wasm": {"execute": {"contract_addr", "msg": {"transfer": {...}}, "funds": []}}}
    BurnFrom      → {"wasm": {"execute": {"contract_addr", "msg": {"burn_from": {...}}, "funds": []}}}
    NativeSend    → {"bank": {"send": {"to_address", "amount": [{"denom", "amount"}]}}}

Amounts are rendered as decimal strings (Uint128 JSON form).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from emission.schedule import EmissionConfig, ensure_uint128


@dataclass(frozen=True)
class TokenTransfer:
    """Move `amount` of the emission token from the controller to `recipient`."""

    token: str
    recipient: str
    amount: int

    kind = "token_transfer"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", ensure_uint128("amount", self.amount))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wasm": {
                "execute": {
                    "contract_addr": self.token,
                    "msg": {"transfer": {"recipient": self.recipient, "amount": str(self.amount)}},
                    "funds": [],
                }
            }
        }


@dataclass(frozen=True)
class BurnFrom:
    """Burn `amount` of the emission token out of `owner`'s balance."""

    token: str
    owner: str
    amount: int

    kind = "burn_from"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", ensure_uint128("amount", self.amount))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wasm": {
                "execute": {
                    "contract_addr": self.token,
                    "msg": {"burn_from": {"owner": self.owner, "amount": str(self.amount)}},
                    "funds": [],
                }
            }
        }


@dataclass(frozen=True)
class NativeSend:
    """Send `amount` of the chain's native `denom` from the controller to `to_address`."""

    to_address: str
    denom: str
    amount: int

    kind = "native_send"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", ensure_uint128("amount", self.amount))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bank": {
                "send": {
                    "to_address": self.to_address,
                    "amount": [{"denom": self.denom, "amount": str(self.amount)}],
                }
            }
        }


Instruction = Union[TokenTransfer, BurnFrom, NativeSend]


@dataclass(frozen=True)
class Response:
    """
    Result of one operation.

    messages:   zero or one outbound instruction.
    attributes: ordered (key, value) pairs describing the action.
    config:     the new configuration record to persist, or None when the
                operation does not change state.
    """

    messages: Tuple[Instruction, ...] = ()
    attributes: Tuple[Tuple[str, str], ...] = ()
    config: Optional[EmissionConfig] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        msgs = tuple(self.messages)
        if len(msgs) > 1:
            raise ValueError("an operation emits at most one outbound instruction")
        object.__setattr__(self, "messages", msgs)
        object.__setattr__(self, "attributes", tuple((str(k), str(v)) for k, v in self.attributes))

    @property
    def message(self) -> Optional[Instruction]:
        return self.messages[0] if self.messages else None

    def attribute(self, key: str) -> Optional[str]:
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "attributes": [{"key": k, "value": v} for k, v in self.attributes],
        }


__all__ = [
    "TokenTransfer",
    "BurnFrom",
    "NativeSend",
    "Instruction",
    "Response",
]
