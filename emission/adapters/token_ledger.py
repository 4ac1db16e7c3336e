"""
emission.adapters.token_ledger — token balance / total-supply queries

The controller asks two questions of the emission token and nothing else:

- balance_of(token, holder) -> int      # treasury check before a release
- total_supply_of(token) -> int         # input of the tiered burn

`TokenQuerier` is the protocol a host implements against the real token
contract. `InMemoryTokenLedger` is a deterministic simulation used by tests
and by the operator CLI (`--ledger snapshot.json`).

Notes
-----
* Addresses are canonical bytes on this interface.
* Amounts are non-negative ints capped at Uint128.
* `checked_*` wrap any non-EmissionError raised by a querier in `QueryFault`.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Protocol, runtime_checkable

from emission.errors import EmissionError, InvalidAmount, QueryFault
from emission.schedule import UINT128_MAX, ensure_uint128


@runtime_checkable
class TokenQuerier(Protocol):
    def balance_of(self, token: bytes, holder: bytes) -> int: ...
    def total_supply_of(self, token: bytes) -> int: ...


def checked_balance(querier: TokenQuerier, token: bytes, holder: bytes) -> int:
    """Query a balance; collaborator failures surface as QueryFault."""
    try:
        value = querier.balance_of(token, holder)
    except EmissionError:
        raise
    except Exception as e:
        raise QueryFault(f"balance query failed: {e}", details={"token": token.hex(), "holder": holder.hex()}) from e
    return _result("balance", value)


def checked_total_supply(querier: TokenQuerier, token: bytes) -> int:
    """Query total supply; collaborator failures surface as QueryFault."""
    try:
        value = querier.total_supply_of(token)
    except EmissionError:
        raise
    except Exception as e:
        raise QueryFault(f"total supply query failed: {e}", details={"token": token.hex()}) from e
    return _result("total_supply", value)


def _result(name: str, value: Any) -> int:
    try:
        return ensure_uint128(name, value)
    except InvalidAmount as e:
        raise QueryFault(f"querier returned an invalid {name}: {value!r}") from e


# ------------------------------ Simulation ------------------------------ #


class InMemoryTokenLedger:
    """
    Minimal multi-token ledger.

    Balances are tracked per (token, holder). Total supply is tracked per
    token and moves with `mint` / `burn`; `set_balance` and `set_total_supply`
    are test hooks that set exact values without touching the other side.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[bytes, Dict[bytes, int]] = {}
        self._supply: Dict[bytes, int] = {}

    # --- queries (TokenQuerier) ---

    def balance_of(self, token: bytes, holder: bytes) -> int:
        with self._lock:
            return self._balances.get(bytes(token), {}).get(bytes(holder), 0)

    def total_supply_of(self, token: bytes) -> int:
        with self._lock:
            return self._supply.get(bytes(token), 0)

    # --- mutation helpers ---

    def mint(self, token: bytes, holder: bytes, amount: int) -> None:
        amount = ensure_uint128("amount", amount)
        with self._lock:
            bal = self._holders(token)
            new_bal = bal.get(bytes(holder), 0) + amount
            new_supply = self._supply.get(bytes(token), 0) + amount
            if new_bal > UINT128_MAX or new_supply > UINT128_MAX:
                raise InvalidAmount("mint overflows Uint128")
            bal[bytes(holder)] = new_bal
            self._supply[bytes(token)] = new_supply

    def burn(self, token: bytes, holder: bytes, amount: int) -> None:
        amount = ensure_uint128("amount", amount)
        with self._lock:
            bal = self._holders(token)
            cur = bal.get(bytes(holder), 0)
            if amount > cur:
                raise InvalidAmount("burn exceeds balance", details={"balance": str(cur), "amount": str(amount)})
            bal[bytes(holder)] = cur - amount
            self._supply[bytes(token)] = max(0, self._supply.get(bytes(token), 0) - amount)

    def transfer(self, token: bytes, sender: bytes, recipient: bytes, amount: int) -> None:
        amount = ensure_uint128("amount", amount)
        with self._lock:
            bal = self._holders(token)
            cur = bal.get(bytes(sender), 0)
            if amount > cur:
                raise InvalidAmount("insufficient balance", details={"balance": str(cur), "amount": str(amount)})
            bal[bytes(sender)] = cur - amount
            bal[bytes(recipient)] = bal.get(bytes(recipient), 0) + amount

    def set_balance(self, token: bytes, holder: bytes, amount: int) -> None:
        amount = ensure_uint128("amount", amount)
        with self._lock:
            self._holders(token)[bytes(holder)] = amount

    def set_total_supply(self, token: bytes, amount: int) -> None:
        amount = ensure_uint128("amount", amount)
        with self._lock:
            self._supply[bytes(token)] = amount

    def _holders(self, token: bytes) -> Dict[bytes, int]:
        return self._balances.setdefault(bytes(token), {})

    # --- snapshots ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "balances": {
                    t.hex(): {h.hex(): str(v) for h, v in sorted(holders.items())}
                    for t, holders in sorted(self._balances.items())
                },
                "total_supply": {t.hex(): str(v) for t, v in sorted(self._supply.items())},
            }

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "InMemoryTokenLedger":
        ledger = cls()
        try:
            for t, holders in (data.get("balances") or {}).items():
                for h, v in holders.items():
                    ledger.set_balance(bytes.fromhex(t), bytes.fromhex(h), v)
            for t, v in (data.get("total_supply") or {}).items():
                ledger.set_total_supply(bytes.fromhex(t), v)
        except (AttributeError, ValueError) as e:
            raise QueryFault(f"malformed ledger snapshot: {e}") from e
        return ledger

    @classmethod
    def load_file(cls, path: str | Path) -> "InMemoryTokenLedger":
        p = Path(path)
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise QueryFault(f"cannot parse ledger snapshot {p}: {e}") from e
        return cls.load(data)

    def save_file(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.dump(), indent=2, sort_keys=True) + "\n", encoding="utf-8")


__all__ = [
    "TokenQuerier",
    "InMemoryTokenLedger",
    "checked_balance",
    "checked_total_supply",
]
