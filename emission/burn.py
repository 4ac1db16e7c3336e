from __future__ import annotations
"""
Tiered burn: how much of the emission token's circulating supply to destroy
on one automatic-burn tick.

    total_supply >= threshold  →  burn total_supply // high_divisor   (25%)
    total_supply <  threshold  →  burn total_supply // low_divisor    (1%)

Integer division truncates; there is no rounding. With the default policy a
supply of 4_000_000_000 burns 1_000_000_000 and a supply of 500 burns 5.

Design goals
------------
- Deterministic: pure integer arithmetic; no floats.
- Policy as data: threshold and divisors live in a frozen dataclass so a
  deployment can tune them through settings without touching the engine.

Example
-------
>>> burn_amount(4_000_000_000)
1000000000
>>> burn_amount(500)
5
"""


from dataclasses import asdict, dataclass
from typing import Dict, Final

from .errors import ConfigError
from .schedule import UINT128_MAX, Amount, ensure_uint128

DEFAULT_THRESHOLD: Final[int] = 1_000_000_000
DEFAULT_HIGH_DIVISOR: Final[int] = 4
DEFAULT_LOW_DIVISOR: Final[int] = 100


@dataclass(frozen=True)
class BurnPolicy:
    """
    Two-tier burn policy.

    Attributes
    ----------
    threshold : int
        Supplies at or above this value (base units) use the high tier.
    high_divisor : int
        Divisor applied at or above the threshold.
    low_divisor : int
        Divisor applied below the threshold.
    """

    threshold: int = DEFAULT_THRESHOLD
    high_divisor: int = DEFAULT_HIGH_DIVISOR
    low_divisor: int = DEFAULT_LOW_DIVISOR

    def validate(self) -> None:
        if not isinstance(self.threshold, int) or not (0 <= self.threshold <= UINT128_MAX):
            raise ConfigError(f"burn threshold must be a Uint128 (got {self.threshold!r})")
        for name, v in (("high_divisor", self.high_divisor), ("low_divisor", self.low_divisor)):
            if not isinstance(v, int) or v <= 0:
                raise ConfigError(f"{name} must be a positive integer (got {v!r})")

    def tier(self, total_supply: Amount) -> str:
        return "high" if total_supply >= self.threshold else "low"

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


DEFAULT_BURN_POLICY: Final[BurnPolicy] = BurnPolicy()


def burn_amount(total_supply: Amount, policy: BurnPolicy = DEFAULT_BURN_POLICY) -> Amount:
    """Return the amount to burn for `total_supply` under `policy`."""
    total_supply = ensure_uint128("total_supply", total_supply)
    if total_supply >= policy.threshold:
        return total_supply // policy.high_divisor
    return total_supply // policy.low_divisor


__all__ = [
    "Amount",
    "UINT128_MAX",
    "BurnPolicy",
    "DEFAULT_BURN_POLICY",
    "burn_amount",
]
