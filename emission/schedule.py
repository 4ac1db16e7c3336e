from __future__ import annotations

"""
Emission state — vesting schedules and the configuration record
---------------------------------------------------------------

This module defines the controller's persistent state:
  • `VestingSchedule` — one beneficiary's entitlement: a fixed monthly amount,
    a total release count and a release cursor (`month_index`).
  • `EmissionConfig` — the emission-token address, the minter address, the
    trigger address and exactly one schedule per `Category`.

Both types are frozen. An operation never mutates a config in place: it
derives a new value (`EmissionConfig.advance`) that the host persists. This
keeps the all-or-nothing guarantee trivial: if anything fails before the
host saves, the old value is still the stored one.

Addresses are canonical bytes. Serialization helpers (`dump()` / `load()`)
produce a JSON-friendly dict with hex addresses and decimal-string amounts
(Uint128 JSON form); persistence is delegated to `emission.adapters.state_db`.

Invariant, checked on construction and on every load:
    0 <= month_index <= month_count
"""

import enum
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from emission.errors import ConfigError, InvalidAmount

Amount = int

UINT128_MAX = (1 << 128) - 1
_UINT128_DIGITS = len(str(UINT128_MAX))


def ensure_uint128(name: str, value: Any) -> int:
    """
    Coerce `value` to an int in [0, 2**128 - 1].

    Accepts Python ints and decimal strings (the JSON form of Uint128).
    Booleans and floats are rejected.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an integer, got bool")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidAmount(f"{name} must be a decimal integer string", details={name: value})
        digits = text.lstrip("0") or "0"
        if len(digits) > _UINT128_DIGITS:
            raise InvalidAmount(f"{name} out of Uint128 range", details={name: value[:64]})
        value = int(digits)
    if not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT128_MAX:
        raise InvalidAmount(f"{name} out of Uint128 range", details={name: str(value)})
    return value


class Category(str, enum.Enum):
    """Beneficiary categories, one vesting schedule each."""

    PAIR = "pair"
    NFT = "nft"
    MARKETING = "marketing"
    GAME = "game"
    TEAM = "team"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(c.value for c in cls)
            raise ConfigError(f"unknown category {value!r} (expected one of: {allowed})") from None


@dataclass(frozen=True)
class VestingSchedule:
    beneficiary: bytes
    monthly_amount: Amount
    month_count: int
    month_index: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.beneficiary, (bytes, bytearray)) or not self.beneficiary:
            raise ConfigError("beneficiary must be canonical address bytes")
        object.__setattr__(self, "beneficiary", bytes(self.beneficiary))
        object.__setattr__(self, "monthly_amount", ensure_uint128("monthly_amount", self.monthly_amount))
        object.__setattr__(self, "month_count", ensure_uint128("month_count", self.month_count))
        object.__setattr__(self, "month_index", ensure_uint128("month_index", self.month_index))
        if self.month_index > self.month_count:
            raise ConfigError(
                f"month_index {self.month_index} exceeds month_count {self.month_count}"
            )

    @property
    def exhausted(self) -> bool:
        return self.month_index >= self.month_count

    @property
    def remaining(self) -> int:
        return self.month_count - self.month_index

    def advanced(self) -> "VestingSchedule":
        """Return a copy with the cursor moved forward by exactly one release."""
        if self.exhausted:
            raise ConfigError("cannot advance an exhausted schedule")
        return replace(self, month_index=self.month_index + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beneficiary": self.beneficiary.hex(),
            "monthly_amount": str(self.monthly_amount),
            "month_count": str(self.month_count),
            "month_index": str(self.month_index),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "VestingSchedule":
        try:
            beneficiary = bytes.fromhex(str(d["beneficiary"]))
        except (KeyError, ValueError) as e:
            raise ConfigError(f"invalid beneficiary in stored schedule: {e}") from e
        return VestingSchedule(
            beneficiary=beneficiary,
            monthly_amount=d.get("monthly_amount", 0),
            month_count=d.get("month_count", 0),
            month_index=d.get("month_index", 0),
        )


@dataclass(frozen=True)
class EmissionConfig:
    """
    The controller's configuration record.

    Created once at instantiate; afterwards only `advance()` derives new
    values, and only for one schedule at a time.
    """

    token: bytes
    minter: bytes
    trigger: bytes
    schedules: Mapping[Category, VestingSchedule]

    def __post_init__(self) -> None:
        for name in ("token", "minter", "trigger"):
            v = getattr(self, name)
            if not isinstance(v, (bytes, bytearray)) or not v:
                raise ConfigError(f"{name} must be canonical address bytes")
            object.__setattr__(self, name, bytes(v))
        schedules = dict(self.schedules)
        missing = [c.value for c in Category if c not in schedules]
        if missing:
            raise ConfigError(f"missing vesting schedules: {', '.join(missing)}")
        extra = [k for k in schedules if not isinstance(k, Category)]
        if extra:
            raise ConfigError(f"unknown schedule keys: {extra!r}")
        object.__setattr__(self, "schedules", MappingProxyType(schedules))

    def schedule(self, category: Category) -> VestingSchedule:
        return self.schedules[Category.parse(category)]

    def advance(self, category: Category) -> "EmissionConfig":
        """Return a new config with `category`'s cursor advanced by one."""
        category = Category.parse(category)
        schedules = dict(self.schedules)
        schedules[category] = schedules[category].advanced()
        return replace(self, schedules=schedules)

    def items(self) -> Tuple[Tuple[Category, VestingSchedule], ...]:
        return tuple((c, self.schedules[c]) for c in Category)

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        return {
            "token": self.token.hex(),
            "minter": self.minter.hex(),
            "trigger": self.trigger.hex(),
            "schedules": {c.value: s.to_dict() for c, s in self.items()},
        }

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "EmissionConfig":
        try:
            raw = data["schedules"]
            schedules = {Category.parse(k): VestingSchedule.from_dict(v) for k, v in raw.items()}
            return cls(
                token=bytes.fromhex(str(data["token"])),
                minter=bytes.fromhex(str(data["minter"])),
                trigger=bytes.fromhex(str(data["trigger"])),
                schedules=schedules,
            )
        except (KeyError, AttributeError, TypeError, ValueError) as e:
            raise ConfigError(f"malformed configuration record: {e}") from e


# ------------------------------ instantiate ------------------------------ #


@dataclass(frozen=True)
class VestParams:
    """Caller-supplied schedule parameters (human address)."""

    address: str
    monthly_amount: Amount
    month_count: int

    @staticmethod
    def from_dict(d: Mapping[str, Any], *, field_name: str = "vest") -> "VestParams":
        if not isinstance(d, Mapping):
            raise ConfigError(f"{field_name} must be an object")
        try:
            address = d["address"]
        except KeyError:
            raise ConfigError(f"{field_name}.address is required") from None
        return VestParams(
            address=str(address),
            monthly_amount=ensure_uint128(f"{field_name}.monthly_amount", d.get("monthly_amount")),
            month_count=ensure_uint128(f"{field_name}.month_count", d.get("month_count")),
        )


# Wire names of the per-category schedule parameters.
VEST_FIELDS: Mapping[Category, str] = MappingProxyType(
    {
        Category.PAIR: "pair_vest",
        Category.NFT: "nft_vest",
        Category.MARKETING: "marketing_vest",
        Category.GAME: "game_vest",
        Category.TEAM: "team_vest",
    }
)


@dataclass(frozen=True)
class InstantiateParams:
    """Everything instantiate needs, with human addresses."""

    token: str
    minter: str
    trigger: str
    vests: Mapping[Category, VestParams]

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "InstantiateParams":
        if not isinstance(d, Mapping):
            raise ConfigError("instantiate params must be an object")
        for key in ("clsm_addr", "minter_addr", "timer_trigger"):
            if not d.get(key):
                raise ConfigError(f"{key} is required")
        vests: Dict[Category, VestParams] = {}
        for category, name in VEST_FIELDS.items():
            if name not in d:
                raise ConfigError(f"{name} is required")
            vests[category] = VestParams.from_dict(d[name], field_name=name)
        return InstantiateParams(
            token=str(d["clsm_addr"]),
            minter=str(d["minter_addr"]),
            trigger=str(d["timer_trigger"]),
            vests=MappingProxyType(vests),
        )


__all__ = [
    "Amount",
    "UINT128_MAX",
    "ensure_uint128",
    "Category",
    "VestingSchedule",
    "EmissionConfig",
    "VestParams",
    "VEST_FIELDS",
    "InstantiateParams",
]
