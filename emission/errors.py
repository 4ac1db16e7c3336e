from __future__ import annotations
# emission/errors.py
"""
Error types for the emission controller. These are lightweight, serializable,
and safe to surface to the host, over the CLI, or in logs.

Every error is terminal for the current invocation: the controller performs no
partial writes and no local recovery, it raises and lets the host decide.

Exports:
- EmissionError (base)
- Unauthorized
- ScheduleExhausted
- InsufficientTreasuryBalance
- StorageFault / NotInitialized
- MalformedAddress
- AlreadyInitialized
- InvalidAmount
- ConfigError
- UnknownMessage
- QueryFault
"""


import json
from typing import Any, Dict, Mapping, Optional


class EmissionError(Exception):
    """Base class for emission controller errors."""

    code: str = "EMISSION_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class Unauthorized(EmissionError):
    """The caller is not the configured trigger address."""
    code = "EMISSION_UNAUTHORIZED"

    def __init__(
        self,
        *,
        sender: Optional[str] = None,
        message: str = "caller is not the timer trigger",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if sender is not None:
            d.setdefault("sender", sender)
        super().__init__(message, details=d)


class ScheduleExhausted(EmissionError):
    """The targeted schedule has already performed all of its releases."""
    code = "EMISSION_SCHEDULE_EXHAUSTED"

    def __init__(
        self,
        *,
        category: str,
        month_index: int,
        month_count: int,
        message: str = "vesting schedule exhausted",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update(
            {
                "category": category,
                "month_index": int(month_index),
                "month_count": int(month_count),
            }
        )
        super().__init__(message, details=d)


class InsufficientTreasuryBalance(EmissionError):
    """The controller's own token balance does not cover the monthly release."""
    code = "EMISSION_INSUFFICIENT_TREASURY"

    def __init__(
        self,
        *,
        required: int,
        available: int,
        category: Optional[str] = None,
        message: str = "treasury balance is less than the vesting amount",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "available": int(available)})
        if category is not None:
            d.setdefault("category", category)
        super().__init__(message, details=d)


class StorageFault(EmissionError):
    """Underlying persistence failed. Not retried by the controller."""
    code = "EMISSION_STORAGE_FAULT"


class NotInitialized(StorageFault):
    """No configuration record exists under the configured storage key."""
    code = "EMISSION_NOT_INITIALIZED"


class MalformedAddress(EmissionError):
    """An address could not be canonicalized or humanized."""
    code = "EMISSION_MALFORMED_ADDRESS"

    def __init__(
        self,
        message: str = "malformed address",
        *,
        address: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message, details=d)


class AlreadyInitialized(EmissionError):
    """instantiate() was called on a store that already holds a configuration."""
    code = "EMISSION_ALREADY_INITIALIZED"


class InvalidAmount(EmissionError):
    """An amount or counter is not an integer in the Uint128 range."""
    code = "EMISSION_INVALID_AMOUNT"


class ConfigError(EmissionError):
    """Invalid instantiate parameters or runtime settings."""
    code = "EMISSION_CONFIG_ERROR"


class UnknownMessage(EmissionError):
    """The dispatch layer could not route a message."""
    code = "EMISSION_UNKNOWN_MESSAGE"


class QueryFault(EmissionError):
    """The token balance / total supply collaborator failed."""
    code = "EMISSION_QUERY_FAULT"


__all__ = [
    "EmissionError",
    "Unauthorized",
    "ScheduleExhausted",
    "InsufficientTreasuryBalance",
    "StorageFault",
    "NotInitialized",
    "MalformedAddress",
    "AlreadyInitialized",
    "InvalidAmount",
    "ConfigError",
    "UnknownMessage",
    "QueryFault",
]
