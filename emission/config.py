from __future__ import annotations
"""
emission.config — runtime settings for the emission controller host

Covers:
- Address codec prefix (bech32 HRP) for canonical ⇄ human conversion
- Native denom used by the native-currency sweep
- Tiered burn policy (threshold and divisors)
- Persistence (SQLite path, storage key of the configuration record)
- Log level for the CLI

These are *host* settings. The vesting table itself (addresses, monthly
amounts, month counts) is the controller's persistent state and is supplied
once through instantiate, never through settings.

Environment overrides (all optional; sensible defaults provided):

  EMISSION_ADDRESS_HRP=terra
  EMISSION_NATIVE_DENOM=uluna
  EMISSION_BURN_THRESHOLD=1000000000
  EMISSION_BURN_HIGH_DIVISOR=4
  EMISSION_BURN_LOW_DIVISOR=100
  EMISSION_STORAGE_KEY=moon_config
  EMISSION_DB_PATH=emission.db
  EMISSION_LOG_LEVEL=INFO

You can also load from a JSON or YAML file via
`EMISSION_CONFIG_FILE=/path/to/settings.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional
import json
import logging
import os
from pathlib import Path

import yaml

from .burn import BurnPolicy
from .errors import ConfigError

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# -------------------------- Data classes --------------------------


@dataclass
class StorageSettings:
    """Where the configuration record lives."""
    db_path: str = "emission.db"
    storage_key: str = "moon_config"

    def validate(self) -> None:
        if not self.db_path:
            raise ConfigError("db_path must be non-empty.")
        if not self.storage_key or len(self.storage_key.encode("utf-8")) > 64:
            raise ConfigError("storage_key must be 1..64 bytes.")


@dataclass
class EmissionSettings:
    """Top-level settings container."""
    address_hrp: str = "terra"
    native_denom: str = "uluna"
    burn: BurnPolicy = field(default_factory=BurnPolicy)
    storage: StorageSettings = field(default_factory=StorageSettings)
    log_level: str = "INFO"

    def validate(self) -> None:
        if not self.address_hrp or not self.address_hrp.isascii() or not self.address_hrp.islower():
            raise ConfigError(f"address_hrp must be a lowercase ASCII prefix (got {self.address_hrp!r}).")
        if not self.native_denom:
            raise ConfigError("native_denom must be non-empty.")
        self.burn.validate()
        self.storage.validate()
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)} (got {self.log_level!r}).")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ConfigError(f"Invalid int for {name}: {v!r}") from e


def _getenv_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def from_env(base: Optional[EmissionSettings] = None, prefix: str = "EMISSION_") -> EmissionSettings:
    """
    Build EmissionSettings from environment variables, optionally layering on top of `base`.
    """
    cfg = base or EmissionSettings()

    new_cfg = EmissionSettings(
        address_hrp=_getenv_str(f"{prefix}ADDRESS_HRP", cfg.address_hrp),
        native_denom=_getenv_str(f"{prefix}NATIVE_DENOM", cfg.native_denom),
        burn=BurnPolicy(
            threshold=_getenv_int(f"{prefix}BURN_THRESHOLD", cfg.burn.threshold),
            high_divisor=_getenv_int(f"{prefix}BURN_HIGH_DIVISOR", cfg.burn.high_divisor),
            low_divisor=_getenv_int(f"{prefix}BURN_LOW_DIVISOR", cfg.burn.low_divisor),
        ),
        storage=StorageSettings(
            db_path=_getenv_str(f"{prefix}DB_PATH", cfg.storage.db_path),
            storage_key=_getenv_str(f"{prefix}STORAGE_KEY", cfg.storage.storage_key),
        ),
        log_level=_getenv_str(f"{prefix}LOG_LEVEL", cfg.log_level).upper(),
    )
    new_cfg.validate()
    return new_cfg


def _int_field(section: Dict[str, Any], key: str, default: int) -> int:
    v = section.get(key, default)
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ConfigError(f"Invalid int for {key}: {v!r}") from e


def from_file(path: str | os.PathLike[str]) -> EmissionSettings:
    """
    Load settings from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text or "{}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse settings file {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"settings file {p} must contain a mapping")

    burn = data.get("burn", {}) or {}
    storage = data.get("storage", {}) or {}
    defaults = EmissionSettings()

    cfg = EmissionSettings(
        address_hrp=str(data.get("address_hrp", defaults.address_hrp)),
        native_denom=str(data.get("native_denom", defaults.native_denom)),
        burn=BurnPolicy(
            threshold=_int_field(burn, "threshold", defaults.burn.threshold),
            high_divisor=_int_field(burn, "high_divisor", defaults.burn.high_divisor),
            low_divisor=_int_field(burn, "low_divisor", defaults.burn.low_divisor),
        ),
        storage=StorageSettings(
            db_path=str(storage.get("db_path", defaults.storage.db_path)),
            storage_key=str(storage.get("storage_key", defaults.storage.storage_key)),
        ),
        log_level=str(data.get("log_level", defaults.log_level)).upper(),
    )
    cfg.validate()
    return cfg


def load() -> EmissionSettings:
    """
    Load settings using the following precedence:
      1) File at $EMISSION_CONFIG_FILE (JSON/YAML)
      2) Environment variables (EMISSION_*), applied on top of defaults or file values
    """
    file_path = os.getenv("EMISSION_CONFIG_FILE")
    base = from_file(file_path) if file_path else EmissionSettings()
    return from_env(base=base)


def pretty(cfg: Optional[EmissionSettings] = None) -> str:
    """Return a human-readable JSON string of the current settings."""
    return json.dumps((cfg or load()).to_dict(), indent=2, sort_keys=True)


__all__ = [
    "StorageSettings",
    "EmissionSettings",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
