"""
emission.tests.conftest
=======================

Shared fixtures: a deterministic set of accounts, wire-shaped instantiate
params, a funded in-memory token ledger and a controller instantiated on top
of a MemoryStore.

Schedules used throughout:

    pair       100 x 12
    nft        200 x 6
    marketing   50 x 24
    game        75 x 3
    team      1000 x 1
"""
from __future__ import annotations

import os
from typing import Any, Dict

import pytest
from hypothesis import HealthCheck
from hypothesis import settings as hypothesis_settings

from emission.adapters.state_db import MemoryStore
from emission.adapters.token_ledger import InMemoryTokenLedger
from emission.address import AddressCodec
from emission.config import EmissionSettings
from emission.context import Env, MessageInfo
from emission.controller import EmissionController
from emission.schedule import VEST_FIELDS, Category
from emission.tests import derive_account

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

# Hypothesis profiles: "dev" locally, "ci" (derandomized) when CI is set.
hypothesis_settings.register_profile(
    "dev",
    max_examples=100,
    deadline=None,
    suppress_health_check=(HealthCheck.too_slow,),
)
hypothesis_settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=(HealthCheck.too_slow,),
    derandomize=True,
)
hypothesis_settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if os.getenv("CI") else "dev"))

TREASURY_FUNDS = 10**12
TOTAL_SUPPLY = 4_000_000_000

SCHEDULE_TABLE = {
    Category.PAIR: (100, 12),
    Category.NFT: (200, 6),
    Category.MARKETING: (50, 24),
    Category.GAME: (75, 3),
    Category.TEAM: (1000, 1),
}


@pytest.fixture
def codec() -> AddressCodec:
    return AddressCodec()


@pytest.fixture
def raw_accounts() -> Dict[str, bytes]:
    accounts = {
        "token": derive_account("token", 32),
        "contract": derive_account("contract", 32),
        "minter": derive_account("minter"),
        "trigger": derive_account("trigger"),
        "stranger": derive_account("stranger"),
        "destination": derive_account("destination"),
    }
    for category in Category:
        accounts[category.value] = derive_account(f"beneficiary/{category.value}")
    return accounts


@pytest.fixture
def accounts(codec: AddressCodec, raw_accounts: Dict[str, bytes]) -> Dict[str, str]:
    """Human (bech32) form of `raw_accounts`."""
    return {name: codec.humanize(raw) for name, raw in raw_accounts.items()}


@pytest.fixture
def params(accounts: Dict[str, str]) -> Dict[str, Any]:
    """Instantiate message in wire form (amounts as Uint128 strings)."""
    msg: Dict[str, Any] = {
        "clsm_addr": accounts["token"],
        "minter_addr": accounts["minter"],
        "timer_trigger": accounts["trigger"],
    }
    for category, (monthly, count) in SCHEDULE_TABLE.items():
        msg[VEST_FIELDS[category]] = {
            "address": accounts[category.value],
            "monthly_amount": str(monthly),
            "month_count": str(count),
        }
    return msg


@pytest.fixture
def ledger(raw_accounts: Dict[str, bytes]) -> InMemoryTokenLedger:
    led = InMemoryTokenLedger()
    led.set_balance(raw_accounts["token"], raw_accounts["contract"], TREASURY_FUNDS)
    led.set_total_supply(raw_accounts["token"], TOTAL_SUPPLY)
    return led


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def settings() -> EmissionSettings:
    return EmissionSettings()


@pytest.fixture
def env(accounts: Dict[str, str]) -> Env:
    return Env(contract_address=accounts["contract"], block_height=100, block_time=1_700_000_000)


@pytest.fixture
def trigger_info(accounts: Dict[str, str]) -> MessageInfo:
    return MessageInfo(sender=accounts["trigger"])


@pytest.fixture
def stranger_info(accounts: Dict[str, str]) -> MessageInfo:
    return MessageInfo(sender=accounts["stranger"])


@pytest.fixture
def controller(
    store: MemoryStore,
    ledger: InMemoryTokenLedger,
    codec: AddressCodec,
    settings: EmissionSettings,
    env: Env,
    params: Dict[str, Any],
    accounts: Dict[str, str],
) -> EmissionController:
    ctl = EmissionController(store, ledger, codec=codec, settings=settings)
    ctl.instantiate(env, MessageInfo(sender=accounts["minter"]), params)
    return ctl
