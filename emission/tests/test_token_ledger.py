from __future__ import annotations

import json

import pytest

from emission.adapters.token_ledger import (
    InMemoryTokenLedger,
    TokenQuerier,
    checked_balance,
    checked_total_supply,
)
from emission.context import MessageInfo
from emission.controller import EmissionController
from emission.errors import InvalidAmount, QueryFault, Unauthorized
from emission.schedule import Category

TOKEN = b"\x01" * 32
ALICE = b"\x0a" * 20
BOB = b"\x0b" * 20


class ExplodingQuerier:
    def balance_of(self, token: bytes, holder: bytes) -> int:
        raise ConnectionError("rpc down")

    def total_supply_of(self, token: bytes) -> int:
        raise TimeoutError("rpc slow")


class NegativeQuerier:
    def balance_of(self, token: bytes, holder: bytes) -> int:
        return -1

    def total_supply_of(self, token: bytes) -> int:
        return "lots"  # type: ignore[return-value]


def test_ledger_mint_transfer_burn():
    led = InMemoryTokenLedger()
    assert isinstance(led, TokenQuerier)
    led.mint(TOKEN, ALICE, 1_000)
    led.transfer(TOKEN, ALICE, BOB, 300)
    led.burn(TOKEN, BOB, 100)
    assert led.balance_of(TOKEN, ALICE) == 700
    assert led.balance_of(TOKEN, BOB) == 200
    assert led.total_supply_of(TOKEN) == 900


def test_ledger_rejects_overspend():
    led = InMemoryTokenLedger()
    led.mint(TOKEN, ALICE, 10)
    with pytest.raises(InvalidAmount):
        led.transfer(TOKEN, ALICE, BOB, 11)
    with pytest.raises(InvalidAmount):
        led.burn(TOKEN, ALICE, 11)
    assert led.balance_of(TOKEN, ALICE) == 10


def test_ledger_snapshot_file(tmp_path):
    led = InMemoryTokenLedger()
    led.set_balance(TOKEN, ALICE, 5)
    led.set_total_supply(TOKEN, 4_000_000_000)
    path = tmp_path / "ledger.json"
    led.save_file(path)

    data = json.loads(path.read_text())
    assert data["total_supply"] == {TOKEN.hex(): "4000000000"}

    again = InMemoryTokenLedger.load_file(path)
    assert again.dump() == led.dump()
    assert InMemoryTokenLedger.load_file(tmp_path / "missing.json").dump() == {"balances": {}, "total_supply": {}}


def test_ledger_malformed_snapshot(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{oops")
    with pytest.raises(QueryFault):
        InMemoryTokenLedger.load_file(path)
    with pytest.raises(QueryFault):
        InMemoryTokenLedger.load({"balances": {"zz": {"00": "1"}}})


def test_collaborator_failures_become_query_fault():
    with pytest.raises(QueryFault) as ei:
        checked_balance(ExplodingQuerier(), TOKEN, ALICE)
    assert isinstance(ei.value.__cause__, ConnectionError)
    with pytest.raises(QueryFault):
        checked_total_supply(ExplodingQuerier(), TOKEN)


def test_invalid_query_results_become_query_fault():
    with pytest.raises(QueryFault):
        checked_balance(NegativeQuerier(), TOKEN, ALICE)
    with pytest.raises(QueryFault):
        checked_total_supply(NegativeQuerier(), TOKEN)


def test_emission_errors_pass_through():
    class Denying:
        def balance_of(self, token: bytes, holder: bytes) -> int:
            raise Unauthorized(message="querier refused")

        def total_supply_of(self, token: bytes) -> int:
            return 0

    with pytest.raises(Unauthorized):
        checked_balance(Denying(), TOKEN, ALICE)


def test_release_surfaces_query_fault(store, codec, settings, env, trigger_info, params, accounts):
    ctl = EmissionController(store, ExplodingQuerier(), codec=codec, settings=settings)
    ctl.instantiate(env, MessageInfo(sender=accounts["minter"]), params)
    with pytest.raises(QueryFault):
        ctl.release(env, trigger_info, Category.NFT)
    assert ctl.load().schedule(Category.NFT).month_index == 0
