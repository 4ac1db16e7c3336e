from __future__ import annotations

import pytest

from emission.context import Env, MessageInfo
from emission.errors import (
    ConfigError,
    InsufficientTreasuryBalance,
    MalformedAddress,
    ScheduleExhausted,
    Unauthorized,
)
from emission.messages import TokenTransfer
from emission.schedule import Category


def _index(ctl, category: Category) -> int:
    return ctl.load().schedule(category).month_index


def test_release_pair_emits_one_transfer_and_advances(controller, env, trigger_info, accounts):
    resp = controller.release(env, trigger_info, Category.PAIR)

    assert resp.messages == (
        TokenTransfer(token=accounts["token"], recipient=accounts["pair"], amount=100),
    )
    assert resp.attribute("action") == "release"
    assert resp.attribute("category") == "pair"
    assert resp.attribute("month_index") == "1"
    assert _index(controller, Category.PAIR) == 1


def test_two_releases_then_exhaustion_after_twelve(controller, env, trigger_info):
    seen = [_index(controller, Category.PAIR)]
    amounts = []
    for _ in range(2):
        resp = controller.release(env, trigger_info, "pair")
        amounts.append(resp.message.amount)
        seen.append(_index(controller, Category.PAIR))
    assert seen == [0, 1, 2]
    assert amounts == [100, 100]

    for _ in range(10):
        controller.release(env, trigger_info, "pair")
    assert _index(controller, Category.PAIR) == 12

    with pytest.raises(ScheduleExhausted) as ei:
        controller.release(env, trigger_info, "pair")
    assert ei.value.details == {"category": "pair", "month_index": 12, "month_count": 12}
    assert _index(controller, Category.PAIR) == 12


@pytest.mark.parametrize(
    "category, monthly",
    [
        (Category.NFT, 200),
        (Category.MARKETING, 50),
        (Category.GAME, 75),
        (Category.TEAM, 1000),
    ],
)
def test_each_category_pays_its_own_beneficiary(controller, env, trigger_info, accounts, category, monthly):
    resp = controller.release(env, trigger_info, category)
    assert resp.message.recipient == accounts[category.value]
    assert resp.message.amount == monthly
    # other cursors untouched
    for other in Category:
        expected = 1 if other is category else 0
        assert _index(controller, other) == expected


def test_release_from_stranger_is_unauthorized(controller, env, stranger_info):
    before = controller.load()
    with pytest.raises(Unauthorized):
        controller.release(env, stranger_info, Category.NFT)
    assert controller.load() == before


def test_unauthorized_takes_precedence_over_exhaustion(controller, env, trigger_info, stranger_info):
    controller.release(env, trigger_info, Category.TEAM)  # 1 of 1
    with pytest.raises(Unauthorized):
        controller.release(env, stranger_info, Category.TEAM)
    with pytest.raises(ScheduleExhausted):
        controller.release(env, trigger_info, Category.TEAM)


def test_malformed_sender_is_rejected(controller, env):
    with pytest.raises(MalformedAddress):
        controller.release(env, MessageInfo(sender="not-an-address"), Category.PAIR)
    assert _index(controller, Category.PAIR) == 0


def test_insufficient_treasury_balance_leaves_cursor(controller, env, trigger_info, ledger, raw_accounts):
    ledger.set_balance(raw_accounts["token"], raw_accounts["contract"], 99)
    with pytest.raises(InsufficientTreasuryBalance) as ei:
        controller.release(env, trigger_info, Category.PAIR)
    assert ei.value.details["required"] == 100
    assert ei.value.details["available"] == 99
    assert _index(controller, Category.PAIR) == 0


def test_balance_equal_to_monthly_amount_is_enough(controller, env, trigger_info, ledger, raw_accounts):
    ledger.set_balance(raw_accounts["token"], raw_accounts["contract"], 100)
    resp = controller.release(env, trigger_info, Category.PAIR)
    assert resp.message.amount == 100


def test_balance_is_checked_for_the_controller_address(controller, trigger_info, ledger, raw_accounts, accounts):
    # treasury balance is read at env.contract_address
    ledger.set_balance(raw_accounts["token"], raw_accounts["stranger"], 10**9)
    other_env = Env(contract_address=accounts["stranger"])
    controller.release(other_env, trigger_info, Category.PAIR)

    empty_env = Env(contract_address=accounts["destination"])
    with pytest.raises(InsufficientTreasuryBalance):
        controller.release(empty_env, trigger_info, Category.PAIR)


def test_unknown_category_is_a_config_error(controller, env, trigger_info):
    with pytest.raises(ConfigError):
        controller.release(env, trigger_info, "treasury")
