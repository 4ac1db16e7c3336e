from __future__ import annotations

import pytest

from emission.errors import ConfigError, EmissionError, InvalidAmount, ScheduleExhausted, Unauthorized
from emission.messages import NativeSend, Response, TokenTransfer
from emission.schedule import UINT128_MAX, Category, EmissionConfig, VestingSchedule, ensure_uint128

BENEFICIARY = b"\x07" * 20


def _config(overrides=None) -> EmissionConfig:
    schedules = {c: VestingSchedule(BENEFICIARY, 10, 2) for c in Category}
    schedules.update(overrides or {})
    return EmissionConfig(token=b"\x01" * 32, minter=b"\x02" * 20, trigger=b"\x03" * 20, schedules=schedules)


@pytest.mark.parametrize(
    "value, expected",
    [(0, 0), ("42", 42), (" 7 ", 7), (UINT128_MAX, UINT128_MAX), ("0" * 5000 + "12", 12), (str(UINT128_MAX), UINT128_MAX)],
)
def test_ensure_uint128_accepts(value, expected):
    assert ensure_uint128("x", value) == expected


@pytest.mark.parametrize(
    "value",
    [-1, UINT128_MAX + 1, "-1", "1e3", "", 2.0, False, None, "\u00b2", "\u0661\u0662", "9" * 5000, "1" + "0" * 39],
)
def test_ensure_uint128_rejects(value):
    with pytest.raises(InvalidAmount):
        ensure_uint128("x", value)


def test_category_parse():
    assert Category.parse("NFT") is Category.NFT
    assert Category.parse(Category.TEAM) is Category.TEAM
    with pytest.raises(ConfigError):
        Category.parse("treasury")


def test_schedule_invariant_enforced():
    with pytest.raises(ConfigError):
        VestingSchedule(BENEFICIARY, 10, 2, month_index=3)
    with pytest.raises(ConfigError):
        VestingSchedule(b"", 10, 2)


def test_schedule_advance_and_exhaustion():
    s = VestingSchedule(BENEFICIARY, 10, 2)
    s1 = s.advanced()
    s2 = s1.advanced()
    assert (s.month_index, s1.month_index, s2.month_index) == (0, 1, 2)
    assert s2.exhausted and s2.remaining == 0
    with pytest.raises(ConfigError):
        s2.advanced()


def test_config_advance_returns_new_value():
    cfg = _config()
    new = cfg.advance(Category.GAME)
    assert cfg.schedule(Category.GAME).month_index == 0
    assert new.schedule(Category.GAME).month_index == 1
    assert new.schedule(Category.PAIR) == cfg.schedule(Category.PAIR)


def test_config_requires_every_category():
    schedules = {c: VestingSchedule(BENEFICIARY, 1, 1) for c in Category if c is not Category.TEAM}
    with pytest.raises(ConfigError, match="team"):
        EmissionConfig(token=b"\x01" * 32, minter=b"\x02" * 20, trigger=b"\x03" * 20, schedules=schedules)


def test_config_schedules_are_read_only():
    cfg = _config()
    with pytest.raises(TypeError):
        cfg.schedules[Category.PAIR] = VestingSchedule(BENEFICIARY, 1, 1)  # type: ignore[index]


def test_config_dump_load():
    cfg = _config({Category.NFT: VestingSchedule(BENEFICIARY, UINT128_MAX, 5, month_index=4)})
    data = cfg.dump()
    assert data["schedules"]["nft"]["monthly_amount"] == str(UINT128_MAX)
    assert EmissionConfig.load(data) == cfg


def test_config_load_rejects_broken_invariant():
    data = _config().dump()
    data["schedules"]["pair"]["month_index"] = "3"
    with pytest.raises(ConfigError):
        EmissionConfig.load(data)


def test_response_holds_at_most_one_instruction():
    t = TokenTransfer(token="terra1tok", recipient="terra1rcpt", amount=1)
    with pytest.raises(ValueError):
        Response(messages=(t, t))
    resp = Response(messages=(t,), attributes=(("amount", 1),))
    assert resp.message is t
    assert resp.attribute("amount") == "1"
    assert resp.attribute("missing") is None
    assert resp.to_dict()["attributes"] == [{"key": "amount", "value": "1"}]


def test_instruction_amounts_are_uint128():
    with pytest.raises(InvalidAmount):
        NativeSend(to_address="terra1x", denom="uluna", amount=-1)


def test_error_serialization():
    err = ScheduleExhausted(category="pair", month_index=12, month_count=12)
    assert err.to_dict() == {
        "code": "EMISSION_SCHEDULE_EXHAUSTED",
        "message": "vesting schedule exhausted",
        "details": {"category": "pair", "month_index": 12, "month_count": 12},
    }
    assert str(err).startswith("EMISSION_SCHEDULE_EXHAUSTED: vesting schedule exhausted [")
    assert isinstance(Unauthorized(), EmissionError)
    assert str(Unauthorized()) == "EMISSION_UNAUTHORIZED: caller is not the timer trigger"
