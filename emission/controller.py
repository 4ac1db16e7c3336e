from __future__ import annotations

"""
emission.controller — the emission decision engine

Two layers live here.

Pure operations
---------------
Each operation takes the current `EmissionConfig` plus the per-call `Env` and
`MessageInfo` and returns a `Response`. Nothing is mutated; a mutating
operation puts the *new* config on `Response.config` and the caller persists
it. Every failure raises an `EmissionError` before a response exists, so a
caller never sees an instruction without its cursor advance (or the reverse).

    release(config, env, info, category, querier=..., codec=...)
    dynamic_mint(config, env, info, amount, codec=...)
    automatic_burn(config, env, info, querier=..., codec=..., policy=...)
    send_native(config, env, info, amount, to, codec=..., denom=...)

All four start with the same gate: the sender is canonicalized and compared
byte-for-byte with `config.trigger`.

Storage-bound controller
------------------------
`EmissionController` wraps the pure operations in the host lifecycle:
load → operate → save → return. If the save fails the response is dropped and
`StorageFault` propagates. It also logs and counts every outcome.

Shared pair cursor
------------------
`dynamic_mint` releases from the pair schedule and advances the same
`month_index` as `release(Category.PAIR)`. The two entry points draw from one
allotment of `month_count` releases.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union

from emission import metrics
from emission.adapters.state_db import ConfigRepository, KeyValueStore
from emission.adapters.token_ledger import TokenQuerier, checked_balance, checked_total_supply
from emission.address import AddressCodec, short
from emission.burn import DEFAULT_BURN_POLICY, BurnPolicy, burn_amount
from emission.config import EmissionSettings
from emission.context import Env, MessageInfo
from emission.errors import (
    AlreadyInitialized,
    EmissionError,
    InsufficientTreasuryBalance,
    InvalidAmount,
    NotInitialized,
    ScheduleExhausted,
    Unauthorized,
)
from emission.messages import BurnFrom, NativeSend, Response, TokenTransfer
from emission.schedule import (
    VEST_FIELDS,
    Category,
    EmissionConfig,
    InstantiateParams,
    VestingSchedule,
    ensure_uint128,
)
from emission.version import BASE_VERSION, CONTRACT_NAME

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CODEC = AddressCodec()


# ────────────────────────────────────────────────────────────────────────────────
# Pure operations
# ────────────────────────────────────────────────────────────────────────────────


def authorize(config: EmissionConfig, info: MessageInfo, codec: AddressCodec = DEFAULT_CODEC) -> bytes:
    """
    Authorization gate. Returns the sender's canonical address.

    Raises Unauthorized when the sender is not the configured trigger and
    MalformedAddress when the sender cannot be canonicalized.
    """
    sender = codec.canonicalize(info.sender)
    if sender != config.trigger:
        raise Unauthorized(sender=info.sender)
    return sender


def build_config(params: InstantiateParams, codec: AddressCodec = DEFAULT_CODEC) -> EmissionConfig:
    """Canonicalize instantiate parameters into a fresh config (all cursors at 0)."""
    schedules = {
        category: VestingSchedule(
            beneficiary=codec.canonicalize(vest.address),
            monthly_amount=vest.monthly_amount,
            month_count=vest.month_count,
            month_index=0,
        )
        for category, vest in params.vests.items()
    }
    return EmissionConfig(
        token=codec.canonicalize(params.token),
        minter=codec.canonicalize(params.minter),
        trigger=codec.canonicalize(params.trigger),
        schedules=schedules,
    )


def _require_open(category: Category, schedule: VestingSchedule) -> None:
    if schedule.exhausted:
        raise ScheduleExhausted(
            category=category.value,
            month_index=schedule.month_index,
            month_count=schedule.month_count,
        )


def release(
    config: EmissionConfig,
    env: Env,
    info: MessageInfo,
    category: Union[Category, str],
    *,
    querier: TokenQuerier,
    codec: AddressCodec = DEFAULT_CODEC,
) -> Response:
    """
    Scheduled monthly release for one beneficiary category.

    Checks, in order: trigger, schedule bound, treasury balance. On success
    returns one TokenTransfer of `monthly_amount` to the beneficiary and the
    config with that category's cursor advanced by one.
    """
    authorize(config, info, codec)
    category = Category.parse(category)
    schedule = config.schedule(category)
    _require_open(category, schedule)

    treasury = codec.canonicalize(env.contract_address)
    available = checked_balance(querier, config.token, treasury)
    if available < schedule.monthly_amount:
        raise InsufficientTreasuryBalance(
            required=schedule.monthly_amount,
            available=available,
            category=category.value,
        )

    transfer = TokenTransfer(
        token=codec.humanize(config.token),
        recipient=codec.humanize(schedule.beneficiary),
        amount=schedule.monthly_amount,
    )
    new_config = config.advance(category)
    return Response(
        messages=(transfer,),
        attributes=(
            ("action", "release"),
            ("category", category.value),
            ("recipient", transfer.recipient),
            ("amount", str(transfer.amount)),
            ("month_index", str(new_config.schedule(category).month_index)),
            ("month_count", str(schedule.month_count)),
        ),
        config=new_config,
    )


def dynamic_mint(
    config: EmissionConfig,
    env: Env,
    info: MessageInfo,
    amount: Any,
    *,
    codec: AddressCodec = DEFAULT_CODEC,
) -> Response:
    """
    Release the pair schedule's `monthly_amount` without a treasury check.

    `amount` is validated and echoed as `requested_amount` but does not change
    what is released. Advances the pair cursor shared with `release(PAIR)`.
    """
    authorize(config, info, codec)
    requested = ensure_uint128("amount", amount)
    category = Category.PAIR
    schedule = config.schedule(category)
    _require_open(category, schedule)

    transfer = TokenTransfer(
        token=codec.humanize(config.token),
        recipient=codec.humanize(schedule.beneficiary),
        amount=schedule.monthly_amount,
    )
    new_config = config.advance(category)
    return Response(
        messages=(transfer,),
        attributes=(
            ("action", "dynamic_mint"),
            ("category", category.value),
            ("recipient", transfer.recipient),
            ("amount", str(transfer.amount)),
            ("requested_amount", str(requested)),
            ("month_index", str(new_config.schedule(category).month_index)),
            ("month_count", str(schedule.month_count)),
        ),
        config=new_config,
    )


def automatic_burn(
    config: EmissionConfig,
    env: Env,
    info: MessageInfo,
    *,
    querier: TokenQuerier,
    codec: AddressCodec = DEFAULT_CODEC,
    policy: BurnPolicy = DEFAULT_BURN_POLICY,
) -> Response:
    """Burn a tier of total supply out of the pair beneficiary's balance. Stateless."""
    authorize(config, info, codec)
    supply = checked_total_supply(querier, config.token)
    amount = burn_amount(supply, policy)
    burn = BurnFrom(
        token=codec.humanize(config.token),
        owner=codec.humanize(config.schedule(Category.PAIR).beneficiary),
        amount=amount,
    )
    return Response(
        messages=(burn,),
        attributes=(
            ("action", "automatic_burn"),
            ("owner", burn.owner),
            ("total_supply", str(supply)),
            ("tier", policy.tier(supply)),
            ("amount", str(amount)),
        ),
    )


def send_native(
    config: EmissionConfig,
    env: Env,
    info: MessageInfo,
    amount: Any,
    to: str,
    *,
    codec: AddressCodec = DEFAULT_CODEC,
    denom: str = "uluna",
) -> Response:
    """Forward `amount` of the native denom from the controller to `to`. Stateless."""
    authorize(config, info, codec)
    value = ensure_uint128("amount", amount)
    if value == 0:
        raise InvalidAmount("amount must be positive")
    recipient = codec.humanize(codec.canonicalize(to))
    send = NativeSend(to_address=recipient, denom=denom, amount=value)
    return Response(
        messages=(send,),
        attributes=(
            ("action", "send_native"),
            ("to", recipient),
            ("denom", denom),
            ("amount", str(value)),
        ),
    )


# ────────────────────────────────────────────────────────────────────────────────
# Storage-bound controller
# ────────────────────────────────────────────────────────────────────────────────


class EmissionController:
    """
    Host-side wrapper: load the config, run one pure operation, persist the
    new config if there is one, return the response.

    Parameters
    ----------
    store:    any `KeyValueStore` (MemoryStore, SqliteStore, ...).
    querier:  the emission token's balance / total-supply collaborator.
    codec:    address codec; defaults to one bound to `settings.address_hrp`.
    settings: runtime settings (burn policy, native denom, storage key).
    """

    def __init__(
        self,
        store: KeyValueStore,
        querier: TokenQuerier,
        codec: Optional[AddressCodec] = None,
        settings: Optional[EmissionSettings] = None,
    ) -> None:
        self.settings = settings or EmissionSettings()
        self.codec = codec or AddressCodec(hrp=self.settings.address_hrp)
        self.querier = querier
        self.repo = ConfigRepository(store, key=self.settings.storage.storage_key)

    # --- lifecycle helpers ---

    def _guard(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except EmissionError as e:
            metrics.record_rejection(operation, e.code)
            log.warning("%s rejected: %s", operation, e)
            raise

    def _commit(self, resp: Response) -> Response:
        if resp.config is not None:
            self.repo.save(resp.config)
        return resp

    def load(self) -> EmissionConfig:
        return self.repo.load()

    # --- operations ---

    def instantiate(
        self,
        env: Env,
        info: MessageInfo,
        params: Union[InstantiateParams, Mapping[str, Any]],
    ) -> Response:
        def run() -> Response:
            p = params if isinstance(params, InstantiateParams) else InstantiateParams.from_dict(params)
            if self.repo.exists():
                raise AlreadyInitialized("configuration already exists")
            config = build_config(p, self.codec)
            resp = Response(
                attributes=(
                    ("action", "instantiate"),
                    ("contract", CONTRACT_NAME),
                    ("version", BASE_VERSION),
                    ("sender", info.sender),
                    ("timer_trigger", self.codec.humanize(config.trigger)),
                ),
                config=config,
            )
            self.repo.save_contract_info(CONTRACT_NAME, BASE_VERSION)
            self._commit(resp)
            log.info(
                "instantiated %s %s at %s (trigger=%s)",
                CONTRACT_NAME,
                BASE_VERSION,
                short(env.contract_address),
                short(self.codec.humanize(config.trigger)),
            )
            return resp

        return self._guard("instantiate", run)

    def release(self, env: Env, info: MessageInfo, category: Union[Category, str]) -> Response:
        def run() -> Response:
            resp = self._commit(
                release(self.load(), env, info, category, querier=self.querier, codec=self.codec)
            )
            self._after_release(resp, "release")
            return resp

        return self._guard("release", run)

    def dynamic_mint(self, env: Env, info: MessageInfo, amount: Any) -> Response:
        def run() -> Response:
            resp = self._commit(dynamic_mint(self.load(), env, info, amount, codec=self.codec))
            self._after_release(resp, "dynamic_mint")
            return resp

        return self._guard("dynamic_mint", run)

    def automatic_burn(self, env: Env, info: MessageInfo) -> Response:
        def run() -> Response:
            resp = automatic_burn(
                self.load(),
                env,
                info,
                querier=self.querier,
                codec=self.codec,
                policy=self.settings.burn,
            )
            amount = int(resp.attribute("amount") or 0)
            tier = resp.attribute("tier") or ""
            metrics.record_burn(tier, amount)
            log.info(
                "automatic burn: supply=%s tier=%s amount=%d owner=%s",
                resp.attribute("total_supply"),
                tier,
                amount,
                short(resp.attribute("owner") or ""),
            )
            return resp

        return self._guard("automatic_burn", run)

    def send_native(self, env: Env, info: MessageInfo, amount: Any, to: str) -> Response:
        def run() -> Response:
            resp = send_native(
                self.load(),
                env,
                info,
                amount,
                to,
                codec=self.codec,
                denom=self.settings.native_denom,
            )
            metrics.record_native_send(self.settings.native_denom)
            log.info(
                "native send: %s%s to %s",
                resp.attribute("amount"),
                self.settings.native_denom,
                short(resp.attribute("to") or ""),
            )
            return resp

        return self._guard("send_native", run)

    def _after_release(self, resp: Response, operation: str) -> None:
        category = resp.attribute("category") or ""
        amount = int(resp.attribute("amount") or 0)
        metrics.record_release(category, amount, operation)
        log.info(
            "%s: category=%s amount=%d month=%s/%s",
            operation,
            category,
            amount,
            resp.attribute("month_index"),
            resp.attribute("month_count"),
        )

    # --- queries ---

    def _schedule_view(self, category: Category, schedule: VestingSchedule) -> Dict[str, Any]:
        return {
            "category": category.value,
            "address": self.codec.humanize(schedule.beneficiary),
            "monthly_amount": str(schedule.monthly_amount),
            "month_count": str(schedule.month_count),
            "month_index": str(schedule.month_index),
            "remaining": str(schedule.remaining),
        }

    def query_config(self) -> Dict[str, Any]:
        config = self.load()
        view: Dict[str, Any] = {
            "clsm_addr": self.codec.humanize(config.token),
            "minter_addr": self.codec.humanize(config.minter),
            "timer_trigger": self.codec.humanize(config.trigger),
        }
        for category, schedule in config.items():
            view[VEST_FIELDS[category]] = self._schedule_view(category, schedule)
        return view

    def query_schedule(self, category: Union[Category, str]) -> Dict[str, Any]:
        category = Category.parse(category)
        return self._schedule_view(category, self.load().schedule(category))

    def contract_info(self) -> Dict[str, str]:
        info = self.repo.load_contract_info()
        if info is None:
            raise NotInitialized("no contract info recorded")
        return info


__all__ = [
    "authorize",
    "build_config",
    "release",
    "dynamic_mint",
    "automatic_burn",
    "send_native",
    "EmissionController",
]
