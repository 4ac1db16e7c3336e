from __future__ import annotations

"""
emission.cli.emissionctl
------------------------

Operator CLI for a locally hosted emission controller.

State lives in a SQLite file (--db); token balances and total supply come from
a JSON ledger snapshot (--ledger, see `InMemoryTokenLedger.dump`). Every
command prints the operation's response (outbound instruction + attributes)
as JSON. Instructions are printed, never executed.

Examples
--------
# Create the configuration record from a params file (JSON or YAML)
emissionctl --db emission.db --sender terra1... --contract terra1... init params.yaml

# Monthly release for the NFT minters, called as the timer trigger
emissionctl --db emission.db --ledger ledger.json --sender terra1trigger... \
    --contract terra1moon... release nft

# Tiered burn and a native sweep
emissionctl ... burn
emissionctl ... send-native 1000000 terra1dest...

# Inspect the stored configuration or one schedule
emissionctl --db emission.db show --category pair
"""

import contextlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, NoReturn, Optional

import typer
import yaml

from emission import config as settings_mod
from emission.adapters.state_db import SqliteStore
from emission.adapters.token_ledger import InMemoryTokenLedger
from emission.context import ContextError, Env, MessageInfo
from emission.controller import EmissionController
from emission.errors import ConfigError, EmissionError
from emission.messages import Response

app = typer.Typer(
    name="emissionctl",
    add_completion=False,
    no_args_is_help=True,
    help="Drive the token-emission controller: instantiate, release, burn, sweep, inspect.",
)

log = logging.getLogger("emission.cli")


# -------------------- utils --------------------


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _fail(err: EmissionError) -> NoReturn:
    typer.echo(json.dumps({"error": err.to_dict()}, sort_keys=True), err=True)
    raise typer.Exit(1)


def _read_params(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read params file {path}: {e}") from e
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text or "{}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse params file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"params file {path} must contain a mapping")
    return data


class _Session:
    """Per-invocation wiring: settings, store, ledger, caller identity."""

    def __init__(
        self,
        db: Optional[str],
        ledger: Optional[Path],
        sender: Optional[str],
        contract: Optional[str],
        log_level: Optional[str],
    ) -> None:
        settings = settings_mod.load()
        if db:
            settings.storage.db_path = db
        if log_level:
            settings.log_level = log_level.upper()
        settings.validate()
        self.settings = settings
        self.ledger_path = ledger
        self.sender = sender
        self.contract = contract

    @contextlib.contextmanager
    def controller(self) -> Iterator[EmissionController]:
        ledger = InMemoryTokenLedger.load_file(self.ledger_path) if self.ledger_path else InMemoryTokenLedger()
        with SqliteStore(self.settings.storage.db_path) as store:
            yield EmissionController(store, ledger, settings=self.settings)

    def env(self) -> Env:
        if not self.contract:
            raise ConfigError("--contract (or EMISSION_CONTRACT) is required for this command")
        try:
            return Env(contract_address=self.contract)
        except ContextError as e:
            raise ConfigError(str(e)) from e

    def info(self) -> MessageInfo:
        if not self.sender:
            raise ConfigError("--sender (or EMISSION_SENDER) is required for this command")
        try:
            return MessageInfo(sender=self.sender)
        except ContextError as e:
            raise ConfigError(str(e)) from e


def _session(ctx: typer.Context) -> _Session:
    return ctx.ensure_object(dict)["session"]


def _run_op(ctx: typer.Context, op: str, *args: Any) -> None:
    try:
        sess = _session(ctx)
        with sess.controller() as ctl:
            resp: Response = getattr(ctl, op)(sess.env(), sess.info(), *args)
    except EmissionError as e:
        _fail(e)
    _echo_json(resp.to_dict())


# -------------------- commands --------------------


@app.command("init")
def init_cmd(
    ctx: typer.Context,
    params_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Instantiate params (JSON or YAML)."),
) -> None:
    """Create the configuration record (fails if one already exists)."""
    try:
        params = _read_params(params_file)
    except EmissionError as e:
        _fail(e)
    _run_op(ctx, "instantiate", params)


@app.command("release")
def release_cmd(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="pair | nft | marketing | game | team"),
) -> None:
    """Release one month of CATEGORY's vesting schedule."""
    _run_op(ctx, "release", category)


@app.command("dynamic-mint")
def dynamic_mint_cmd(
    ctx: typer.Context,
    amount: str = typer.Argument(..., help="Requested amount (recorded; the pair monthly amount is released)."),
) -> None:
    """Release the pair schedule's monthly amount without a treasury check."""
    _run_op(ctx, "dynamic_mint", amount)


@app.command("burn")
def burn_cmd(ctx: typer.Context) -> None:
    """Burn a tier of total supply from the pair beneficiary."""
    _run_op(ctx, "automatic_burn")


@app.command("send-native")
def send_native_cmd(
    ctx: typer.Context,
    amount: str = typer.Argument(..., help="Amount of the native denom, in base units."),
    to: str = typer.Argument(..., help="Destination address."),
) -> None:
    """Forward native currency from the controller to TO."""
    _run_op(ctx, "send_native", amount, to)


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Show a single schedule."),
) -> None:
    """Print the stored configuration (or one schedule) with human addresses."""
    try:
        with _session(ctx).controller() as ctl:
            view = ctl.query_schedule(category) if category else ctl.query_config()
    except EmissionError as e:
        _fail(e)
    _echo_json(view)


@app.command("settings")
def settings_cmd(ctx: typer.Context) -> None:
    """Print the effective runtime settings."""
    typer.echo(settings_mod.pretty(_session(ctx).settings))


@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", envvar="EMISSION_DB_PATH", help="SQLite state file."),
    ledger: Optional[Path] = typer.Option(
        None, "--ledger", dir_okay=False, help="JSON token-ledger snapshot (balances, total supply)."
    ),
    sender: Optional[str] = typer.Option(None, "--sender", envvar="EMISSION_SENDER", help="Caller address."),
    contract: Optional[str] = typer.Option(
        None, "--contract", envvar="EMISSION_CONTRACT", help="The controller's own address."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="CRITICAL | ERROR | WARNING | INFO | DEBUG."),
) -> None:
    """
    Token-emission controller CLI.
    """
    try:
        sess = _Session(db, ledger, sender, contract, log_level)
    except EmissionError as e:
        _fail(e)
    logging.basicConfig(
        level=sess.settings.log_level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)["session"] = sess
    log.debug("settings: %s", sess.settings.to_dict())


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":  # pragma: no cover
    app()
