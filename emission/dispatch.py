"""
Message routing for the emission controller.

Wire messages are single-key JSON objects whose key names the entry point and
whose value carries its arguments:

    {"mint_clsm_to_pair_contract": {}}
    {"dynamic_mint_from_lunc": {"amount": "1000"}}
    {"send_lunc": {"amount": "5", "to": "terra1..."}}
    {"schedule": {"category": "nft"}}

`execute` and `query` unwrap the message, pick the controller call and pass
the arguments through; they add no semantics of their own.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from emission.context import Env, MessageInfo
from emission.controller import EmissionController
from emission.errors import UnknownMessage
from emission.messages import Response
from emission.schedule import Category

# Execute entry points that map one-to-one onto a scheduled release.
RELEASE_MESSAGES: Mapping[str, Category] = {
    "mint_clsm_to_pair_contract": Category.PAIR,
    "mint_clsm_to_nft_minters": Category.NFT,
    "mint_clsm_to_marketing": Category.MARKETING,
    "mint_clsm_to_mini_games": Category.GAME,
    "mint_clsm_to_team": Category.TEAM,
}

DYNAMIC_MINT_MESSAGES = ("dynamic_mint_from_lunc", "dynamic_mint_from_ustc")

EXECUTE_MESSAGES: Tuple[str, ...] = (
    *RELEASE_MESSAGES,
    *DYNAMIC_MINT_MESSAGES,
    "automatic_burn",
    "send_lunc",
)

QUERY_MESSAGES: Tuple[str, ...] = ("config", "schedule", "contract_info")


def _unwrap(msg: Any) -> Tuple[str, Dict[str, Any]]:
    if not isinstance(msg, Mapping) or len(msg) != 1:
        raise UnknownMessage("message must be an object with exactly one key")
    (name, body), = msg.items()
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise UnknownMessage(f"arguments of {name!r} must be an object", details={"message": str(name)})
    return str(name), dict(body)


def _arg(name: str, body: Mapping[str, Any], key: str) -> Any:
    if key not in body:
        raise UnknownMessage(f"{name} requires {key!r}", details={"message": name})
    return body[key]


def instantiate(controller: EmissionController, env: Env, info: MessageInfo, msg: Mapping[str, Any]) -> Response:
    return controller.instantiate(env, info, msg)


def execute(controller: EmissionController, env: Env, info: MessageInfo, msg: Any) -> Response:
    name, body = _unwrap(msg)
    if name in RELEASE_MESSAGES:
        return controller.release(env, info, RELEASE_MESSAGES[name])
    if name in DYNAMIC_MINT_MESSAGES:
        return controller.dynamic_mint(env, info, _arg(name, body, "amount"))
    if name == "automatic_burn":
        return controller.automatic_burn(env, info)
    if name == "send_lunc":
        return controller.send_native(env, info, _arg(name, body, "amount"), _arg(name, body, "to"))
    raise UnknownMessage(f"unknown execute message {name!r}", details={"message": name})


def query(controller: EmissionController, msg: Any) -> Dict[str, Any]:
    name, body = _unwrap(msg)
    if name == "config":
        return controller.query_config()
    if name == "schedule":
        return controller.query_schedule(_arg(name, body, "category"))
    if name == "contract_info":
        return controller.contract_info()
    raise UnknownMessage(f"unknown query message {name!r}", details={"message": name})


__all__ = [
    "RELEASE_MESSAGES",
    "DYNAMIC_MINT_MESSAGES",
    "EXECUTE_MESSAGES",
    "QUERY_MESSAGES",
    "instantiate",
    "execute",
    "query",
]
