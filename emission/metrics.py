from __future__ import annotations

"""
Prometheus metrics for the emission controller.

Counters cover:
- releases: scheduled releases and dynamic mints, by category
- released amount: base units moved out of the treasury, by category
- burns / burned amount
- native sends
- rejections: calls that raised, by operation and error code

Amount counters are in the token's base units. Prometheus stores floats, so
very large totals lose precision; they are for dashboards, not accounting.
"""


from typing import Optional

from prometheus_client import CollectorRegistry, Counter, generate_latest

REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   category:  "pair" | "nft" | "marketing" | "game" | "team"
#   operation: "instantiate" | "release" | "dynamic_mint" | "automatic_burn" | "send_native"
#   code:      EmissionError.code, e.g. "EMISSION_UNAUTHORIZED"
# ────────────────────────────────────────────────────────────────────────────────

RELEASES = Counter(
    "moon_emission_releases_total",
    "Total vesting releases by category (includes dynamic mints on the pair schedule).",
    labelnames=("category", "operation"),
    registry=REGISTRY,
)

RELEASED_AMOUNT = Counter(
    "moon_emission_released_amount_total",
    "Total token base units released by category.",
    labelnames=("category",),
    registry=REGISTRY,
)

BURNS = Counter(
    "moon_emission_burns_total",
    "Total automatic burn instructions emitted by tier.",
    labelnames=("tier",),
    registry=REGISTRY,
)

BURNED_AMOUNT = Counter(
    "moon_emission_burned_amount_total",
    "Total token base units requested for burning.",
    registry=REGISTRY,
)

NATIVE_SENDS = Counter(
    "moon_emission_native_sends_total",
    "Total native-currency send instructions emitted by denom.",
    labelnames=("denom",),
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "moon_emission_rejections_total",
    "Total rejected calls by operation and error code.",
    labelnames=("operation", "code"),
    registry=REGISTRY,
)


def record_release(category: str, amount: int, operation: str = "release") -> None:
    RELEASES.labels(category=category, operation=operation).inc()
    if amount > 0:
        RELEASED_AMOUNT.labels(category=category).inc(float(amount))


def record_burn(tier: str, amount: int) -> None:
    BURNS.labels(tier=tier).inc()
    if amount > 0:
        BURNED_AMOUNT.inc(float(amount))


def record_native_send(denom: str) -> None:
    NATIVE_SENDS.labels(denom=denom).inc()


def record_rejection(operation: str, code: str) -> None:
    """Count a call that raised an EmissionError."""
    REJECTIONS.labels(operation=operation, code=code).inc()


def render(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of `registry` (default: this module's)."""
    return generate_latest(registry or REGISTRY)


__all__ = [
    "REGISTRY",
    "RELEASES",
    "RELEASED_AMOUNT",
    "BURNS",
    "BURNED_AMOUNT",
    "NATIVE_SENDS",
    "REJECTIONS",
    "record_release",
    "record_burn",
    "record_native_send",
    "record_rejection",
    "render",
]
