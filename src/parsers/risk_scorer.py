"""Weighted risk score over pre-computed analyzer outputs.

Pure and deterministic: no I/O, criteria evaluated in a fixed order.
Each satisfied criterion adds ``base_points * weight``; each unmet one adds
nothing and appends its reason. Nothing ever subtracts.

Criteria:
- lpCount: at least ``min_lp_providers`` LP holders
- lpLocked: at least ``min_lp_locked_pct`` of LP supply locked or burned
- holdersDist: top1 and top10 concentration under their caps
- activity: at least ``min_traders_24h`` unique traders in the last day
- vip: at least ``min_vip_hits`` VIP transfer legs
- revival: revival detected on the pool
- age: token older than ``min_token_age_minutes``
- fdvToMc: FDV / market cap within ``[fdv_mc_low, fdv_mc_high]``
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from loguru import logger

from src.parsers.errors import ValidationError

BASE_POINTS: dict[str, float] = {
    "lpCount": 10,
    "lpLocked": 15,
    "holdersDist": 15,
    "activity": 10,
    "vip": 5,
    "revival": 5,
    "age": 5,
    "fdvToMc": 5,
}

DEFAULT_WEIGHTS: dict[str, float] = {
    "lpCount": 2,
    "lpLocked": 2,
    "holdersDist": 2,
    "activity": 1,
    "vip": 1,
    "revival": 1,
    "age": 1,
    "fdvToMc": 1,
}

REASONS: dict[str, str] = {
    "lpCount": "Too few liquidity providers",
    "lpLocked": "Insufficient share of LP tokens locked or burned",
    "holdersDist": "Token supply concentrated in top holders",
    "activity": "Low trading activity over the last 24h",
    "vip": "No notable wallets trading the token",
    "revival": "No recent revival in pool activity",
    "age": "Token too new",
    "fdvToMc": "FDV diverges from market cap",
}


@dataclass(frozen=True)
class ScoreThresholds:
    min_lp_providers: int = 10
    min_lp_locked_pct: float = 80.0
    max_top1_pct: float = 20.0
    max_top10_pct: float = 50.0
    min_traders_24h: int = 50
    min_vip_hits: int = 1
    min_token_age_minutes: float = 1440.0
    fdv_mc_low: float = 0.9
    fdv_mc_high: float = 1.1


@dataclass(frozen=True)
class ScoreInputs:
    """Observed metrics. ``None`` means unknown and never satisfies a criterion."""

    lp_providers: int | None = None
    lp_locked_pct: float | None = None
    top1_pct: float | None = None
    top10_pct: float | None = None
    traders_24h: int | None = None
    vip_hits: int | None = None
    revival: bool | None = None
    token_age_minutes: float | None = None
    fdv_to_mc: float | None = None


@dataclass
class ScoreResult:
    score: float
    max_score: float
    reasons: list[str] = field(default_factory=list)
    breakdown: dict[str, float] = field(default_factory=dict)


def _criteria(
    m: ScoreInputs, t: ScoreThresholds
) -> list[tuple[str, Callable[[], bool]]]:
    return [
        ("lpCount", lambda: m.lp_providers is not None and m.lp_providers >= t.min_lp_providers),
        ("lpLocked", lambda: m.lp_locked_pct is not None and m.lp_locked_pct >= t.min_lp_locked_pct),
        (
            "holdersDist",
            lambda: m.top1_pct is not None
            and m.top10_pct is not None
            and m.top1_pct <= t.max_top1_pct
            and m.top10_pct <= t.max_top10_pct,
        ),
        ("activity", lambda: m.traders_24h is not None and m.traders_24h >= t.min_traders_24h),
        ("vip", lambda: m.vip_hits is not None and m.vip_hits >= t.min_vip_hits),
        ("revival", lambda: m.revival is True),
        (
            "age",
            lambda: m.token_age_minutes is not None
            and m.token_age_minutes >= t.min_token_age_minutes,
        ),
        (
            "fdvToMc",
            lambda: m.fdv_to_mc is not None and t.fdv_mc_low <= m.fdv_to_mc <= t.fdv_mc_high,
        ),
    ]


def resolve_weights(weights: Mapping[str, float] | None) -> dict[str, float]:
    """Defaults overlaid with ``weights``; unknown keys or negatives are rejected."""
    resolved = dict(DEFAULT_WEIGHTS)
    for key, value in (weights or {}).items():
        if key not in BASE_POINTS:
            raise ValidationError(f"Unknown score criterion: {key}")
        if value < 0:
            raise ValidationError(f"Weight for {key} must be non-negative, got {value}")
        resolved[key] = float(value)
    return resolved


def compute_score(
    inputs: ScoreInputs,
    thresholds: ScoreThresholds | None = None,
    weights: Mapping[str, float] | None = None,
) -> ScoreResult:
    thresholds = thresholds or ScoreThresholds()
    resolved = resolve_weights(weights)

    result = ScoreResult(
        score=0.0,
        max_score=sum(BASE_POINTS[k] * resolved[k] for k in BASE_POINTS),
    )
    for key, satisfied in _criteria(inputs, thresholds):
        if satisfied():
            points = BASE_POINTS[key] * resolved[key]
            result.score += points
            result.breakdown[key] = points
        else:
            result.reasons.append(REASONS[key])

    logger.debug(
        f"[SCORE] {result.score:.0f}/{result.max_score:.0f}, {len(result.reasons)} unmet"
    )
    return result
