"""Carrier scoring: speed, reliability and return sub-scores, weighted overall and tier."""

import math

import pandas as pd

from carrier_intel.config import MissingScorePolicy, ScoringConfig
from carrier_intel.engine.models import CarrierID, CarrierMetrics, CarrierScore, Tier

DEFAULT_SCORING = ScoringConfig()


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float | None, digits: int) -> float | None:
    if value is None:
        return None
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def speed_score(avg_delivery_time_hours: float | None, config: ScoringConfig = DEFAULT_SCORING) -> float | None:
    """48h scores 100, 96h scores 50, 144h and beyond score 0."""
    if avg_delivery_time_hours is None:
        return None
    excess = (avg_delivery_time_hours - config.speed_anchor_hours) / config.speed_span_hours
    return _clamp(100.0 - excess * 100.0)


def reliability_score(delivery_success_rate: float) -> float:
    return _clamp(delivery_success_rate)


def return_rate_score(return_rate: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
    return _clamp(100.0 - return_rate * config.return_rate_penalty)


def overall_score(
    speed: float | None,
    reliability: float | None,
    returns: float | None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float | None:
    """Weighted composite of the three sub-scores.

    With ``MissingScorePolicy.REWEIGHT`` the weights of absent sub-scores are
    redistributed proportionally over the present ones; with
    ``MissingScorePolicy.ABSENT`` any absent sub-score makes the result absent.
    """
    w = config.weights
    parts = [(speed, w.speed), (reliability, w.reliability), (returns, w.return_rate)]
    present = [(score, weight) for score, weight in parts if score is not None]

    match config.missing_score_policy:
        case MissingScorePolicy.ABSENT if len(present) < len(parts):
            return None
        case MissingScorePolicy.ABSENT | MissingScorePolicy.REWEIGHT:
            pass
        case other:
            raise ValueError(f"Unknown missing score policy: {other}")

    total_weight = sum(weight for _, weight in present)
    if not present or total_weight == 0:
        return None
    return sum(score * weight for score, weight in present) / total_weight


def tier_for(score: float | None, config: ScoringConfig = DEFAULT_SCORING) -> Tier | None:
    if score is None:
        return None
    cutoffs = config.tiers
    match score:
        case s if s >= cutoffs.excellent:
            return Tier.EXCELLENT
        case s if s >= cutoffs.good:
            return Tier.GOOD
        case s if s >= cutoffs.average:
            return Tier.AVERAGE
        case _:
            return Tier.POOR


def score_carrier(metrics: CarrierMetrics, config: ScoringConfig = DEFAULT_SCORING) -> CarrierScore:
    """Score one carrier from its own metrics; no other carrier is consulted."""
    speed = speed_score(metrics.avg_delivery_time_hours, config)
    reliability = reliability_score(metrics.delivery_success_rate)
    returns = return_rate_score(metrics.return_rate, config)
    overall = overall_score(speed, reliability, returns, config)

    digits = config.precision
    return CarrierScore(
        carrier=metrics.carrier,
        speed_score=_round_half_up(speed, digits),
        reliability_score=_round_half_up(reliability, digits),
        return_rate_score=_round_half_up(returns, digits),
        overall_score=_round_half_up(overall, digits),
        # tier is taken from the unrounded composite
        tier=tier_for(overall, config),
    )


def score_carriers(
    metrics: dict[CarrierID, CarrierMetrics],
    config: ScoringConfig = DEFAULT_SCORING,
) -> dict[CarrierID, CarrierScore]:
    return {carrier: score_carrier(m, config) for carrier, m in metrics.items()}


def scores_to_frame(scores: dict[CarrierID, CarrierScore]) -> pd.DataFrame:
    columns = ["carrier", "speed_score", "reliability_score", "return_rate_score", "overall_score", "tier"]
    rows = [
        {**s.to_dict(), "tier": str(s.tier) if s.tier else None}
        for s in scores.values()
    ]
    return pd.DataFrame(rows, columns=columns)
