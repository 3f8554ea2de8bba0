"""Carrier routing recommendations by objective."""

import pandas as pd

from carrier_intel.engine.models import (
    CarrierID,
    CarrierScore,
    Objective,
    PaymentMode,
    Recommendation,
)

MAX_ALTERNATES = 2

# Primary metric and tie-break columns per objective; carrier id is the final key
RANKING_KEYS: dict[Objective, list[str]] = {
    Objective.OVERALL: ["overall_score", "reliability_score"],
    Objective.COD: ["reliability_score"],
    Objective.PREPAID: ["speed_score"],
}


def rank_carriers(scores: dict[CarrierID, CarrierScore], objective: Objective) -> list[CarrierID]:
    """Deterministic best-first ordering of carriers for an objective.

    Carriers lacking the objective's primary metric always sort after the
    ones that have it.
    """
    if objective not in RANKING_KEYS:
        raise ValueError(f"Unknown routing objective: {objective}")
    if not scores:
        return []

    keys = RANKING_KEYS[objective]
    frame = pd.DataFrame(
        [{"carrier": s.carrier, **{k: getattr(s, k) for k in keys}} for s in scores.values()]
    )
    frame[keys] = frame[keys].astype("float64")
    frame["_missing"] = frame[keys[0]].isna()
    ranked = frame.sort_values(
        by=["_missing", *keys, "carrier"],
        ascending=[True, *([False] * len(keys)), True],
        na_position="last",
        kind="mergesort",
    )
    return ranked["carrier"].tolist()


def _reason(objective: Objective, best: CarrierScore) -> str:
    match objective:
        case Objective.OVERALL:
            tier = best.tier or "unrated"
            return f"Best overall performance ({tier})"
        case Objective.COD:
            return f"Highest delivery success rate ({best.reliability_score:g}%)"
        case Objective.PREPAID if best.speed_score is None:
            return "No delivery time data for any carrier"
        case Objective.PREPAID:
            return "Fastest delivery"


def _objective_score(objective: Objective, score: CarrierScore) -> float | None:
    match objective:
        case Objective.OVERALL:
            return score.overall_score
        case Objective.COD:
            return score.reliability_score
        case Objective.PREPAID:
            return score.speed_score


def recommend(scores: dict[CarrierID, CarrierScore], objective: Objective) -> Recommendation | None:
    ranking = rank_carriers(scores, objective)
    if not ranking:
        return None
    best = scores[ranking[0]]
    return Recommendation(
        objective=objective,
        best_carrier=best.carrier,
        alternates=tuple(ranking[1:1 + MAX_ALTERNATES]),
        score=_objective_score(objective, best),
        reason=_reason(objective, best),
    )


def recommend_routing(
    scores: dict[CarrierID, CarrierScore],
    payment_mode: PaymentMode | None = None,
) -> dict[Objective, Recommendation]:
    """Best carrier plus up to two alternates for each objective.

    When ``payment_mode`` is given only the overall recommendation and the
    one matching that payment mode are returned.
    """
    match payment_mode:
        case None:
            objectives = list(Objective)
        case PaymentMode.COD:
            objectives = [Objective.OVERALL, Objective.COD]
        case PaymentMode.PREPAID:
            objectives = [Objective.OVERALL, Objective.PREPAID]
        case other:
            raise ValueError(f"Unknown payment mode: {other}")

    recommendations = {}
    for objective in objectives:
        rec = recommend(scores, objective)
        if rec is not None:
            recommendations[objective] = rec
    return recommendations
