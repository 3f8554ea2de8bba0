"""Comparative insights: carriers measured against the fleet average."""

import logging
from dataclasses import dataclass

import pandas as pd

from carrier_intel.config import InsightThresholds
from carrier_intel.engine.carriers import mean_of_present
from carrier_intel.engine.models import CarrierID, CarrierMetrics, Insight, InsightKind

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = InsightThresholds()


@dataclass(frozen=True)
class FleetAverages:
    delivery_success_rate: float | None
    return_rate: float | None
    avg_delivery_time_hours: float | None


def fleet_averages(metrics: dict[CarrierID, CarrierMetrics]) -> FleetAverages:
    """Mean of each metric over carriers that had at least one shipment."""
    active = [m for m in metrics.values() if m.total_shipments > 0]
    return FleetAverages(
        delivery_success_rate=mean_of_present(m.delivery_success_rate for m in active),
        return_rate=mean_of_present(m.return_rate for m in active),
        avg_delivery_time_hours=mean_of_present(m.avg_delivery_time_hours for m in active),
    )


def _insight(m: CarrierMetrics, kind: InsightKind, metric: str, value: float, benchmark: float) -> Insight:
    match (kind, metric):
        case (InsightKind.STRENGTH, "delivery_success_rate"):
            text = f"{m.carrier} excels at successful delivery ({value:.1f}% vs fleet average {benchmark:.1f}%)"
        case (InsightKind.WEAKNESS, "delivery_success_rate"):
            text = f"{m.carrier} has a low delivery success rate ({value:.1f}% vs fleet average {benchmark:.1f}%)"
        case (InsightKind.WARNING, "return_rate"):
            text = f"{m.carrier} has a high return rate ({value:.1f}% vs fleet average {benchmark:.1f}%)"
        case (InsightKind.STRENGTH, "delivery_time"):
            text = f"{m.carrier} delivers faster ({value:.1f}h vs fleet average {benchmark:.1f}h)"
        case (InsightKind.WEAKNESS, "delivery_time"):
            text = f"{m.carrier} delivers slowly ({value:.1f}h vs fleet average {benchmark:.1f}h)"
        case _:
            raise ValueError(f"No insight defined for {kind} on {metric}")

    return Insight(
        carrier=m.carrier,
        kind=kind,
        metric=metric,
        carrier_value=value,
        fleet_average=benchmark,
        message=text,
    )


def carrier_insights(
    m: CarrierMetrics,
    fleet: FleetAverages,
    thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
) -> list[Insight]:
    """Insights for one carrier; a carrier without shipments gets none."""
    if m.total_shipments == 0:
        return []

    found: list[Insight] = []

    if fleet.delivery_success_rate is not None:
        rate, avg = m.delivery_success_rate, fleet.delivery_success_rate
        if rate > avg + thresholds.delivery_rate_strength:
            found.append(_insight(m, InsightKind.STRENGTH, "delivery_success_rate", rate, avg))
        if rate < avg - thresholds.delivery_rate_weakness:
            found.append(_insight(m, InsightKind.WEAKNESS, "delivery_success_rate", rate, avg))

    if fleet.return_rate is not None:
        if m.return_rate > fleet.return_rate + thresholds.return_rate_warning:
            found.append(_insight(m, InsightKind.WARNING, "return_rate", m.return_rate, fleet.return_rate))

    hours, avg_hours = m.avg_delivery_time_hours, fleet.avg_delivery_time_hours
    if hours is not None and avg_hours is not None:
        if hours < avg_hours - thresholds.delivery_time_strength:
            found.append(_insight(m, InsightKind.STRENGTH, "delivery_time", hours, avg_hours))
        if hours > avg_hours + thresholds.delivery_time_weakness:
            found.append(_insight(m, InsightKind.WEAKNESS, "delivery_time", hours, avg_hours))

    return found


def detect_insights(
    metrics: dict[CarrierID, CarrierMetrics],
    thresholds: InsightThresholds = DEFAULT_THRESHOLDS,
) -> list[Insight]:
    fleet = fleet_averages(metrics)
    insights = [
        insight
        for carrier in sorted(metrics)
        for insight in carrier_insights(metrics[carrier], fleet, thresholds)
    ]
    logger.info(f"Detected {len(insights)} insights across {len(metrics)} carriers")
    return insights


def insights_to_frame(insights: list[Insight]) -> pd.DataFrame:
    columns = ["carrier", "kind", "metric", "carrier_value", "fleet_average", "message"]
    rows = [{**i.to_dict(), "kind": str(i.kind)} for i in insights]
    return pd.DataFrame(rows, columns=columns)
