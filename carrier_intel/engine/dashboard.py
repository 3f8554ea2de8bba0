"""Fleet-wide dashboard counts and at-risk shipment monitoring."""

from collections.abc import Sequence
from datetime import datetime

from carrier_intel.engine.models import (
    TERMINAL_STATUSES,
    CarrierID,
    CarrierMetrics,
    CarrierScore,
    DashboardSummary,
    Objective,
    Shipment,
)
from carrier_intel.engine.carriers import mean_of_present
from carrier_intel.engine.routing import rank_carriers
from carrier_intel.engine.tracking import hours_between

AT_RISK_HOURS = 72.0


def is_at_risk(shipment: Shipment, now: datetime, threshold_hours: float = AT_RISK_HOURS) -> bool:
    """No terminal event yet and assigned more than ``threshold_hours`` before ``now``."""
    if any(e.normalized_status in TERMINAL_STATUSES for e in shipment.events):
        return False
    elapsed = hours_between(shipment.assigned_at, now)
    return elapsed is not None and elapsed > threshold_hours


def summarize_dashboard(
    shipments: Sequence[Shipment],
    now: datetime,
    metrics: dict[CarrierID, CarrierMetrics] | None = None,
    scores: dict[CarrierID, CarrierScore] | None = None,
    threshold_hours: float = AT_RISK_HOURS,
) -> DashboardSummary:
    """Counts and at-risk list for a shipment window.

    Fleet roll-ups are filled in only when ``metrics`` / ``scores`` from the
    same window are supplied.
    """
    at_risk = tuple(s.id for s in shipments if is_at_risk(s, now, threshold_hours))

    avg_rate = avg_hours = None
    if metrics:
        active = [m for m in metrics.values() if m.total_shipments > 0]
        avg_rate = mean_of_present(m.delivery_success_rate for m in active)
        avg_hours = mean_of_present(m.avg_delivery_time_hours for m in active)

    top = worst = None
    if scores:
        ranking = rank_carriers(scores, Objective.OVERALL)
        top, worst = ranking[0], ranking[-1]

    return DashboardSummary(
        total_shipments=len(shipments),
        unique_carriers=len({s.carrier for s in shipments}),
        at_risk_shipments=at_risk,
        avg_delivery_rate=avg_rate,
        avg_delivery_time_hours=avg_hours,
        top_carrier=top,
        worst_carrier=worst,
    )
