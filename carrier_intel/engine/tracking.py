"""Shipment timeline extraction from ordered tracking events."""

import logging
from datetime import datetime

from carrier_intel.engine.models import (
    DataQualityIssue,
    NormalizedStatus,
    Outcome,
    Shipment,
    ShipmentTimeline,
)

logger = logging.getLogger(__name__)

# Milestones whose first occurrence is recorded on the timeline
MILESTONE_FIELDS = {
    NormalizedStatus.PICKED_UP: "picked_up_at",
    NormalizedStatus.IN_TRANSIT: "in_transit_at",
    NormalizedStatus.OUT_FOR_DELIVERY: "out_for_delivery_at",
    NormalizedStatus.DELIVERED: "delivered_at",
    NormalizedStatus.RETURNED: "returned_at",
    NormalizedStatus.FAILED: "failed_at",
}


def hours_between(start: datetime | None, end: datetime | None) -> float | None:
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 3600.0


def first_milestones(shipment: Shipment) -> dict[str, datetime]:
    """First occurrence of every milestone, in event order."""
    milestones: dict[str, datetime] = {}
    for event in shipment.events:
        name = MILESTONE_FIELDS.get(event.normalized_status)
        if name and name not in milestones:
            milestones[name] = event.occurred_at
    return milestones


def _classify_outcome(milestones: dict[str, datetime]) -> Outcome:
    match milestones:
        case {"delivered_at": _}:
            return Outcome.DELIVERED
        case {"returned_at": _}:
            return Outcome.RETURNED
        case {"failed_at": _}:
            return Outcome.FAILED
        case _:
            return Outcome.IN_PROGRESS


def extract_timeline(shipment: Shipment) -> ShipmentTimeline:
    """Derive milestone timestamps, elapsed hours and outcome for one shipment.

    A duration is ``None`` when either of its defining events is missing.
    Negative durations are kept as-is and reported through ``issues``.
    """
    milestones = first_milestones(shipment)
    assigned = shipment.assigned_at

    durations = {
        "pickup_delay_hours": hours_between(assigned, milestones.get("picked_up_at")),
        "transit_time_hours": hours_between(
            milestones.get("picked_up_at"), milestones.get("delivered_at")
        ),
        "delivery_duration_hours": hours_between(assigned, milestones.get("delivered_at")),
        "return_cycle_time_hours": hours_between(assigned, milestones.get("returned_at")),
    }

    issues: list[DataQualityIssue] = []
    if assigned is None and milestones:
        issues.append(DataQualityIssue(
            shipment_id=shipment.id,
            carrier=shipment.carrier,
            field="assigned_at",
            value=None,
            message="shipment has tracking events but no assignment time",
        ))

    for name, value in durations.items():
        if value is not None and value < 0:
            issues.append(DataQualityIssue(
                shipment_id=shipment.id,
                carrier=shipment.carrier,
                field=name,
                value=value,
                message=f"negative duration ({value:.2f}h), events out of order or clock skew",
            ))

    for issue in issues:
        logger.warning(f"Shipment {issue.shipment_id} ({issue.carrier}): {issue.message}")

    return ShipmentTimeline(
        shipment_id=shipment.id,
        carrier=shipment.carrier,
        outcome=_classify_outcome(milestones),
        **milestones,
        **durations,
        issues=tuple(issues),
    )
