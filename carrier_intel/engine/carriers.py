"""Carrier performance metrics: outcome rates, average durations, failure reasons."""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

import numpy as np
import pandas as pd

from carrier_intel.engine.models import (
    CarrierID,
    CarrierMetrics,
    NormalizedStatus,
    Outcome,
    Shipment,
    ShipmentTimeline,
)
from carrier_intel.engine.tracking import extract_timeline

logger = logging.getLogger(__name__)

DURATION_COLUMNS = {
    "pickup_delay_hours": "avg_pickup_time_hours",
    "transit_time_hours": "avg_transit_time_hours",
    "delivery_duration_hours": "avg_delivery_time_hours",
    "return_cycle_time_hours": "avg_return_cycle_time_hours",
}

UNSPECIFIED_REASON = "unspecified"


def mean_of_present(values: Iterable[float | None]) -> float | None:
    """Arithmetic mean over the values that are present; ``None`` if there are none."""
    present = [v for v in values if v is not None and not np.isnan(v)]
    if not present:
        return None
    return float(np.mean(present))


def _rate(count: int, total: int) -> float:
    return 100.0 * count / total if total else 0.0


def _timelines_frame(timelines: Sequence[ShipmentTimeline]) -> pd.DataFrame:
    rows = []
    for t in timelines:
        row = {"carrier": t.carrier, "outcome": str(t.outcome)}
        for column in DURATION_COLUMNS:
            value = getattr(t, column)
            # negative durations are flagged on the timeline and kept out of averages
            row[column] = value if value is not None and value >= 0 else np.nan
        rows.append(row)
    return pd.DataFrame(rows, columns=["carrier", "outcome", *DURATION_COLUMNS])


def count_failure_reasons(shipments: Iterable[Shipment]) -> dict[str, int]:
    reasons: Counter[str] = Counter()
    for shipment in shipments:
        for event in shipment.events:
            if event.normalized_status is NormalizedStatus.FAILED:
                reasons[event.reason or UNSPECIFIED_REASON] += 1
    return dict(reasons)


def _calculate_single_carrier_metrics(
    carrier: CarrierID,
    df: pd.DataFrame,
    shipments: list[Shipment],
    timelines: list[ShipmentTimeline],
) -> CarrierMetrics:
    total = len(df)
    outcomes = df["outcome"].value_counts()
    delivered = int(outcomes.get(str(Outcome.DELIVERED), 0))
    returned = int(outcomes.get(str(Outcome.RETURNED), 0))
    failed = int(outcomes.get(str(Outcome.FAILED), 0))

    averages = {
        target: mean_of_present(df[column].tolist())
        for column, target in DURATION_COLUMNS.items()
    }

    return CarrierMetrics(
        carrier=carrier,
        total_shipments=total,
        delivered_count=delivered,
        returned_count=returned,
        failed_count=failed,
        in_progress_count=int(outcomes.get(str(Outcome.IN_PROGRESS), 0)),
        delivery_success_rate=_rate(delivered, total),
        return_rate=_rate(returned, total),
        failure_rate=_rate(failed, total),
        failure_reason_counts=count_failure_reasons(shipments),
        data_quality_issues=tuple(issue for t in timelines for issue in t.issues),
        **averages,
    )


def compute_carrier_metrics(
    shipments: Sequence[Shipment],
    carriers: Iterable[CarrierID] | None = None,
) -> dict[CarrierID, CarrierMetrics]:
    """Aggregate carrier-level performance metrics across all shipments.

    ``carriers`` names carriers known to the caller; any of them without
    shipments still gets an empty metrics record.
    """
    timelines = [extract_timeline(s) for s in shipments]
    frame = _timelines_frame(timelines)

    by_carrier: dict[CarrierID, list[int]] = {}
    for position, shipment in enumerate(shipments):
        by_carrier.setdefault(shipment.carrier, []).append(position)

    metrics: dict[CarrierID, CarrierMetrics] = {}
    for carrier, carrier_df in frame.groupby("carrier", sort=True):
        positions = by_carrier[carrier]
        metrics[carrier] = _calculate_single_carrier_metrics(
            carrier,
            carrier_df,
            [shipments[i] for i in positions],
            [timelines[i] for i in positions],
        )

    for carrier in carriers or ():
        metrics.setdefault(carrier, CarrierMetrics(carrier=carrier))

    flagged = sum(len(m.data_quality_issues) for m in metrics.values())
    logger.info(
        f"Computed metrics for {len(metrics)} carriers from {len(shipments)} shipments"
        f" ({flagged} data quality issues)"
    )
    return dict(sorted(metrics.items()))


def metrics_to_frame(metrics: dict[CarrierID, CarrierMetrics]) -> pd.DataFrame:
    """Tabular view of carrier metrics, one row per carrier."""
    columns = [
        "carrier", "total_shipments", "delivered_count", "returned_count",
        "failed_count", "in_progress_count", "delivery_success_rate",
        "return_rate", "failure_rate", *DURATION_COLUMNS.values(), "data_quality_issues",
    ]
    rows = []
    for m in metrics.values():
        row = {c: getattr(m, c) for c in columns}
        row["data_quality_issues"] = len(m.data_quality_issues)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)
