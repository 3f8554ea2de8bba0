"""Domain records and pandera schemas for the carrier performance engine."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum

import pandas as pd
import pandera as pa
from pandera import Column, Check

type CarrierID = str
type ShipmentID = str
type Hours = float


class NormalizedStatus(StrEnum):
    CREATED = "CREATED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({
    NormalizedStatus.DELIVERED,
    NormalizedStatus.RETURNED,
    NormalizedStatus.FAILED,
})


class PaymentMode(StrEnum):
    COD = "cod"
    PREPAID = "prepaid"


class Outcome(StrEnum):
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"


class Tier(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class InsightKind(StrEnum):
    STRENGTH = "strength"
    WEAKNESS = "weakness"
    WARNING = "warning"


class Objective(StrEnum):
    OVERALL = "overall"
    COD = "cod"
    PREPAID = "prepaid"


class _Record:
    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TrackingEvent(_Record):
    normalized_status: NormalizedStatus
    occurred_at: datetime
    reason: str | None = None
    raw_status: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class Shipment(_Record):
    id: ShipmentID
    carrier: CarrierID
    assigned_at: datetime | None
    events: tuple[TrackingEvent, ...] = ()
    payment_mode: PaymentMode = PaymentMode.PREPAID


@dataclass(frozen=True)
class DataQualityIssue(_Record):
    """A record-level problem found while deriving metrics.

    Issues travel with the result instead of aborting the computation.
    """

    shipment_id: ShipmentID
    carrier: CarrierID
    field: str
    value: float | None
    message: str


@dataclass(frozen=True)
class ShipmentTimeline(_Record):
    shipment_id: ShipmentID
    carrier: CarrierID
    outcome: Outcome
    picked_up_at: datetime | None = None
    in_transit_at: datetime | None = None
    out_for_delivery_at: datetime | None = None
    delivered_at: datetime | None = None
    returned_at: datetime | None = None
    failed_at: datetime | None = None
    pickup_delay_hours: Hours | None = None
    transit_time_hours: Hours | None = None
    delivery_duration_hours: Hours | None = None
    return_cycle_time_hours: Hours | None = None
    issues: tuple[DataQualityIssue, ...] = ()


@dataclass(frozen=True)
class CarrierMetrics(_Record):
    carrier: CarrierID
    total_shipments: int = 0
    delivered_count: int = 0
    returned_count: int = 0
    failed_count: int = 0
    in_progress_count: int = 0
    delivery_success_rate: float = 0.0
    return_rate: float = 0.0
    failure_rate: float = 0.0
    avg_pickup_time_hours: Hours | None = None
    avg_transit_time_hours: Hours | None = None
    avg_delivery_time_hours: Hours | None = None
    avg_return_cycle_time_hours: Hours | None = None
    failure_reason_counts: dict[str, int] = field(default_factory=dict)
    data_quality_issues: tuple[DataQualityIssue, ...] = ()


@dataclass(frozen=True)
class CarrierScore(_Record):
    carrier: CarrierID
    speed_score: float | None
    reliability_score: float
    return_rate_score: float
    overall_score: float | None
    tier: Tier | None


@dataclass(frozen=True)
class Insight(_Record):
    carrier: CarrierID
    kind: InsightKind
    metric: str
    carrier_value: float
    fleet_average: float
    message: str


@dataclass(frozen=True)
class Recommendation(_Record):
    objective: Objective
    best_carrier: CarrierID
    alternates: tuple[CarrierID, ...]
    score: float | None
    reason: str


@dataclass(frozen=True)
class DashboardSummary(_Record):
    total_shipments: int
    unique_carriers: int
    at_risk_shipments: tuple[ShipmentID, ...]
    avg_delivery_rate: float | None = None
    avg_delivery_time_hours: Hours | None = None
    top_carrier: CarrierID | None = None
    worst_carrier: CarrierID | None = None

    @property
    def at_risk_count(self) -> int:
        return len(self.at_risk_shipments)


# Snapshot schemas for the storage collaborator's exports

ShipmentSchema = pa.DataFrameSchema(
    columns={
        "shipment_id": Column(str, Check.str_length(min_value=1), unique=True),
        "tenant_id": Column(str, nullable=False),
        "carrier": Column(str, Check.str_length(min_value=1)),
        "assigned_at": Column(pd.DatetimeTZDtype(tz="UTC"), nullable=True),
        "payment_mode": Column(str, Check.isin([m.value for m in PaymentMode])),
    },
    coerce=True,
    strict=False,
)


TrackingEventSchema = pa.DataFrameSchema(
    columns={
        "shipment_id": Column(str, Check.str_length(min_value=1)),
        "status": Column(str, nullable=False),
        "occurred_at": Column(pd.DatetimeTZDtype(tz="UTC"), nullable=False),
        "reason": Column(nullable=True, required=False),
        "location": Column(nullable=True, required=False),
    },
    coerce=True,
    strict=False,
)
