"""Normalize raw shipment and tracking frames into engine records."""

import logging

import pandas as pd

from carrier_intel.engine.models import (
    NormalizedStatus,
    PaymentMode,
    Shipment,
    TrackingEvent,
)
from carrier_intel.utils.transforms import normalize_columns

logger = logging.getLogger(__name__)


def normalize_status(raw_status: str) -> NormalizedStatus:
    """Map a carrier-specific status string onto the canonical status set."""
    match raw_status.lower().strip().replace("-", "_").replace(" ", "_"):
        case "created" | "label_created" | "new" | "pending" | "assigned":
            return NormalizedStatus.CREATED
        case "picked_up" | "pickedup" | "collected" | "pickup":
            return NormalizedStatus.PICKED_UP
        case "in_transit" | "intransit" | "shipped" | "at_hub":
            return NormalizedStatus.IN_TRANSIT
        case "out_for_delivery" | "ofd" | "with_courier":
            return NormalizedStatus.OUT_FOR_DELIVERY
        case "delivered" | "complete" | "completed":
            return NormalizedStatus.DELIVERED
        case "returned" | "return" | "rts" | "returned_to_sender":
            return NormalizedStatus.RETURNED
        case "failed" | "failed_attempt" | "delivery_failed" | "exception" | "undeliverable":
            return NormalizedStatus.FAILED
        case unknown:
            raise ValueError(f"Unknown tracking status: {unknown}")


def normalize_payment_mode(raw: str) -> PaymentMode:
    match raw.lower().strip():
        case "cod" | "cash_on_delivery" | "cash on delivery":
            return PaymentMode.COD
        case "prepaid" | "paid" | "online" | "card":
            return PaymentMode.PREPAID
        case other:
            raise ValueError(f"Unknown payment mode: {other}")


def _payment_mode_value(raw: str) -> str:
    # unknown modes pass through so validation can report them
    try:
        return normalize_payment_mode(raw).value
    except ValueError:
        return raw


def _text(series: pd.Series) -> pd.Series:
    """Strip a text column; blank cells become missing instead of ``"nan"``."""
    return series.astype("string").str.strip().replace("", pd.NA)


def _drop_invalid_shipments(df: pd.DataFrame) -> pd.DataFrame:
    checks = [
        (df["shipment_id"].isna(), "missing shipment_id"),
        (df["tenant_id"].isna(), "missing tenant_id"),
        (df["carrier"].isna(), "missing carrier"),
        (~df["payment_mode"].isin([m.value for m in PaymentMode]), "unknown payment mode"),
        (df["shipment_id"].notna() & df["shipment_id"].duplicated(), "duplicate shipment_id"),
    ]

    rejected = pd.Series(False, index=df.index)
    for mask, reason in checks:
        for _, row in df[mask & ~rejected].iterrows():
            logger.warning(f"Dropping shipment {row['shipment_id']} ({row['carrier']}): {reason}")
        rejected |= mask
    return df[~rejected]


def normalize_shipment_frame(raw_df: pd.DataFrame, drop_invalid: bool = True) -> pd.DataFrame:
    """Clean column names and coerce timestamps and payment modes.

    Rows without an id, tenant or carrier, rows with an unknown payment mode
    and repeated shipment ids are dropped with a warning. With
    ``drop_invalid=False`` they are kept for schema validation to report.
    """
    df = normalize_columns(raw_df.copy(), mapping={"id": "shipment_id", "created_at": "assigned_at"})

    required = ["shipment_id", "tenant_id", "carrier", "assigned_at"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required shipment columns: {missing}")

    df["shipment_id"] = _text(df["shipment_id"])
    df["tenant_id"] = _text(df["tenant_id"])
    df["carrier"] = _text(df["carrier"]).str.lower()
    df["assigned_at"] = pd.to_datetime(df["assigned_at"], utc=True, errors="coerce")
    if "payment_mode" not in df.columns:
        df["payment_mode"] = PaymentMode.PREPAID.value
    df["payment_mode"] = (
        df["payment_mode"].fillna(PaymentMode.PREPAID.value).astype(str).map(_payment_mode_value)
    )

    if drop_invalid:
        df = _drop_invalid_shipments(df).reset_index(drop=True)
    return df


def normalize_event_frame(raw_df: pd.DataFrame, drop_invalid: bool = True) -> pd.DataFrame:
    """Clean event columns and order events by occurrence within each shipment."""
    df = normalize_columns(
        raw_df.copy(),
        mapping={"normalized_status": "status", "event_time": "occurred_at"},
    )

    required = ["shipment_id", "status", "occurred_at"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required event columns: {missing}")

    df["shipment_id"] = _text(df["shipment_id"])
    df["status"] = _text(df["status"])
    df["occurred_at"] = pd.to_datetime(df["occurred_at"], utc=True, errors="coerce")

    if drop_invalid:
        incomplete = df[["shipment_id", "status", "occurred_at"]].isna().any(axis=1)
        if incomplete.any():
            logger.warning(
                f"Dropping {int(incomplete.sum())} tracking events without a shipment id, status or timestamp"
            )
            df = df[~incomplete]

    return df.sort_values(["shipment_id", "occurred_at"], kind="mergesort").reset_index(drop=True)


def _optional(value) -> str | None:
    return None if pd.isna(value) else str(value)


def _to_event(row: pd.Series) -> TrackingEvent | None:
    try:
        status = normalize_status(str(row["status"]))
    except ValueError as exc:
        logger.warning(f"Skipping event for shipment {row['shipment_id']}: {exc}")
        return None

    return TrackingEvent(
        normalized_status=status,
        occurred_at=row["occurred_at"].to_pydatetime(),
        reason=_optional(row.get("reason")),
        raw_status=str(row["status"]),
        location=_optional(row.get("location")),
    )


def frames_to_shipments(shipments_df: pd.DataFrame, events_df: pd.DataFrame) -> list[Shipment]:
    """Join normalized shipment and event frames into ``Shipment`` records."""
    events_by_shipment: dict[str, list[TrackingEvent]] = {}
    for _, row in events_df.iterrows():
        event = _to_event(row)
        if event is not None:
            events_by_shipment.setdefault(row["shipment_id"], []).append(event)

    shipments = []
    for _, row in shipments_df.iterrows():
        assigned = row["assigned_at"]
        shipments.append(Shipment(
            id=row["shipment_id"],
            carrier=row["carrier"],
            assigned_at=None if pd.isna(assigned) else assigned.to_pydatetime(),
            events=tuple(events_by_shipment.get(row["shipment_id"], [])),
            payment_mode=PaymentMode(row["payment_mode"]),
        ))
    return shipments
