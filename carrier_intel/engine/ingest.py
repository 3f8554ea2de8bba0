"""Load shipment snapshots exported by the order-management store."""

import logging
from datetime import datetime
from pathlib import Path

import pandas as pd

from carrier_intel.config import DEFAULT_CONFIG
from carrier_intel.engine.models import Shipment, ShipmentSchema, TrackingEventSchema
from carrier_intel.engine.transform import (
    frames_to_shipments,
    normalize_event_frame,
    normalize_shipment_frame,
)
from carrier_intel.utils.io import read_csv_files
from carrier_intel.utils.validators import validate_dataframe

type SourcePath = str | Path

logger = logging.getLogger(__name__)

SOURCE_PATTERNS = {
    "shipments": "shipments_*.csv",
    "events": "tracking_events_*.csv",
}

SHIPMENT_COLUMNS = ["shipment_id", "tenant_id", "carrier", "assigned_at", "payment_mode"]
EVENT_COLUMNS = ["shipment_id", "status", "occurred_at", "reason", "location"]


def _read_source(source_type: str, directory: SourcePath | None = None) -> pd.DataFrame:
    directory = Path(directory) if directory else DEFAULT_CONFIG.data_dir
    logger.info(f"Reading {source_type} from {directory}")
    return read_csv_files(directory, SOURCE_PATTERNS[source_type])


def _checked(df: pd.DataFrame, schema, label: str) -> pd.DataFrame:
    result = validate_dataframe(df, schema)
    if not result["valid"]:
        raise ValueError(f"Invalid {label} snapshot: " + "; ".join(result["errors"][:5]))
    return df


def _as_utc(value: datetime | None) -> pd.Timestamp | None:
    if value is None:
        return None
    ts = pd.Timestamp(value)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def load_snapshot(
    data_dir: SourcePath | None = None,
    drop_invalid: bool = True,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Read and normalize the raw shipment and event frames of a snapshot.

    Malformed rows are dropped with a warning unless ``drop_invalid`` is off.
    """
    raw_shipments = _read_source("shipments", data_dir)
    raw_events = _read_source("events", data_dir)

    if raw_shipments.empty:
        shipments = pd.DataFrame(columns=SHIPMENT_COLUMNS)
    else:
        shipments = normalize_shipment_frame(raw_shipments, drop_invalid)
    if raw_events.empty:
        events = pd.DataFrame(columns=EVENT_COLUMNS)
    else:
        events = normalize_event_frame(raw_events, drop_invalid)
    return shipments, events


def fetch_shipments(
    tenant_id: str,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    data_dir: SourcePath | None = None,
) -> list[Shipment]:
    """Shipments for one tenant assigned within ``[date_from, date_to]``.

    Events are attached in occurrence order.
    """
    shipments, events = load_snapshot(data_dir)
    if shipments.empty:
        logger.info(f"No shipments in snapshot for tenant {tenant_id}")
        return []

    shipments = _checked(shipments, ShipmentSchema, "shipment")
    events = _checked(events, TrackingEventSchema, "tracking event") if not events.empty else events

    window = shipments["tenant_id"].astype(str) == str(tenant_id)
    if (start := _as_utc(date_from)) is not None:
        window &= shipments["assigned_at"] >= start
    if (end := _as_utc(date_to)) is not None:
        window &= shipments["assigned_at"] <= end
    selected = shipments[window]

    selected_events = events[events["shipment_id"].isin(selected["shipment_id"])]
    result = frames_to_shipments(selected, selected_events)
    logger.info(f"Fetched {len(result)} shipments for tenant {tenant_id}")
    return result
