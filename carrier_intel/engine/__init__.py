"""Carrier engine: timelines, metrics, scores, insights, routing and dashboard."""

from carrier_intel.engine.ingest import SourcePath, fetch_shipments, load_snapshot
from carrier_intel.engine.tracking import extract_timeline
from carrier_intel.engine.carriers import compute_carrier_metrics, metrics_to_frame
from carrier_intel.engine.scoring import score_carrier, score_carriers, scores_to_frame
from carrier_intel.engine.insights import detect_insights, fleet_averages, insights_to_frame
from carrier_intel.engine.routing import rank_carriers, recommend_routing
from carrier_intel.engine.dashboard import is_at_risk, summarize_dashboard
from carrier_intel.engine.report import CarrierReport, analyze

type EngineResult = dict[str, bool | str | int | list[str]]


def validate(data_dir: SourcePath | None = None) -> EngineResult:
    """Validate the snapshot frames against the shipment and event schemas.

    Malformed rows are reported here rather than dropped.
    """
    from carrier_intel.engine.models import ShipmentSchema, TrackingEventSchema
    from carrier_intel.utils.validators import validate_dataframe

    try:
        shipments, events = load_snapshot(data_dir, drop_invalid=False)
    except ValueError as exc:
        return {"status": "error", "message": str(exc)}

    if shipments.empty:
        return {"status": "skipped", "reason": "snapshot has no shipments"}

    errors: list[str] = []
    for frame, schema in ((shipments, ShipmentSchema), (events, TrackingEventSchema)):
        if frame.empty:
            continue
        result = validate_dataframe(frame, schema)
        errors.extend(result["errors"])

    match errors:
        case []:
            return {"status": "ok", "shipments": len(shipments), "events": len(events)}
        case _:
            return {"status": "error", "message": "; ".join(errors[:5]), "errors": errors}
