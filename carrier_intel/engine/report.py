"""End-to-end carrier analysis of one snapshot and its console rendering."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from rich.console import Console
from rich.table import Table

from carrier_intel.config import DEFAULT_CONFIG, EngineConfig
from carrier_intel.engine.carriers import compute_carrier_metrics
from carrier_intel.engine.dashboard import summarize_dashboard
from carrier_intel.engine.insights import detect_insights
from carrier_intel.engine.models import (
    CarrierID,
    CarrierMetrics,
    CarrierScore,
    DashboardSummary,
    Insight,
    Objective,
    PaymentMode,
    Recommendation,
    Shipment,
)
from carrier_intel.engine.routing import recommend_routing
from carrier_intel.engine.scoring import score_carriers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarrierReport:
    metrics: dict[CarrierID, CarrierMetrics]
    scores: dict[CarrierID, CarrierScore]
    insights: list[Insight]
    recommendations: dict[Objective, Recommendation]
    summary: DashboardSummary


def analyze(
    shipments: Sequence[Shipment],
    now: datetime,
    carriers: Iterable[CarrierID] | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
    payment_mode: PaymentMode | None = None,
) -> CarrierReport:
    """Run every stage over one snapshot; each stage only sees its predecessors' output."""
    metrics = compute_carrier_metrics(shipments, carriers)
    scores = score_carriers(metrics, config.scoring)
    report = CarrierReport(
        metrics=metrics,
        scores=scores,
        insights=detect_insights(metrics, config.insights),
        recommendations=recommend_routing(scores, payment_mode),
        summary=summarize_dashboard(shipments, now, metrics, scores, config.at_risk_hours),
    )
    logger.info(
        f"Analyzed {report.summary.total_shipments} shipments across "
        f"{len(metrics)} carriers, {report.summary.at_risk_count} at risk"
    )
    return report


def _fmt(value: float | None, suffix: str = "") -> str:
    return "-" if value is None else f"{value:.1f}{suffix}"


def _tier_color(tier: str | None) -> str:
    match tier:
        case "excellent":
            return "green"
        case "good":
            return "cyan"
        case "average":
            return "yellow"
        case "poor":
            return "red"
        case _:
            return "white"


def build_tables(report: CarrierReport) -> list[Table]:
    scores = Table(title="Carrier Scores")
    for column in ("Carrier", "Shipments", "Delivered %", "Returned %", "Avg delivery", "Speed", "Reliability", "Returns", "Overall", "Tier"):
        scores.add_column(column, justify="left" if column in ("Carrier", "Tier") else "right")
    for carrier, s in report.scores.items():
        m = report.metrics[carrier]
        color = _tier_color(s.tier)
        scores.add_row(
            carrier,
            str(m.total_shipments),
            _fmt(m.delivery_success_rate, "%"),
            _fmt(m.return_rate, "%"),
            _fmt(m.avg_delivery_time_hours, "h"),
            _fmt(s.speed_score),
            _fmt(s.reliability_score),
            _fmt(s.return_rate_score),
            _fmt(s.overall_score),
            f"[{color}]{s.tier or 'unrated'}[/{color}]",
        )

    insights = Table(title="Insights")
    insights.add_column("Kind", style="bold")
    insights.add_column("Carrier", style="cyan")
    insights.add_column("Detail")
    for i in report.insights:
        insights.add_row(str(i.kind), i.carrier, i.message)

    routing = Table(title="Routing Recommendations")
    routing.add_column("Objective", style="bold")
    routing.add_column("Best", style="green")
    routing.add_column("Alternates")
    routing.add_column("Reason")
    for objective, rec in report.recommendations.items():
        routing.add_row(str(objective), rec.best_carrier, ", ".join(rec.alternates) or "-", rec.reason)

    summary = Table(title="Dashboard")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    s = report.summary
    summary.add_row("Total shipments", str(s.total_shipments))
    summary.add_row("Carriers", str(s.unique_carriers))
    summary.add_row("At-risk shipments", str(s.at_risk_count))
    summary.add_row("Avg delivery rate", _fmt(s.avg_delivery_rate, "%"))
    summary.add_row("Avg delivery time", _fmt(s.avg_delivery_time_hours, "h"))
    summary.add_row("Top carrier", s.top_carrier or "-")
    summary.add_row("Worst carrier", s.worst_carrier or "-")

    return [summary, scores, insights, routing]


def print_report(report: CarrierReport, console: Console | None = None) -> None:
    console = console or Console()
    for table in build_tables(report):
        console.print(table)

    issues = [i for m in report.metrics.values() for i in m.data_quality_issues]
    if issues:
        console.print(f"[yellow]{len(issues)} data quality issues flagged:[/yellow]")
        for issue in issues:
            console.print(f"  [yellow]{issue.shipment_id}[/yellow] ({issue.carrier}) {issue.field}: {issue.message}")
