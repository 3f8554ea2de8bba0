import pandas as pd
from rich.console import Console

from carrier_intel import run
from carrier_intel.config import EngineConfig, ScoringConfig
from carrier_intel.engine.models import Objective, PaymentMode, Tier
from carrier_intel.engine.report import analyze, build_tables, print_report
from tests.factories import at, make_event, make_shipment
from tests.test_ingest import EVENTS_CSV, SHIPMENTS_CSV


def test_analyze_fleet(fleet, now):
    report = analyze(fleet, now)

    assert list(report.scores) == ["aramex", "dhl", "smsa"]
    assert report.scores["aramex"].tier is Tier.EXCELLENT
    assert report.scores["smsa"].tier is Tier.POOR
    assert len(report.insights) == 5
    assert report.recommendations[Objective.OVERALL].best_carrier == "aramex"
    assert report.summary.at_risk_shipments == ("DHL-4",)
    assert report.summary.top_carrier == "aramex"
    assert report.summary.worst_carrier == "smsa"


def test_analyze_is_repeatable(fleet, now):
    first = analyze(fleet, now)
    second = analyze(fleet, now)
    assert first.scores == second.scores
    assert first.recommendations == second.recommendations
    assert first.summary == second.summary


def test_analyze_with_payment_mode(fleet, now):
    report = analyze(fleet, now, payment_mode=PaymentMode.COD)
    assert list(report.recommendations) == [Objective.OVERALL, Objective.COD]


def test_analyze_reports_known_idle_carriers(fleet, now):
    report = analyze(fleet, now, carriers=["jnt"])

    assert report.metrics["jnt"].total_shipments == 0
    assert report.scores["jnt"].speed_score is None
    assert report.summary.unique_carriers == 3
    assert report.recommendations[Objective.PREPAID].alternates == ("dhl", "smsa")


def test_analyze_uses_config(fleet, now):
    config = EngineConfig(scoring=ScoringConfig(precision=2), at_risk_hours=500)
    report = analyze(fleet, now, config=config)

    assert report.scores["dhl"].overall_score == 83.75
    assert report.summary.at_risk_shipments == ()


def test_analyze_empty_window(now):
    report = analyze([], now)
    assert report.scores == {}
    assert report.recommendations == {}
    assert report.summary.total_shipments == 0


def test_build_tables(fleet, now):
    tables = build_tables(analyze(fleet, now))
    assert [t.title for t in tables] == ["Dashboard", "Carrier Scores", "Insights", "Routing Recommendations"]
    assert tables[1].row_count == 3
    assert tables[2].row_count == 5
    assert tables[3].row_count == 3


def test_print_report_lists_data_quality_issues(now):
    skewed = make_shipment(
        "S-1",
        events=[make_event("CREATED", 0), make_event("PICKED_UP", 10), make_event("DELIVERED", 5)],
    )
    console = Console(record=True, width=200)
    print_report(analyze([skewed], now), console)

    text = console.export_text()
    assert "Carrier Scores" in text
    assert "data quality issues flagged" in text
    assert "S-1" in text


def test_cli_writes_scores(tmp_path):
    (tmp_path / "shipments_2024_01.csv").write_text(SHIPMENTS_CSV)
    (tmp_path / "tracking_events_2024_01.csv").write_text(EVENTS_CSV)
    output = tmp_path / "out" / "scores.csv"

    run.main([
        "--tenant", "t-1",
        "--data-dir", str(tmp_path),
        "--now", at(400).isoformat(),
        "--output", str(output),
    ])

    scores = pd.read_csv(output)
    assert list(scores["carrier"]) == ["aramex", "smsa"]
    assert "overall_score" in scores.columns
