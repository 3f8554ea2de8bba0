import pytest

from carrier_intel.config import InsightThresholds
from carrier_intel.engine.carriers import compute_carrier_metrics
from carrier_intel.engine.insights import (
    FleetAverages,
    carrier_insights,
    detect_insights,
    fleet_averages,
    insights_to_frame,
)
from carrier_intel.engine.models import CarrierMetrics, InsightKind


def _metrics(carrier="aramex", rate=80.0, returns=5.0, hours=48.0, total=10):
    return CarrierMetrics(
        carrier=carrier,
        total_shipments=total,
        delivery_success_rate=rate,
        return_rate=returns,
        avg_delivery_time_hours=hours,
    )


FLEET = FleetAverages(delivery_success_rate=80.0, return_rate=8.0, avg_delivery_time_hours=48.0)


def _kinds(insights):
    return {(i.kind, i.metric) for i in insights}


def test_high_delivery_rate_is_strength():
    found = carrier_insights(_metrics(rate=95), FLEET)
    assert _kinds(found) == {(InsightKind.STRENGTH, "delivery_success_rate")}
    assert found[0].carrier_value == 95
    assert found[0].fleet_average == 80


def test_low_delivery_rate_is_weakness():
    assert _kinds(carrier_insights(_metrics(rate=65), FLEET)) == {
        (InsightKind.WEAKNESS, "delivery_success_rate"),
    }


def test_thresholds_are_strict():
    assert carrier_insights(_metrics(rate=90, returns=13, hours=36), FLEET) == []
    assert carrier_insights(_metrics(rate=70, hours=72), FLEET) == []


def test_high_return_rate_is_warning():
    found = carrier_insights(_metrics(returns=15), FLEET)
    assert _kinds(found) == {(InsightKind.WARNING, "return_rate")}
    assert "return rate" in found[0].message


def test_fast_delivery_is_strength():
    assert _kinds(carrier_insights(_metrics(hours=30), FLEET)) == {
        (InsightKind.STRENGTH, "delivery_time"),
    }


def test_slow_delivery_is_weakness():
    found = carrier_insights(_metrics(hours=80), FLEET)
    assert _kinds(found) == {(InsightKind.WEAKNESS, "delivery_time")}
    assert found[0].message == "aramex delivers slowly (80.0h vs fleet average 48.0h)"


def test_missing_delivery_time_yields_no_speed_insight():
    assert carrier_insights(_metrics(hours=None), FLEET) == []


def test_carrier_without_shipments_has_no_insights():
    assert carrier_insights(_metrics(rate=0, total=0, hours=None), FLEET) == []


def test_custom_thresholds():
    thresholds = InsightThresholds(delivery_rate_strength=2.0)
    assert _kinds(carrier_insights(_metrics(rate=83), FLEET, thresholds)) == {
        (InsightKind.STRENGTH, "delivery_success_rate"),
    }


def test_fleet_average_ignores_idle_carriers(fleet):
    metrics = compute_carrier_metrics(fleet, carriers=["jnt"])
    averages = fleet_averages(metrics)

    assert averages.delivery_success_rate == pytest.approx(75)
    assert averages.return_rate == pytest.approx(25 / 3)
    assert averages.avg_delivery_time_hours == pytest.approx((40 + 60 + 105) / 3)


def test_fleet_average_of_empty_fleet():
    assert fleet_averages({}) == FleetAverages(None, None, None)
    assert detect_insights({}) == []


def test_detect_insights_on_fleet(fleet):
    insights = detect_insights(compute_carrier_metrics(fleet))
    by_carrier = {}
    for i in insights:
        by_carrier.setdefault(i.carrier, set()).add((i.kind, i.metric))

    assert by_carrier == {
        "aramex": {
            (InsightKind.STRENGTH, "delivery_success_rate"),
            (InsightKind.STRENGTH, "delivery_time"),
        },
        "smsa": {
            (InsightKind.WEAKNESS, "delivery_success_rate"),
            (InsightKind.WARNING, "return_rate"),
            (InsightKind.WEAKNESS, "delivery_time"),
        },
    }


def test_insights_frame(fleet):
    df = insights_to_frame(detect_insights(compute_carrier_metrics(fleet)))
    assert len(df) == 5
    assert set(df["kind"]) == {"strength", "weakness", "warning"}
