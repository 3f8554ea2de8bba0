import pytest

from carrier_intel.engine.models import Outcome
from carrier_intel.engine.tracking import extract_timeline, hours_between
from tests.factories import at, delivered, failed, in_progress, make_event, make_shipment, returned


def test_durations_from_full_lifecycle():
    shipment = make_shipment(
        "S-1",
        events=[
            make_event("CREATED", 0),
            make_event("PICKED_UP", 8),
            make_event("IN_TRANSIT", 22),
            make_event("OUT_FOR_DELIVERY", 47),
            make_event("DELIVERED", 52),
        ],
    )
    timeline = extract_timeline(shipment)

    assert timeline.pickup_delay_hours == 8
    assert timeline.transit_time_hours == 44
    assert timeline.delivery_duration_hours == 52
    assert timeline.return_cycle_time_hours is None
    assert timeline.outcome is Outcome.DELIVERED
    assert timeline.picked_up_at == at(8)
    assert timeline.out_for_delivery_at == at(47)
    assert timeline.issues == ()


def test_fractional_hours():
    shipment = make_shipment("S-1", events=[make_event("PICKED_UP", 1.5)])
    assert extract_timeline(shipment).pickup_delay_hours == pytest.approx(1.5)


@pytest.mark.parametrize("pickup, delivery", [(8, 52), (0.25, 30), (12, 12)])
def test_delivery_duration_is_pickup_plus_transit(pickup, delivery):
    timeline = extract_timeline(delivered("S-1", "aramex", pickup, delivery))
    assert timeline.delivery_duration_hours == pytest.approx(
        timeline.pickup_delay_hours + timeline.transit_time_hours
    )


def test_return_cycle_time():
    timeline = extract_timeline(returned("S-1", "smsa", 168))
    assert timeline.return_cycle_time_hours == 168
    assert timeline.delivery_duration_hours is None
    assert timeline.outcome is Outcome.RETURNED


def test_first_matching_event_wins():
    shipment = make_shipment(
        "S-1",
        events=[
            make_event("PICKED_UP", 4),
            make_event("PICKED_UP", 9),
            make_event("DELIVERED", 30),
            make_event("DELIVERED", 31),
        ],
    )
    timeline = extract_timeline(shipment)
    assert timeline.pickup_delay_hours == 4
    assert timeline.delivery_duration_hours == 30


def test_missing_events_leave_durations_absent():
    timeline = extract_timeline(make_shipment("S-1", events=[]))
    assert timeline.pickup_delay_hours is None
    assert timeline.transit_time_hours is None
    assert timeline.delivery_duration_hours is None
    assert timeline.return_cycle_time_hours is None
    assert timeline.outcome is Outcome.IN_PROGRESS


def test_delivered_without_pickup_has_no_transit_time():
    shipment = make_shipment("S-1", events=[make_event("DELIVERED", 30)])
    timeline = extract_timeline(shipment)
    assert timeline.delivery_duration_hours == 30
    assert timeline.transit_time_hours is None
    assert timeline.pickup_delay_hours is None


@pytest.mark.parametrize(
    "shipment, outcome",
    [
        (delivered("S-1", "a", 2, 20), Outcome.DELIVERED),
        (returned("S-2", "a", 100), Outcome.RETURNED),
        (failed("S-3", "a", 30), Outcome.FAILED),
        (in_progress("S-4", "a"), Outcome.IN_PROGRESS),
    ],
)
def test_outcome_classification(shipment, outcome):
    assert extract_timeline(shipment).outcome is outcome


def test_delivered_takes_precedence_over_return_and_failure():
    shipment = make_shipment(
        "S-1",
        events=[make_event("FAILED", 20), make_event("DELIVERED", 40), make_event("RETURNED", 90)],
    )
    assert extract_timeline(shipment).outcome is Outcome.DELIVERED


def test_negative_duration_is_flagged_not_clamped():
    shipment = make_shipment(
        "S-1",
        assigned_hours=10,
        events=[make_event("PICKED_UP", 4), make_event("DELIVERED", 30)],
    )
    timeline = extract_timeline(shipment)

    assert timeline.pickup_delay_hours == -6
    assert timeline.delivery_duration_hours == 20
    assert [i.field for i in timeline.issues] == ["pickup_delay_hours"]
    assert timeline.issues[0].value == -6
    assert timeline.issues[0].shipment_id == "S-1"


def test_missing_assignment_time_is_flagged():
    shipment = make_shipment("S-1", assigned_hours=None, events=[make_event("PICKED_UP", 4)])
    timeline = extract_timeline(shipment)
    assert timeline.pickup_delay_hours is None
    assert [i.field for i in timeline.issues] == ["assigned_at"]


def test_hours_between_handles_absence():
    assert hours_between(None, at(1)) is None
    assert hours_between(at(0), None) is None
    assert hours_between(at(0), at(168)) == 168
