from datetime import date, datetime, timezone

import pytest

from app.models.fault_models import CableCutRecord, FaultEvent, FaultType, segment_key_from_cut_id
from app.models.route_models import UNKNOWN_DEPTH


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Full Cut", FaultType.FULL_CUT),
        ("shunt", FaultType.SHUNT_FAULT),
        ("Partial damage", FaultType.PARTIAL_FIBER_BREAK),
        ("cable break", FaultType.FIBER_BREAK),
        ("anchor drag", FaultType.FULL_CUT),
        ("mystery", FaultType.FIBER_BREAK),
        (None, FaultType.FIBER_BREAK),
    ],
)
def test_infer_maps_free_text_labels(label, expected):
    assert FaultType.infer(label) is expected


def test_every_fault_type_has_a_description():
    assert FaultType.FIBER_BREAK.description.startswith("100% damage")
    assert all(member.description for member in FaultType)


@pytest.mark.parametrize(
    "cut_id, key",
    [("sjc1-1700000000000", "sjc1"), ("tgnia12-5", "tgnia12"), ("seaus2-1", "seaus2"), ("plain", "plain")],
)
def test_segment_key_from_cut_id(cut_id, key):
    assert segment_key_from_cut_id(cut_id) == key


def test_from_record_coerces_loose_wire_values():
    record = CableCutRecord.model_validate(
        {
            "cut_id": "sjc1-1",
            "distance": "12.5",
            "cut_type": "Fiber Break",
            "simulated": "2024-01-02T03:04:05Z",
            "latitude": "1.25",
            "longitude": None,
            "depth": "n/a",
            "fault_date": "2024-03-05",
            "unexpected": True,
        }
    )

    event = FaultEvent.from_record(record)

    assert event.segment_key == "sjc1"
    assert event.distance_km == 12.5
    assert event.fault_type is FaultType.FIBER_BREAK
    assert event.simulated_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert event.latitude == 1.25
    assert not event.has_position
    assert event.depth_m == UNKNOWN_DEPTH
    assert event.fault_date == date(2024, 3, 5)


def test_to_record_uses_display_value_for_cut_type(make_event):
    record = make_event(fault_date=date(2024, 3, 5)).to_record()

    assert record.cut_type == "Full Cut"
    assert record.fault_date == "2024-03-05"
    assert record.cut_id == "sjc1-1700000000000"
