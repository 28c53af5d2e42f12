"""Unit tests for the journal data model and its JSON decoding."""

from datetime import date

import pytest

from tripjournal.core.models import (
    ActionResult,
    Classification,
    Day,
    Drive,
    DriveDetails,
    GroupedDrive,
    Totals,
    optional_int,
    optional_str,
    parse_timestamp,
)


def _drive_json(**overrides) -> dict:
    payload = {
        "Id": 11,
        "StartDate": "2024-05-06T07:30:00Z",
        "EndDate": "2024-05-06T07:55:00Z",
        "StartTime": "09:30",
        "EndTime": "09:55",
        "Duration": 25,
        "StartAddress": "Hemma",
        "EndAddress": "Kontoret",
        "StartOdometer": 1200,
        "EndOdometer": 1218,
        "Distance": 18.4,
        "Classification": {"Int32": 0, "Valid": False},
        "GroupId": {"Int32": 0, "Valid": False},
    }
    payload.update(overrides)
    return payload


# ------------------------------------------------------------------
# Decoding helpers
# ------------------------------------------------------------------

class TestOptionalInt:
    def test_none(self):
        assert optional_int(None) is None

    def test_bare_int(self):
        assert optional_int(5) == 5

    def test_valid_wrapper(self):
        assert optional_int({"Int32": 7, "Valid": True}) == 7

    def test_invalid_wrapper(self):
        assert optional_int({"Int32": 7, "Valid": False}) is None

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            optional_int(True)


class TestOptionalStr:
    def test_wrapper(self):
        assert optional_str({"String": "note", "Valid": True}) == "note"

    def test_invalid_wrapper(self):
        assert optional_str({"String": "note", "Valid": False}) == ""

    def test_none(self):
        assert optional_str(None) == ""


def test_parse_timestamp_z_suffix():
    ts = parse_timestamp("2024-05-06T07:30:00Z")
    assert ts.year == 2024 and ts.hour == 7
    assert ts.utcoffset().total_seconds() == 0


def test_parse_timestamp_empty():
    assert parse_timestamp("") is None


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------

class TestClassification:
    def test_codes(self):
        assert Classification.from_code(1) is Classification.BUSINESS
        assert Classification.from_code(2) is Classification.PRIVATE
        assert Classification.from_code(None) is Classification.UNCLASSIFIED
        assert Classification.from_code(-1) is Classification.UNCLASSIFIED

    def test_form_values(self):
        assert Classification.from_form_value("business") is Classification.BUSINESS
        assert Classification.from_form_value(" Private ") is Classification.PRIVATE

    def test_unknown_form_value_raises(self):
        with pytest.raises(ValueError):
            Classification.from_form_value("work")


# ------------------------------------------------------------------
# Drive / GroupedDrive / Day
# ------------------------------------------------------------------

def test_drive_from_json():
    drive = Drive.from_json(_drive_json(
        Classification={"Int32": 1, "Valid": True},
        GroupId={"Int32": 4, "Valid": True},
    ))
    assert drive.id == 11
    assert drive.start_address == "Hemma"
    assert drive.end_address == "Kontoret"
    assert drive.distance_km == pytest.approx(18.4)
    assert drive.duration_minutes == 25
    assert drive.classification is Classification.BUSINESS
    assert drive.group_id == 4
    assert drive.start_odometer == 1200


def test_drive_without_group_has_none_group_id():
    assert Drive.from_json(_drive_json()).group_id is None


def test_drive_accepts_plain_optional_values():
    drive = Drive.from_json(_drive_json(Classification=2, GroupId=None))
    assert drive.classification is Classification.PRIVATE
    assert drive.group_id is None


def test_drive_missing_id_raises():
    payload = _drive_json()
    del payload["Id"]
    with pytest.raises(KeyError):
        Drive.from_json(payload)


def test_grouped_drive_from_json():
    gd = GroupedDrive.from_json({
        "Id": 3, "DriveIds": [11, 12], "StartAddress": "A", "EndAddress": "C",
        "StartTime": "08:00", "EndTime": "09:10", "Distance": 30.5, "Duration": 70,
        "Classification": {"Int32": 2, "Valid": True},
    })
    assert gd.member_drive_ids == (11, 12)
    assert gd.classification is Classification.PRIVATE


def test_day_sorts_drives_ascending():
    day = Day.from_json({
        "Date": "2024-05-06T00:00:00Z",
        "Drives": [
            _drive_json(Id=2, StartDate="2024-05-06T15:00:00Z"),
            _drive_json(Id=1, StartDate="2024-05-06T07:00:00Z"),
        ],
        "GroupedDrives": None,
    })
    assert day.date == date(2024, 5, 6)
    assert [d.id for d in day.drives] == [1, 2]
    assert day.grouped_drives == []


def test_day_without_date_raises():
    with pytest.raises(ValueError):
        Day.from_json({"Drives": []})


def test_day_is_weekend():
    assert Day(date=date(2024, 5, 4)).is_weekend   # Saturday
    assert not Day(date=date(2024, 5, 6)).is_weekend


def test_day_grouped_drive_lookup():
    gd = GroupedDrive(5, (1, 2), "A", "B", "08:00", "09:00", 10.0, 60)
    day = Day(date=date(2024, 5, 6), grouped_drives=[gd])
    assert day.grouped_drive(5) is gd
    assert day.grouped_drive(6) is None


# ------------------------------------------------------------------
# Totals / results / details
# ------------------------------------------------------------------

def test_totals_from_json():
    totals = Totals.from_json({
        "TotalDuration": 300, "TotalBusinessDuration": 120, "TotalPrivateDuration": 60,
        "TotalDistance": 250.0, "TotalBusinessDistance": 100.0, "TotalPrivateDistance": 50.0,
        "UnclassifiedDuration": 120, "UnclassifiedDistance": 100.0,
    })
    assert totals.total_duration == 300
    assert totals.unclassified_distance == pytest.approx(100.0)


def test_action_result_from_json():
    result = ActionResult.from_json({
        "Totals": {"TotalDistance": 10.0},
        "AffectedDays": [{"Date": "2024-05-06T00:00:00Z", "Drives": [_drive_json()]}],
    })
    assert result.totals.total_distance == pytest.approx(10.0)
    assert result.affected_days[0].drives[0].id == 11


def test_action_result_null_days():
    result = ActionResult.from_json({"Totals": {}, "AffectedDays": None})
    assert result.affected_days == []


def test_drive_details_from_group_payload():
    details = DriveDetails.from_json({
        "MapData": {"type": "FeatureCollection", "features": []},
        "Drives": {
            "StartOdometer": 100, "EndOdometer": 140,
            "ClassificationString": "Tjänsteresa",
            "Comment": {"String": "kundbesök", "Valid": True},
        },
    })
    assert details.start_odometer == 100
    assert details.end_odometer == 140
    assert details.classification == "Tjänsteresa"
    assert details.comment == "kundbesök"


def test_drive_details_from_single_drive_payload():
    details = DriveDetails.from_json({
        "Drive": {"StartOdometer": 1, "EndOdometer": 2, "Classification": {"Int32": 2, "Valid": True}},
        "Comment": "test comment",
    })
    assert details.classification == "private"
    assert details.comment == "test comment"
    assert details.map_data["type"] == "FeatureCollection"
