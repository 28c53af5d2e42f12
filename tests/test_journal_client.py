"""Unit tests for JournalClient (urllib transport mocked)."""

import http.client
import json
import urllib.error
import urllib.parse
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from tripjournal.core.models import ActionKind, Classification
from tripjournal.persistence.journal_client import (
    JournalClient,
    JournalClientError,
    build_action_form,
)

URLOPEN = "tripjournal.persistence.journal_client.urllib.request.urlopen"

DAY_PAYLOAD = {
    "Date": "2024-05-06T00:00:00Z",
    "Drives": [
        {"Id": 11, "StartAddress": "Hemma", "EndAddress": "Kontoret", "StartTime": "08:00",
         "EndTime": "08:30", "Distance": 12.4, "Duration": 30, "Classification": 1,
         "GroupId": {"Int32": 0, "Valid": False}},
        {"Id": 12, "StartAddress": "Kontoret", "EndAddress": "Kund", "StartTime": "10:00",
         "EndTime": "10:20", "Distance": 8.0, "Duration": 20,
         "GroupId": {"Int32": 3, "Valid": True}},
        {"Id": 13, "StartAddress": "Kund", "EndAddress": "Lager", "StartTime": "10:40",
         "EndTime": "11:00", "Distance": 6.0, "Duration": 20,
         "GroupId": {"Int32": 3, "Valid": True}},
    ],
    "GroupedDrives": [
        {"Id": 3, "DriveIds": [12, 13], "StartAddress": "Kontoret", "EndAddress": "Lager",
         "StartTime": "10:00", "EndTime": "11:00", "Distance": 14.0, "Duration": 60,
         "Classification": 2},
    ],
}

TOTALS_PAYLOAD = {
    "TotalDistance": 26.4, "TotalBusinessDistance": 12.4, "TotalPrivateDistance": 14.0,
    "UnclassifiedDistance": 0, "TotalDuration": 90, "TotalBusinessDuration": 30,
    "TotalPrivateDuration": 60, "UnclassifiedDuration": 0,
}


def _response(payload) -> MagicMock:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    resp = MagicMock()
    resp.read.return_value = body
    resp.__enter__.return_value = resp
    return resp


@pytest.fixture
def client():
    return JournalClient("http://journal.local/", days_path="/days", action_path="/action")


# ------------------------------------------------------------------
# Form building
# ------------------------------------------------------------------

class TestBuildActionForm:
    def test_classify_fields(self):
        fields = build_action_form(
            ActionKind.CLASSIFY, Classification.BUSINESS, [1, 2], [5], 2024, 5, 1
        )
        assert fields == [
            ("action", "classify"), ("classification", "business"),
            ("drive", "1"), ("drive", "2"), ("groupeddrive", "5"),
            ("year", "2024"), ("month", "5"), ("car", "1"),
        ]

    def test_group_has_no_classification(self):
        fields = build_action_form(ActionKind.GROUP, Classification.PRIVATE, [1, 2])
        assert ("classification", "private") not in fields
        assert fields == [("action", "group"), ("drive", "1"), ("drive", "2")]

    def test_ungroup_only_groups(self):
        assert build_action_form(ActionKind.UNGROUP, group_ids=[7]) == [
            ("action", "ungroup"), ("groupeddrive", "7"),
        ]

    @pytest.mark.parametrize("classification", [None, Classification.UNCLASSIFIED])
    def test_classify_requires_business_or_private(self, classification):
        with pytest.raises(ValueError):
            build_action_form(ActionKind.CLASSIFY, classification, [1])


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------

class TestFetchMonth:
    def test_decodes_listing(self, client):
        payload = {
            "Totals": TOTALS_PAYLOAD,
            "Days": [DAY_PAYLOAD],
            "Cars": [{"Id": 1, "Model": "3", "Name": "Blixten"}],
            "Years": [2023, 2024],
        }
        with patch(URLOPEN, return_value=_response(payload)) as mock_open:
            data = client.fetch_month(2024, 5, 1)

        req = mock_open.call_args[0][0]
        assert req.full_url == "http://journal.local/days?year=2024&month=5&car=1"
        assert req.get_method() == "GET"
        assert data.totals.total_distance == pytest.approx(26.4)
        assert data.days[0].date == date(2024, 5, 6)
        assert [d.group_id for d in data.days[0].drives] == [None, 3, 3]
        assert data.days[0].drives[0].classification is Classification.BUSINESS
        assert data.days[0].grouped_drives[0].member_drive_ids == (12, 13)
        assert data.days[0].grouped_drives[0].classification is Classification.PRIVATE
        assert data.cars[0].name == "Blixten"
        assert data.years == [2023, 2024]

    def test_empty_listing(self, client):
        with patch(URLOPEN, return_value=_response({})):
            data = client.fetch_month(2024, 2, 1)
        assert data.days == []
        assert data.totals.total_distance == 0.0

    def test_day_without_date_is_malformed(self, client):
        with patch(URLOPEN, return_value=_response({"Days": [{"Drives": []}]})):
            with pytest.raises(JournalClientError, match="Malformed"):
                client.fetch_month(2024, 5, 1)


class TestPostAction:
    def test_posts_form_and_decodes_result(self, client):
        payload = {"Totals": TOTALS_PAYLOAD, "AffectedDays": [DAY_PAYLOAD]}
        with patch(URLOPEN, return_value=_response(payload)) as mock_open:
            result = client.post_action(
                ActionKind.CLASSIFY, Classification.PRIVATE, [11], [3],
                year=2024, month=5, car_id=1,
            )

        req = mock_open.call_args[0][0]
        assert req.full_url == "http://journal.local/action"
        assert req.get_method() == "POST"
        assert req.get_header("Content-type") == "application/x-www-form-urlencoded"
        form = urllib.parse.parse_qs(req.data.decode("utf-8"))
        assert form["action"] == ["classify"]
        assert form["classification"] == ["private"]
        assert form["drive"] == ["11"]
        assert form["groupeddrive"] == ["3"]
        assert result.totals.total_private_duration == 60
        assert [d.date for d in result.affected_days] == [date(2024, 5, 6)]

    def test_missing_affected_days_is_empty(self, client):
        with patch(URLOPEN, return_value=_response({"Totals": TOTALS_PAYLOAD})):
            result = client.post_action(ActionKind.GROUP, None, [1, 2])
        assert result.affected_days == []

    def test_http_error(self, client):
        err = urllib.error.HTTPError("http://journal.local/action", 500, "boom", {}, None)
        with patch(URLOPEN, side_effect=err):
            with pytest.raises(JournalClientError, match="HTTP 500"):
                client.post_action(ActionKind.GROUP, None, [1, 2])

    def test_unreachable(self, client):
        with patch(URLOPEN, side_effect=urllib.error.URLError("refused")):
            with pytest.raises(JournalClientError, match="unreachable"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])

    def test_invalid_json(self, client):
        with patch(URLOPEN, return_value=_response(b"<html>oops</html>")):
            with pytest.raises(JournalClientError, match="invalid JSON"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])

    def test_non_object_json(self, client):
        with patch(URLOPEN, return_value=_response([1, 2, 3])):
            with pytest.raises(JournalClientError, match="non-object"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])

    def test_out_of_range_number(self, client):
        body = b'{"Totals": {"TotalDuration": 1e400}, "AffectedDays": []}'
        with patch(URLOPEN, return_value=_response(body)):
            with pytest.raises(JournalClientError, match="Malformed action response"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])

    def test_truncated_response(self, client):
        resp = _response(b"")
        resp.read.side_effect = http.client.IncompleteRead(b'{"Tot')
        with patch(URLOPEN, return_value=resp):
            with pytest.raises(JournalClientError, match="broke off"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])

    def test_malformed_day(self, client):
        payload = {"Totals": {}, "AffectedDays": [{"Date": "2024-05-06", "Drives": [{"Name": "x"}]}]}
        with patch(URLOPEN, return_value=_response(payload)):
            with pytest.raises(JournalClientError, match="Malformed action response"):
                client.post_action(ActionKind.UNGROUP, None, [], [4])


class TestDetails:
    def test_fetch_drive(self, client):
        payload = {
            "MapData": {"type": "Feature", "geometry": {"type": "LineString", "coordinates": []}},
            "Drives": {"StartOdometer": 1200, "EndOdometer": 1212,
                       "Classification": "business", "Comment": "Kundbesök"},
        }
        with patch(URLOPEN, return_value=_response(payload)) as mock_open:
            details = client.fetch_drive(42)

        assert mock_open.call_args[0][0].full_url == "http://journal.local/drive/42"
        assert details.start_odometer == 1200
        assert details.end_odometer == 1212
        assert details.classification == "business"
        assert details.comment == "Kundbesök"
        assert details.map_data["type"] == "Feature"

    def test_fetch_group(self, client):
        with patch(URLOPEN, return_value=_response({"Drives": {"Classification": 2}})) as mock_open:
            details = client.fetch_group(7)
        assert mock_open.call_args[0][0].full_url == "http://journal.local/drive/group/7"
        assert details.classification == "private"
        assert details.map_data == {"type": "FeatureCollection", "features": []}


def test_from_config():
    config = {"service": {"base_url": "http://x:1/", "days_path": "/journal",
                          "action_path": "/act", "timeout_seconds": 3}}
    c = JournalClient.from_config(config)
    assert c.base_url == "http://x:1"
    assert c.days_path == "/journal"
    assert c.action_path == "/act"
    assert c.timeout == 3
