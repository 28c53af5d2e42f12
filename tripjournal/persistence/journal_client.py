"""HTTP client for the external journal service.

The service owns the drive data and persists classification and grouping
changes.  This client reads month listings and drive details, and posts
batch actions as form-encoded requests.  Every transport or decoding
problem is raised as :class:`JournalClientError`.
"""

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Iterable, Optional

from tripjournal.core.models import (
    ActionKind,
    ActionResult,
    Car,
    Classification,
    Day,
    DriveDetails,
    MonthData,
    Totals,
)

logger = logging.getLogger(__name__)

_USER_AGENT = "TripJournal/1.0"

# Raised by the from_json decoders on payloads of the wrong shape; OverflowError
# covers non-finite numbers such as 1e400 where an integer is expected.
_DECODE_ERRORS = (KeyError, TypeError, ValueError, AttributeError, OverflowError)


class JournalClientError(Exception):
    """A request to the journal service failed or returned bad data."""


class JournalClient:
    """Read/write interface to the journal service."""

    def __init__(
        self,
        base_url: str,
        days_path: str = "/days",
        action_path: str = "/action",
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.days_path = days_path
        self.action_path = action_path
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: dict) -> "JournalClient":
        service = config.get("service", {})
        return cls(
            base_url=service.get("base_url", "http://localhost:4001"),
            days_path=service.get("days_path", "/days"),
            action_path=service.get("action_path", "/action"),
            timeout=service.get("timeout_seconds", 10),
        )

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    def fetch_month(self, year: int, month: int, car_id: int) -> MonthData:
        """Return all days and the totals of one month for *car_id*."""
        query = urllib.parse.urlencode({"year": year, "month": month, "car": car_id})
        payload = self._request(f"{self.days_path}?{query}")
        try:
            return MonthData(
                year=year,
                month=month,
                car_id=car_id,
                totals=Totals.from_json(payload.get("Totals") or {}),
                days=[Day.from_json(d) for d in payload.get("Days") or []],
                cars=[Car.from_json(c) for c in payload.get("Cars") or []],
                years=[int(y) for y in payload.get("Years") or []],
            )
        except _DECODE_ERRORS as exc:
            raise JournalClientError(f"Malformed month listing: {exc}") from exc

    def fetch_drive(self, drive_id: int) -> DriveDetails:
        """Return detail data (map geometry, odometer) for one drive."""
        return self._details(f"/drive/{int(drive_id)}")

    def fetch_group(self, group_id: int) -> DriveDetails:
        """Return detail data for one grouped drive."""
        return self._details(f"/drive/group/{int(group_id)}")

    # ------------------------------------------------------------------
    # Mutation endpoint
    # ------------------------------------------------------------------

    def post_action(
        self,
        action: ActionKind,
        classification: Optional[Classification] = None,
        plain_ids: Iterable[int] = (),
        group_ids: Iterable[int] = (),
        year: Optional[int] = None,
        month: Optional[int] = None,
        car_id: Optional[int] = None,
    ) -> ActionResult:
        """Submit a batch action and return the refreshed totals and days."""
        fields = build_action_form(
            action, classification, plain_ids, group_ids, year, month, car_id
        )
        body = urllib.parse.urlencode(fields).encode("utf-8")
        payload = self._request(
            self.action_path,
            data=body,
            content_type="application/x-www-form-urlencoded",
        )
        try:
            return ActionResult.from_json(payload)
        except _DECODE_ERRORS as exc:
            raise JournalClientError(f"Malformed action response: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _details(self, path: str) -> DriveDetails:
        payload = self._request(path)
        try:
            return DriveDetails.from_json(payload)
        except _DECODE_ERRORS as exc:
            raise JournalClientError(f"Malformed drive details: {exc}") from exc

    def _request(
        self,
        path: str,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> dict[str, Any]:
        url = self.base_url + path
        headers = {"User-Agent": _USER_AGENT, "Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = content_type
        req = urllib.request.Request(url, data=data, headers=headers)

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            raise JournalClientError(f"{url} returned HTTP {exc.code}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise JournalClientError(f"{url} unreachable: {exc}") from exc
        except http.client.HTTPException as exc:
            raise JournalClientError(f"{url} broke off the response: {exc!r}") from exc

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise JournalClientError(f"{url} returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise JournalClientError(f"{url} returned a non-object JSON value")
        logger.debug("%s %s ok", "POST" if data is not None else "GET", url)
        return payload


def build_action_form(
    action: ActionKind,
    classification: Optional[Classification] = None,
    plain_ids: Iterable[int] = (),
    group_ids: Iterable[int] = (),
    year: Optional[int] = None,
    month: Optional[int] = None,
    car_id: Optional[int] = None,
) -> list[tuple[str, str]]:
    """Build the ordered form fields for a batch action.

    ``classification`` is only sent with ``classify``; drive and group ids
    are sent as repeated ``drive`` / ``groupeddrive`` fields.
    """
    fields: list[tuple[str, str]] = [("action", action.value)]
    if action is ActionKind.CLASSIFY:
        if classification not in (Classification.BUSINESS, Classification.PRIVATE):
            raise ValueError("classify requires a business or private classification")
        fields.append(("classification", classification.value))
    fields.extend(("drive", str(i)) for i in plain_ids)
    fields.extend(("groupeddrive", str(i)) for i in group_ids)
    for name, value in (("year", year), ("month", month), ("car", car_id)):
        if value is not None:
            fields.append((name, str(value)))
    return fields
