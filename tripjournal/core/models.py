"""Core data models for TripJournal.

Defines all dataclasses and enums used across the application:
- Classification: the business/private tag
- Journal data: Drive, GroupedDrive, Day, Totals, Car, MonthData
- Detail view: DriveDetails
- Batch actions: ActionKind, DispatchState, ActionResult

Each data class offers a ``from_json`` constructor that decodes the journal
service's JSON payloads.  Optional integers and strings may arrive either as
bare values or wrapped as ``{"Int32": n, "Valid": true}`` /
``{"String": s, "Valid": true}``; both forms decode to plain ``Optional``
values.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class Classification(Enum):
    """Business/private tag on a Drive or GroupedDrive."""
    UNCLASSIFIED = "unclassified"
    BUSINESS = "business"
    PRIVATE = "private"

    @classmethod
    def from_code(cls, code: Optional[int]) -> "Classification":
        """Map the service's integer code (1 business, 2 private) to a member."""
        if code == 1:
            return cls.BUSINESS
        if code == 2:
            return cls.PRIVATE
        return cls.UNCLASSIFIED

    @classmethod
    def from_form_value(cls, value: str) -> "Classification":
        """Parse ``"business"`` / ``"private"``; raises ValueError otherwise."""
        normalized = (value or "").strip().lower()
        if normalized == cls.BUSINESS.value:
            return cls.BUSINESS
        if normalized == cls.PRIVATE.value:
            return cls.PRIVATE
        raise ValueError(f"Invalid classification: {value!r}")


# ---------------------------------------------------------------------------
# JSON decoding helpers
# ---------------------------------------------------------------------------

def optional_int(value: Any) -> Optional[int]:
    """Decode a bare int, ``None`` or an ``{"Int32", "Valid"}`` wrapper."""
    if value is None:
        return None
    if isinstance(value, dict):
        if not value.get("Valid"):
            return None
        value = value.get("Int32", value.get("Int64"))
        if value is None:
            return None
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    return int(value)


def optional_str(value: Any) -> str:
    """Decode a bare string, ``None`` or a ``{"String", "Valid"}`` wrapper."""
    if value is None:
        return ""
    if isinstance(value, dict):
        if not value.get("Valid"):
            return ""
        return str(value.get("String", ""))
    return str(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp (``Z`` suffix allowed); ``None`` if empty."""
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _classification(payload: dict) -> Classification:
    return Classification.from_code(optional_int(payload.get("Classification")))


# ---------------------------------------------------------------------------
# Journal data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Drive:
    """One recorded point-to-point trip."""
    id: int
    start_address: str
    end_address: str
    start_time: str            # local "HH:MM" as supplied by the service
    end_time: str
    distance_km: float
    duration_minutes: int
    classification: Classification = Classification.UNCLASSIFIED
    group_id: Optional[int] = None
    start_date: Optional[datetime] = None
    start_odometer: Optional[int] = None
    end_odometer: Optional[int] = None

    @classmethod
    def from_json(cls, payload: dict) -> "Drive":
        return cls(
            id=int(payload["Id"]),
            start_address=optional_str(payload.get("StartAddress")),
            end_address=optional_str(payload.get("EndAddress")),
            start_time=optional_str(payload.get("StartTime")),
            end_time=optional_str(payload.get("EndTime")),
            distance_km=float(payload.get("Distance") or 0.0),
            duration_minutes=int(payload.get("Duration") or 0),
            classification=_classification(payload),
            group_id=optional_int(payload.get("GroupId")),
            start_date=parse_timestamp(payload.get("StartDate")),
            start_odometer=optional_int(payload.get("StartOdometer")),
            end_odometer=optional_int(payload.get("EndOdometer")),
        )


@dataclass(frozen=True)
class GroupedDrive:
    """A user-created merge of two or more drives sharing one group id."""
    id: int
    member_drive_ids: tuple[int, ...]
    start_address: str
    end_address: str
    start_time: str
    end_time: str
    distance_km: float
    duration_minutes: int
    classification: Classification = Classification.UNCLASSIFIED

    @classmethod
    def from_json(cls, payload: dict) -> "GroupedDrive":
        return cls(
            id=int(payload["Id"]),
            member_drive_ids=tuple(int(i) for i in payload.get("DriveIds") or ()),
            start_address=optional_str(payload.get("StartAddress")),
            end_address=optional_str(payload.get("EndAddress")),
            start_time=optional_str(payload.get("StartTime")),
            end_time=optional_str(payload.get("EndTime")),
            distance_km=float(payload.get("Distance") or 0.0),
            duration_minutes=int(payload.get("Duration") or 0),
            classification=_classification(payload),
        )


def _drive_sort_key(drive: Drive) -> tuple:
    # Drives without a full timestamp fall back to their "HH:MM" string.
    if drive.start_date is not None:
        return (0, drive.start_date.replace(tzinfo=None), drive.id)
    return (1, drive.start_time, drive.id)


@dataclass
class Day:
    """All drives and grouped drives of one calendar date."""
    date: date
    drives: list[Drive] = field(default_factory=list)  # start time ascending
    grouped_drives: list[GroupedDrive] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.drives = sorted(self.drives, key=_drive_sort_key)

    @property
    def is_weekend(self) -> bool:
        return self.date.weekday() >= 5

    def grouped_drive(self, group_id: int) -> Optional[GroupedDrive]:
        """Return the grouped drive with *group_id*, or ``None``."""
        for gd in self.grouped_drives:
            if gd.id == group_id:
                return gd
        return None

    @classmethod
    def from_json(cls, payload: dict) -> "Day":
        day_date = parse_timestamp(payload.get("Date"))
        if day_date is None:
            raise ValueError("Day payload has no Date")
        return cls(
            date=day_date.date(),
            drives=[Drive.from_json(d) for d in payload.get("Drives") or []],
            grouped_drives=[
                GroupedDrive.from_json(g) for g in payload.get("GroupedDrives") or []
            ],
        )


@dataclass(frozen=True)
class Totals:
    """Aggregate distance (km) and duration (minutes) for the current view."""
    total_distance: float = 0.0
    total_business_distance: float = 0.0
    total_private_distance: float = 0.0
    unclassified_distance: float = 0.0
    total_duration: int = 0
    total_business_duration: int = 0
    total_private_duration: int = 0
    unclassified_duration: int = 0

    @classmethod
    def from_json(cls, payload: dict) -> "Totals":
        return cls(
            total_distance=float(payload.get("TotalDistance") or 0.0),
            total_business_distance=float(payload.get("TotalBusinessDistance") or 0.0),
            total_private_distance=float(payload.get("TotalPrivateDistance") or 0.0),
            unclassified_distance=float(payload.get("UnclassifiedDistance") or 0.0),
            total_duration=int(payload.get("TotalDuration") or 0),
            total_business_duration=int(payload.get("TotalBusinessDuration") or 0),
            total_private_duration=int(payload.get("TotalPrivateDuration") or 0),
            unclassified_duration=int(payload.get("UnclassifiedDuration") or 0),
        )


@dataclass(frozen=True)
class Car:
    """A vehicle selectable in the journal view."""
    id: int
    model: str = ""
    name: str = ""

    @classmethod
    def from_json(cls, payload: dict) -> "Car":
        return cls(
            id=int(payload["Id"]),
            model=optional_str(payload.get("Model")),
            name=optional_str(payload.get("Name")),
        )


@dataclass
class MonthData:
    """One month of journal data for a single car."""
    year: int
    month: int
    car_id: int
    totals: Totals = field(default_factory=Totals)
    days: list[Day] = field(default_factory=list)
    cars: list[Car] = field(default_factory=list)
    years: list[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Detail view
# ---------------------------------------------------------------------------

@dataclass
class DriveDetails:
    """Detail view data for a single drive or grouped drive."""
    map_data: dict[str, Any]   # GeoJSON Feature or FeatureCollection
    start_odometer: Optional[int]
    end_odometer: Optional[int]
    classification: str
    comment: str = ""

    @classmethod
    def from_json(cls, payload: dict) -> "DriveDetails":
        drive = payload.get("Drives") or payload.get("Drive") or {}
        if not isinstance(drive, dict):
            raise ValueError("Drive details payload must be an object")
        classification = drive.get("ClassificationString")
        if not classification:
            raw = drive.get("Classification")
            if isinstance(raw, str):
                classification = raw
            else:
                classification = Classification.from_code(optional_int(raw)).value
        comment = optional_str(drive.get("Comment")) or optional_str(payload.get("Comment"))
        return cls(
            map_data=payload.get("MapData") or {"type": "FeatureCollection", "features": []},
            start_odometer=optional_int(drive.get("StartOdometer")),
            end_odometer=optional_int(drive.get("EndOdometer")),
            classification=classification,
            comment=comment,
        )


# ---------------------------------------------------------------------------
# Batch actions
# ---------------------------------------------------------------------------

class ActionKind(Enum):
    """Batch action sent to the mutation endpoint."""
    CLASSIFY = "classify"
    GROUP = "group"
    UNGROUP = "ungroup"


class DispatchState(Enum):
    """Whether a batch action is currently awaiting the service."""
    IDLE = "idle"
    SUBMITTING = "submitting"


@dataclass
class ActionResult:
    """Fresh totals and the replaced days returned after a batch action."""
    totals: Totals
    affected_days: list[Day] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: dict) -> "ActionResult":
        return cls(
            totals=Totals.from_json(payload.get("Totals") or {}),
            affected_days=[Day.from_json(d) for d in payload.get("AffectedDays") or []],
        )
