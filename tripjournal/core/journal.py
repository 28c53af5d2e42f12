"""In-memory snapshot of the journal currently on screen.

Holds the rendered days (keyed by date) and the latest totals.  Both are
replaced wholesale: a refreshed day overwrites the previous one, and totals
are superseded in place.
"""

from datetime import date
from typing import Iterable, Optional

from tripjournal.core.models import Day, MonthData, Totals


class JournalState:
    """Days and totals for the current view."""

    def __init__(self) -> None:
        self.year: Optional[int] = None
        self.month: Optional[int] = None
        self.car_id: Optional[int] = None
        self.totals = Totals()
        self._days: dict[date, Day] = {}

    def load_month(self, data: MonthData) -> None:
        """Replace the whole view with *data*."""
        self.year = data.year
        self.month = data.month
        self.car_id = data.car_id
        self.totals = data.totals
        self._days = {d.date: d for d in data.days}

    def replace_days(self, days: Iterable[Day]) -> list[date]:
        """Overwrite (or add) each day in *days*; return their keys."""
        keys = []
        for day in days:
            self._days[day.date] = day
            keys.append(day.date)
        return keys

    def set_totals(self, totals: Totals) -> None:
        self.totals = totals

    def get_day(self, key: date) -> Optional[Day]:
        return self._days.get(key)

    @property
    def days(self) -> list[Day]:
        """Days in date order."""
        return [self._days[k] for k in sorted(self._days)]
