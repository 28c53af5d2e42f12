"""Totals derived from rendered rows, used to cross-check service totals."""

import logging
from collections import defaultdict
from typing import Iterable

from tripjournal.core.models import Classification, Day, Totals
from tripjournal.core.resolver import resolve_rows

logger = logging.getLogger(__name__)


class SummaryGenerator:
    """Sums distance and duration of resolved rows per classification.

    Each group counts once (its own figures), never its member drives.
    """

    def __init__(self, distance_tolerance: float = 0.05) -> None:
        self.distance_tolerance = distance_tolerance

    def summarize(self, days: Iterable[Day]) -> Totals:
        distance: dict[Classification, float] = defaultdict(float)
        duration: dict[Classification, int] = defaultdict(int)

        for day in days:
            for row in resolve_rows(day.drives, day.grouped_drives):
                distance[row.item.classification] += row.item.distance_km
                duration[row.item.classification] += row.item.duration_minutes

        return Totals(
            total_distance=sum(distance.values()),
            total_business_distance=distance[Classification.BUSINESS],
            total_private_distance=distance[Classification.PRIVATE],
            unclassified_distance=distance[Classification.UNCLASSIFIED],
            total_duration=sum(duration.values()),
            total_business_duration=duration[Classification.BUSINESS],
            total_private_duration=duration[Classification.PRIVATE],
            unclassified_duration=duration[Classification.UNCLASSIFIED],
        )

    def check(self, days: Iterable[Day], totals: Totals) -> list[str]:
        """Compare *totals* with the rows of *days*.

        Returns the names of mismatching fields and logs a warning for
        each; an empty list means the view is consistent.
        """
        derived = self.summarize(days)
        mismatches = []
        for name in (
            "total_distance", "total_business_distance",
            "total_private_distance", "unclassified_distance",
        ):
            if abs(getattr(derived, name) - getattr(totals, name)) > self.distance_tolerance:
                mismatches.append(name)
        for name in (
            "total_duration", "total_business_duration",
            "total_private_duration", "unclassified_duration",
        ):
            if getattr(derived, name) != getattr(totals, name):
                mismatches.append(name)

        for name in mismatches:
            logger.warning(
                "Totals mismatch for %s: service %s, rows %s",
                name, getattr(totals, name), getattr(derived, name),
            )
        return mismatches
