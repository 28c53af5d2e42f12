"""Totals formatter for TripJournal.

Formats distances and durations for display, renders the totals panel
(business/private split, unclassified remainder) and provides the
locale label tables used by the day renderer and exporter.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from tripjournal.core.models import Classification, Totals


LABELS: dict[str, dict] = {
    "sv": {
        "total_distance": "Total körsträcka",
        "total_duration": "Total tid",
        "business_part": "Varav tjänsteresor",
        "private_part": "Varav privatresor",
        "unclassified_distance": "Oklassificerad sträcka",
        "unclassified_duration": "Oklassificerad tid",
        "distance": "Körsträcka",
        "duration": "Tid",
        "business": "Tjänsteresa",
        "private": "Privat resa",
        "unclassified": "",
        "no_drives": "Inga resor.",
        "title": "Körjournal",
        "weekdays": ["Måndag", "Tisdag", "Onsdag", "Torsdag", "Fredag", "Lördag", "Söndag"],
        "months": [
            "Januari", "Februari", "Mars", "April", "Maj", "Juni", "Juli",
            "Augusti", "September", "Oktober", "November", "December",
        ],
    },
    "en": {
        "total_distance": "Total distance",
        "total_duration": "Total time",
        "business_part": "Of which business",
        "private_part": "Of which private",
        "unclassified_distance": "Unclassified distance",
        "unclassified_duration": "Unclassified time",
        "distance": "Distance",
        "duration": "Time",
        "business": "Business",
        "private": "Private",
        "unclassified": "",
        "no_drives": "No drives.",
        "title": "Drive journal",
        "weekdays": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
        "months": [
            "January", "February", "March", "April", "May", "June", "July",
            "August", "September", "October", "November", "December",
        ],
    },
}


def get_labels(locale: str) -> dict:
    """Return the label table for *locale*, falling back to Swedish."""
    return LABELS.get(locale, LABELS["sv"])


@dataclass(frozen=True)
class TotalsView:
    """Display strings for the totals panel.

    The unclassified fields are ``None`` unless the value is strictly
    positive; a present value is meant to be highlighted.
    """
    total_distance: str
    business_distance: str
    private_distance: str
    total_duration: str
    business_duration: str
    private_duration: str
    unclassified_distance: Optional[str] = None
    unclassified_duration: Optional[str] = None

    @property
    def has_unclassified(self) -> bool:
        return self.unclassified_distance is not None or self.unclassified_duration is not None


class TotalsFormatter:
    """Formats distances, durations and totals as display text."""

    def __init__(self, locale: str = "sv", unit: str = "km") -> None:
        self.locale = locale
        self.unit = unit
        self.labels = get_labels(locale)

    @staticmethod
    def format_duration(minutes: int) -> str:
        """Format a minute count as ``h:mm`` (e.g. ``125 -> '2:05'``).

        Hours are not padded; minutes are always two digits.  Negative
        input is treated as zero.
        """
        minutes = max(int(minutes), 0)
        hours, rem = divmod(minutes, 60)
        return f"{hours}:{rem:02d}"

    def format_distance(self, km: float, decimals: int = 1) -> str:
        """Format *km* with *decimals* places and the configured unit."""
        return f"{km:.{decimals}f} {self.unit}"

    def classification_label(self, classification: Classification) -> str:
        return self.labels[classification.value]

    def format_date(self, day: date) -> str:
        """Upper-cased ``WEEKDAY D MONTH`` header, e.g. ``MÅNDAG 2 MARS``."""
        weekday = self.labels["weekdays"][day.weekday()]
        month = self.labels["months"][day.month - 1]
        return f"{weekday} {day.day} {month}".upper()

    def format_totals(self, totals: Totals) -> TotalsView:
        """Build the display strings for *totals*."""
        return TotalsView(
            total_distance=self.format_distance(totals.total_distance),
            business_distance=self.format_distance(totals.total_business_distance),
            private_distance=self.format_distance(totals.total_private_distance),
            total_duration=self.format_duration(totals.total_duration),
            business_duration=self.format_duration(totals.total_business_duration),
            private_duration=self.format_duration(totals.total_private_duration),
            unclassified_distance=(
                self.format_distance(totals.unclassified_distance)
                if totals.unclassified_distance > 0 else None
            ),
            unclassified_duration=(
                self.format_duration(totals.unclassified_duration)
                if totals.unclassified_duration > 0 else None
            ),
        )

    def format_totals_text(self, totals: Totals) -> str:
        """Render the totals panel as labelled plain-text lines."""
        view = self.format_totals(totals)
        lb = self.labels
        lines = [
            f"{lb['total_distance']}: {view.total_distance}",
            f"{lb['business_part']}: {view.business_distance}",
            f"{lb['private_part']}: {view.private_distance}",
        ]
        if view.unclassified_distance is not None:
            lines.append(f"{lb['unclassified_distance']}: {view.unclassified_distance}")
        lines += [
            f"{lb['total_duration']}: {view.total_duration}",
            f"{lb['business_part']}: {view.business_duration}",
            f"{lb['private_part']}: {view.private_duration}",
        ]
        if view.unclassified_duration is not None:
            lines.append(f"{lb['unclassified_duration']}: {view.unclassified_duration}")
        return "\n".join(lines) + "\n"
