"""Display structures for journal days.

Turns a :class:`Day` into a header plus one :class:`LineItem` per resolved
row.  All grouping decisions are delegated to :func:`resolve_rows` and all
number formatting to :class:`TotalsFormatter`.
"""

from dataclasses import dataclass, field

from tripjournal.core.models import Day, Drive, GroupedDrive
from tripjournal.core.resolver import ResolvedRow, resolve_rows
from tripjournal.reporting.formatter import TotalsFormatter


@dataclass(frozen=True)
class LineItem:
    """One selectable row of a rendered day."""
    item_id: int
    is_group: bool
    checkbox_name: str        # form field: "drive" or "groupeddrive"
    checkbox_class: str       # "drivecb" or "drivecb groupedcb"
    link: str                 # details/{id} or group-details/{id}
    start_address: str
    end_address: str
    start_time: str
    end_time: str
    distance: str
    duration: str
    classification_class: str  # css: business / private / unknown
    classification_label: str
    inconsistent: bool = False


@dataclass
class DayView:
    """A rendered day: header and its line items."""
    key: str          # ISO date, used as element id and API key
    header: str
    is_weekend: bool
    rows: list[LineItem] = field(default_factory=list)


class DayRenderer:
    """Builds :class:`DayView` objects from journal days."""

    ROW_DISTANCE_DECIMALS = 2

    def __init__(self, formatter: TotalsFormatter) -> None:
        self.formatter = formatter

    def render(self, day: Day) -> DayView:
        rows = resolve_rows(day.drives, day.grouped_drives)
        return DayView(
            key=day.date.isoformat(),
            header=self.formatter.format_date(day.date),
            is_weekend=day.is_weekend,
            rows=[self._line_item(r) for r in rows],
        )

    def render_all(self, days: list[Day]) -> list[DayView]:
        return [self.render(d) for d in days]

    def render_text(self, day: Day) -> str:
        """Render *day* as indented plain text for the CLI report."""
        view = self.render(day)
        lb = self.formatter.labels
        lines = [view.header]
        if not view.rows:
            lines.append(f"  {lb['no_drives']}")
        for row in view.rows:
            marker = "[G]" if row.is_group else ("[!]" if row.inconsistent else "   ")
            tag = f"  {row.classification_label}" if row.classification_label else ""
            lines.append(
                f"  {marker} {row.start_time}-{row.end_time}  "
                f"{row.start_address} -> {row.end_address}  "
                f"{row.distance}  {row.duration}{tag}"
            )
        return "\n".join(lines) + "\n"

    def _line_item(self, row: ResolvedRow) -> LineItem:
        item: Drive | GroupedDrive = row.item
        if row.is_group:
            name, css, link = "groupeddrive", "drivecb groupedcb", f"group-details/{item.id}"
        else:
            name, css, link = "drive", "drivecb", f"details/{item.id}"
        classification = item.classification.value
        return LineItem(
            item_id=item.id,
            is_group=row.is_group,
            checkbox_name=name,
            checkbox_class=css,
            link=link,
            start_address=item.start_address,
            end_address=item.end_address,
            start_time=item.start_time,
            end_time=item.end_time,
            distance=self.formatter.format_distance(
                item.distance_km, self.ROW_DISTANCE_DECIMALS
            ),
            duration=self.formatter.format_duration(item.duration_minutes),
            classification_class="unknown" if classification == "unclassified" else classification,
            classification_label=self.formatter.classification_label(item.classification),
            inconsistent=row.inconsistent,
        )
