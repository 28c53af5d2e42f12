"""Journal exporter for TripJournal.

Generates Word (.docx) documents from a month of journal data using
python-docx: a title page, the totals split by classification, and one
table of drives per day.
"""

import logging
import os

from tripjournal.core.models import MonthData
from tripjournal.reporting.day_renderer import DayRenderer, DayView
from tripjournal.reporting.formatter import TotalsFormatter

logger = logging.getLogger(__name__)


class JournalExporter:
    """Exports a month of drives to a formatted Word document (.docx)."""

    def __init__(self, formatter: TotalsFormatter) -> None:
        self.formatter = formatter
        self.renderer = DayRenderer(formatter)

    def export_month(self, data: MonthData, car_name: str, output_path: str) -> str:
        """Generate a .docx file for one month of journal data.

        Args:
            data: The month to export.
            car_name: Display name of the car, shown on the title page.
            output_path: File path for the generated .docx file.

        Returns:
            The path to the generated file.

        Raises:
            ImportError: If python-docx is not installed.
        """
        try:
            from docx import Document
        except ImportError:
            raise ImportError(
                "python-docx is required for journal export. "
                "Install it with: pip install python-docx"
            )

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()
        lb = self.formatter.labels

        self._add_title_page(doc, data, car_name)

        doc.add_heading(lb["total_distance"], level=1)
        self._add_totals_table(doc, data)

        for view in self.renderer.render_all(data.days):
            doc.add_heading(view.header, level=2)
            if not view.rows:
                doc.add_paragraph(lb["no_drives"])
            else:
                self._add_day_table(doc, view)

        doc.save(output_path)
        logger.info("Journal for %04d-%02d exported to %s", data.year, data.month, output_path)
        return output_path

    def _add_title_page(self, doc, data: MonthData, car_name: str) -> None:
        """Add a title page with journal title, month and car."""
        from docx.shared import Pt
        from docx.enum.text import WD_ALIGN_PARAGRAPH

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run(self.formatter.labels["title"])
        run.bold = True
        run.font.size = Pt(24)

        month_name = self.formatter.labels["months"][data.month - 1]
        date_para = doc.add_paragraph()
        date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = date_para.add_run(f"{month_name} {data.year}")
        run.font.size = Pt(14)

        if car_name:
            car_para = doc.add_paragraph()
            car_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = car_para.add_run(car_name)
            run.font.size = Pt(12)

        doc.add_page_break()

    def _add_totals_table(self, doc, data: MonthData) -> None:
        """Add the totals table: one row per figure, distance and time columns."""
        view = self.formatter.format_totals(data.totals)
        lb = self.formatter.labels

        rows = [
            ("", lb["distance"], lb["duration"]),
            (lb["total_distance"], view.total_distance, view.total_duration),
            (lb["business_part"], view.business_distance, view.business_duration),
            (lb["private_part"], view.private_distance, view.private_duration),
        ]
        if view.has_unclassified:
            rows.append((
                lb["unclassified_distance"],
                view.unclassified_distance or "",
                view.unclassified_duration or "",
            ))

        table = doc.add_table(rows=len(rows), cols=3)
        table.style = "Light Grid Accent 1"
        for i, values in enumerate(rows):
            for cell, value in zip(table.rows[i].cells, values):
                cell.text = value

        for cell in table.rows[0].cells:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.bold = True

        doc.add_paragraph()  # spacing after table

    def _add_day_table(self, doc, view: DayView) -> None:
        """Add one table row per drive or grouped drive of the day."""
        lb = self.formatter.labels
        table = doc.add_table(rows=1 + len(view.rows), cols=5)
        table.style = "Light Grid Accent 1"

        header_cells = table.rows[0].cells
        header_cells[0].text = ""
        header_cells[1].text = ""
        header_cells[2].text = lb["distance"]
        header_cells[3].text = lb["duration"]
        header_cells[4].text = ""

        for i, row in enumerate(view.rows, start=1):
            cells = table.rows[i].cells
            cells[0].text = f"{row.start_time}\n{row.end_time}"
            cells[1].text = f"{row.start_address}\n{row.end_address}"
            cells[2].text = row.distance
            cells[3].text = row.duration
            cells[4].text = row.classification_label

        doc.add_paragraph()
