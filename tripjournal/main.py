"""TripJournal application entry point.

Supports three modes:
  - Dashboard mode (default): serves the journal web dashboard
  - Report mode: prints a month's days and totals to stdout
  - Export mode: writes a month's journal to a .docx file

Usage:
    python -m tripjournal.main                          # dashboard
    python -m tripjournal.main --month 2024-05          # print report
    python -m tripjournal.main --month 2024-05 --export journal.docx
"""

import argparse
import logging
import os
import sys
from datetime import date

from tripjournal.core.config import get_default_config_path, load_config
from tripjournal.persistence.journal_client import JournalClient, JournalClientError
from tripjournal.reporting.day_renderer import DayRenderer
from tripjournal.reporting.exporter import JournalExporter
from tripjournal.reporting.formatter import TotalsFormatter

logger = logging.getLogger(__name__)


def _year_month(text: str) -> tuple[int, int]:
    try:
        year_str, month_str = text.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {text!r}")
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"month out of range in {text!r}")
    return year, month


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="tripjournal",
        description="TripJournal: classify drives as business or private",
    )
    parser.add_argument(
        "--month",
        type=_year_month,
        help="Print the journal for YYYY-MM and exit",
    )
    parser.add_argument(
        "--car",
        type=int,
        help="Car id (defaults to the configured car)",
    )
    parser.add_argument(
        "--export",
        metavar="PATH",
        help="Write the month's journal to a .docx file instead of printing it",
    )
    parser.add_argument(
        "--config",
        help="Path to config.json (defaults to the platform data directory)",
    )
    return parser


def _formatter(config: dict) -> TotalsFormatter:
    return TotalsFormatter(config.get("locale", "sv"), config.get("distance_unit", "km"))


def _print_month(config: dict, year: int, month: int, car_id: int) -> int:
    """Fetch a month and print its days followed by the totals."""
    client = JournalClient.from_config(config)
    try:
        data = client.fetch_month(year, month, car_id)
    except JournalClientError as exc:
        logger.error("Could not load journal: %s", exc)
        return 1

    formatter = _formatter(config)
    renderer = DayRenderer(formatter)
    for day in data.days:
        print(renderer.render_text(day))
    print(formatter.format_totals_text(data.totals))
    return 0


def _export_month(config: dict, year: int, month: int, car_id: int, path: str) -> int:
    """Fetch a month and export it as a Word document."""
    client = JournalClient.from_config(config)
    try:
        data = client.fetch_month(year, month, car_id)
    except JournalClientError as exc:
        logger.error("Could not load journal: %s", exc)
        return 1

    car_name = next((c.name or c.model for c in data.cars if c.id == car_id), "")
    if not os.path.isabs(path) and os.path.dirname(path) == "":
        path = os.path.join(os.path.expanduser(config.get("export_directory", ".")), path)
    JournalExporter(_formatter(config)).export_month(data, car_name, path)
    print(path)
    return 0


def main(args: list[str] | None = None) -> int:
    """Entry point for TripJournal.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = build_parser()
    parsed = parser.parse_args(args)

    config_path = parsed.config or str(get_default_config_path())
    config = load_config(config_path)
    car_id = parsed.car or config.get("car_id", 1)

    if parsed.export and parsed.month is None:
        today = date.today()
        parsed.month = (today.year, today.month)

    if parsed.export:
        return _export_month(config, *parsed.month, car_id, parsed.export)
    if parsed.month is not None:
        return _print_month(config, *parsed.month, car_id)

    # Dashboard mode: import here to avoid pulling in Flask for CLI usage
    from tripjournal.ui.app import JournalApp

    app = JournalApp(config_path, config=config)
    app.start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
