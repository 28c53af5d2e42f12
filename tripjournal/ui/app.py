"""Application wiring for TripJournal.

:class:`JournalApp` owns the configuration, the journal service client,
the on-screen journal state, checkbox selection and the action dispatcher,
and serves them through the Flask dashboard.  The dashboard runs in a
daemon thread; :meth:`JournalApp.start` blocks until it stops.
"""

import logging
import threading
from datetime import date
from typing import Optional

from tripjournal.core.config import load_config
from tripjournal.core.dispatcher import ActionDispatcher, register_day
from tripjournal.core.journal import JournalState
from tripjournal.core.models import ActionResult, MonthData
from tripjournal.core.selection import SelectionTracker
from tripjournal.persistence.journal_client import JournalClient, JournalClientError
from tripjournal.reporting.day_renderer import DayRenderer
from tripjournal.reporting.formatter import TotalsFormatter
from tripjournal.reporting.summary import SummaryGenerator

logger = logging.getLogger(__name__)


class JournalApp:
    """Main application object shared by the dashboard routes."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[dict] = None,
        client: Optional[JournalClient] = None,
    ) -> None:
        self.config_path = config_path
        self.config = config if config is not None else load_config(config_path)
        self.client = client or JournalClient.from_config(self.config)

        self.lock = threading.Lock()
        self.state = JournalState()
        self.selection = SelectionTracker()
        self.dispatcher = ActionDispatcher(self.client, self.state, self.selection, lock=self.lock)
        self.dispatcher.on_applied(self._log_applied)

        self.formatter = TotalsFormatter(
            locale=self.config.get("locale", "sv"),
            unit=self.config.get("distance_unit", "km"),
        )
        self.renderer = DayRenderer(self.formatter)
        self.summary = SummaryGenerator()

        self.month_data: Optional[MonthData] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Journal loading
    # ------------------------------------------------------------------

    def load_month(
        self, year: Optional[int] = None, month: Optional[int] = None, car_id: Optional[int] = None
    ) -> bool:
        """Fetch one month and replace the on-screen journal with it.

        Returns False (and keeps the previous view) if the service call
        fails.
        """
        today = date.today()
        year = year or today.year
        month = month or today.month
        car_id = car_id or self.config.get("car_id", 1)

        try:
            data = self.client.fetch_month(year, month, car_id)
        except JournalClientError as exc:
            logger.error("Could not load %04d-%02d for car %d: %s", year, month, car_id, exc)
            self.last_error = str(exc)
            return False

        with self.lock:
            self.month_data = data
            self.state.load_month(data)
            self.selection.clear()
            for day in data.days:
                register_day(self.selection, day)
            self.last_error = None

        self.summary.check(data.days, data.totals)
        logger.info("Loaded %d day(s) for %04d-%02d", len(data.days), year, month)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Load the current month and serve the dashboard until interrupted."""
        from tripjournal.ui.web import start_dashboard

        self.load_month()
        dashboard = self.config.get("dashboard", {})
        thread = start_dashboard(
            self,
            host=dashboard.get("host", "127.0.0.1"),
            port=dashboard.get("port", 5556),
        )
        try:
            while thread.is_alive():
                thread.join(0.5)
        except KeyboardInterrupt:
            logger.info("TripJournal stopped")

    def _log_applied(self, result: ActionResult) -> None:
        logger.debug("Totals now %s", result.totals)
