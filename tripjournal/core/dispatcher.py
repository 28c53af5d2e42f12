"""Batch action dispatch.

Submits classify/group/ungroup actions to the journal service and applies
the response: affected days are replaced wholesale, totals are superseded,
and selection for those days is reset.  Failures leave the view untouched
and are only logged.  A submission in flight blocks further submissions
until it resolves, and its result is dropped if the month or car shown
changed in the meantime.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from tripjournal.core.journal import JournalState
from tripjournal.core.models import (
    ActionKind,
    ActionResult,
    Classification,
    Day,
    DispatchState,
)
from tripjournal.core.resolver import resolve_rows
from tripjournal.core.selection import SelectionTracker, compute_availability
from tripjournal.persistence.journal_client import JournalClient, JournalClientError

logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    """How a submission ended."""
    APPLIED = "applied"
    FAILED = "failed"      # transport or decoding failure; nothing applied
    REJECTED = "rejected"  # selection does not permit the action; nothing sent
    BUSY = "busy"          # another submission is in flight; nothing sent
    STALE = "stale"        # the view changed while in flight; result discarded


@dataclass
class DispatchOutcome:
    status: OutcomeStatus
    result: Optional[ActionResult] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.APPLIED


def register_day(selection: SelectionTracker, day: Day) -> None:
    """Register the checkbox rows of *day* with *selection*, all unchecked."""
    rows = resolve_rows(day.drives, day.grouped_drives)
    selection.load_day(
        day.date,
        plain_ids=[r.id for r in rows if not r.is_group],
        group_ids=[r.id for r in rows if r.is_group],
    )


class ActionDispatcher:
    """Sends batch actions and applies their results to the journal view."""

    def __init__(
        self,
        client: JournalClient,
        state: JournalState,
        selection: SelectionTracker,
        lock: Optional[threading.Lock] = None,
    ) -> None:
        self.client = client
        self.state = state
        self.selection = selection
        self.dispatch_state = DispatchState.IDLE
        self._lock = lock or threading.Lock()
        self._on_applied: list[Callable[[ActionResult], None]] = []

    def on_applied(self, callback: Callable[[ActionResult], None]) -> None:
        """Register *callback* to run after a result has been applied."""
        self._on_applied.append(callback)

    def submit(
        self,
        action: ActionKind,
        classification: Optional[Classification] = None,
        plain_ids: Optional[Iterable[int]] = None,
        group_ids: Optional[Iterable[int]] = None,
    ) -> DispatchOutcome:
        """Send *action* for the given ids (default: the current selection)."""
        with self._lock:
            if self.dispatch_state is DispatchState.SUBMITTING:
                logger.info("Submission of %s refused: another is in flight", action.value)
                return DispatchOutcome(OutcomeStatus.BUSY, message="submission in flight")

            plain = list(plain_ids) if plain_ids is not None else self.selection.selected_plain_ids()
            groups = list(group_ids) if group_ids is not None else self.selection.selected_group_ids()

            availability = compute_availability(len(plain), len(groups))
            if not availability.allows(action, classification):
                logger.info(
                    "Action %s rejected for %d drive(s) and %d group(s)",
                    action.value, len(plain), len(groups),
                )
                return DispatchOutcome(
                    OutcomeStatus.REJECTED,
                    message=f"{action.value} not allowed for this selection",
                )

            self.dispatch_state = DispatchState.SUBMITTING
            self.selection.set_busy(True)
            view = self._view_key()

        # The gate is released on every exit, including unexpected errors.
        try:
            try:
                result = self.client.post_action(
                    action,
                    classification if action is ActionKind.CLASSIFY else None,
                    plain,
                    groups,
                    year=view[0],
                    month=view[1],
                    car_id=view[2],
                )
            except JournalClientError as exc:
                logger.error("Action %s failed: %s", action.value, exc)
                return DispatchOutcome(OutcomeStatus.FAILED, message=str(exc))

            with self._lock:
                applied = self._apply(result, view)
        finally:
            with self._lock:
                self.dispatch_state = DispatchState.IDLE
                self.selection.set_busy(False)

        if not applied:
            return DispatchOutcome(
                OutcomeStatus.STALE, message="view changed while the action was in flight"
            )

        logger.info(
            "Action %s applied; %d day(s) refreshed",
            action.value, len(result.affected_days),
        )
        for callback in self._on_applied:
            callback(result)
        return DispatchOutcome(OutcomeStatus.APPLIED, result=result)

    def _view_key(self) -> tuple:
        return (self.state.year, self.state.month, self.state.car_id)

    def _apply(self, result: ActionResult, view: tuple) -> bool:
        """Apply *result* if the journal still shows *view*; False otherwise."""
        if self._view_key() != view:
            logger.warning(
                "Discarding action result for %s: journal now shows %s",
                view, self._view_key(),
            )
            return False
        keys = self.state.replace_days(result.affected_days)
        self.state.set_totals(result.totals)
        self.selection.reset_days(keys)
        for day in result.affected_days:
            register_day(self.selection, day)
        return True
