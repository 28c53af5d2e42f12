"""Checkbox selection state and batch-action availability.

The journal page shows one checkbox per row (plain drive or grouped drive)
and one master checkbox per day.  :class:`SelectionTracker` keeps that state
keyed by day and item id, and recomputes :class:`ActionAvailability` after
every mutation so subscribers never see stale counts.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional

from tripjournal.core.models import ActionKind, Classification

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Action availability
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionAvailability:
    """Which batch buttons are enabled."""
    classify_business: bool = False
    classify_private: bool = False
    group: bool = False
    ungroup: bool = False

    def allows(
        self, action: ActionKind, classification: Optional[Classification] = None
    ) -> bool:
        """Return True if *action* (with *classification*) may be submitted."""
        if action is ActionKind.CLASSIFY:
            if classification is Classification.BUSINESS:
                return self.classify_business
            if classification is Classification.PRIVATE:
                return self.classify_private
            return False
        if action is ActionKind.GROUP:
            return self.group
        if action is ActionKind.UNGROUP:
            return self.ungroup
        return False

    def as_dict(self) -> dict[str, bool]:
        return {
            "classify_business": self.classify_business,
            "classify_private": self.classify_private,
            "group": self.group,
            "ungroup": self.ungroup,
        }


def compute_availability(
    checked_plain: int, checked_grouped: int, busy: bool = False
) -> ActionAvailability:
    """Decide which batch actions are legal for the given selection counts.

    Classification ignores grouping state.  Grouping needs at least two
    plain drives and no groups; ungrouping needs only groups.  Mixed
    selections disable both.  While a submission is in flight (*busy*)
    everything is disabled.
    """
    if busy:
        return ActionAvailability()

    nothing_checked = checked_plain == 0 and checked_grouped == 0
    return ActionAvailability(
        classify_business=not nothing_checked,
        classify_private=not nothing_checked,
        group=not nothing_checked and checked_plain >= 2 and checked_grouped == 0,
        ungroup=not nothing_checked and checked_plain == 0 and checked_grouped >= 1,
    )


# ---------------------------------------------------------------------------
# Selection tracking
# ---------------------------------------------------------------------------

@dataclass
class _DaySelection:
    plain_ids: set[int] = field(default_factory=set)      # rendered rows
    group_ids: set[int] = field(default_factory=set)
    checked_plain: set[int] = field(default_factory=set)
    checked_groups: set[int] = field(default_factory=set)
    master: bool = False


class SelectionTracker:
    """Tracks checked drive and group checkboxes per rendered day."""

    def __init__(self) -> None:
        self._days: dict[date, _DaySelection] = {}
        self._subscribers: list[Callable[[ActionAvailability], None]] = []
        self._busy = False
        self.availability = ActionAvailability()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[ActionAvailability], None]) -> None:
        """Register *callback* to receive availability after each mutation."""
        self._subscribers.append(callback)

    def load_day(
        self, day_key: date, plain_ids: Iterable[int], group_ids: Iterable[int]
    ) -> None:
        """Register the rows of a freshly rendered day, all unchecked."""
        self._days[day_key] = _DaySelection(
            plain_ids=set(plain_ids), group_ids=set(group_ids)
        )
        self._changed()

    def clear(self) -> None:
        """Forget every registered day."""
        self._days.clear()
        self._changed()

    def reset_days(self, day_keys: Iterable[date]) -> None:
        """Uncheck everything in *day_keys* including their master boxes."""
        for key in day_keys:
            sel = self._days.get(key)
            if sel is None:
                continue
            sel.checked_plain.clear()
            sel.checked_groups.clear()
            sel.master = False
        self._changed()

    def toggle_master(self, day_key: date, checked: bool) -> None:
        """Set every checkbox of the day (and its master) to *checked*."""
        sel = self._days.get(day_key)
        if sel is None:
            logger.warning("Master toggle for unknown day %s ignored", day_key)
            return
        if checked:
            sel.checked_plain = set(sel.plain_ids)
            sel.checked_groups = set(sel.group_ids)
        else:
            sel.checked_plain.clear()
            sel.checked_groups.clear()
        sel.master = checked
        self._changed()

    def toggle_drive(
        self, day_key: date, item_id: int, is_group: bool, checked: bool
    ) -> None:
        """Update a single checkbox.

        Unchecking any item also unchecks the day's master checkbox.
        """
        sel = self._days.get(day_key)
        if sel is None:
            logger.warning("Toggle for unknown day %s ignored", day_key)
            return
        known = sel.group_ids if is_group else sel.plain_ids
        if item_id not in known:
            logger.warning(
                "Toggle for unknown %s %d on %s ignored",
                "group" if is_group else "drive", item_id, day_key,
            )
            return

        target = sel.checked_groups if is_group else sel.checked_plain
        if checked:
            target.add(item_id)
        else:
            target.discard(item_id)
            sel.master = False
        self._changed()

    def set_busy(self, busy: bool) -> None:
        """Mark a submission as in flight (disables every action)."""
        self._busy = busy
        self._changed()

    def counts(self) -> tuple[int, int]:
        """Return ``(checked_plain_drives, checked_grouped_drives)``."""
        plain = sum(len(s.checked_plain) for s in self._days.values())
        grouped = sum(len(s.checked_groups) for s in self._days.values())
        return plain, grouped

    def is_master_checked(self, day_key: date) -> bool:
        sel = self._days.get(day_key)
        return sel.master if sel is not None else False

    def is_checked(self, day_key: date, item_id: int, is_group: bool) -> bool:
        sel = self._days.get(day_key)
        if sel is None:
            return False
        return item_id in (sel.checked_groups if is_group else sel.checked_plain)

    def selected_plain_ids(self) -> list[int]:
        return sorted(i for s in self._days.values() for i in s.checked_plain)

    def selected_group_ids(self) -> list[int]:
        return sorted(i for s in self._days.values() for i in s.checked_groups)

    @property
    def day_keys(self) -> list[date]:
        return sorted(self._days)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _changed(self) -> None:
        plain, grouped = self.counts()
        self.availability = compute_availability(plain, grouped, busy=self._busy)
        for callback in self._subscribers:
            callback(self.availability)
