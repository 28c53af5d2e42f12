"""Folds a day's drives and grouped drives into one render sequence.

Drives arrive in start-time order; members of a grouped drive carry its id
in ``group_id``.  Each group is emitted once, at the position of its first
member.  Already-emitted groups are tracked by id rather than by "previous
row", so a group whose members are interleaved with other rows still
produces a single row (with a warning).
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from tripjournal.core.models import Drive, GroupedDrive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRow:
    """One line of the rendered day: a plain drive or a merged group."""
    item: Union[Drive, GroupedDrive]
    is_group: bool = False
    inconsistent: bool = False  # drive references a group missing from the day

    @property
    def id(self) -> int:
        return self.item.id


def resolve_rows(
    drives: Iterable[Drive], grouped_drives: Iterable[GroupedDrive]
) -> list[ResolvedRow]:
    """Return the render sequence for one day.

    A drive whose ``group_id`` has no matching grouped drive is emitted as a
    plain row flagged ``inconsistent`` instead of being dropped.
    """
    groups = {gd.id: gd for gd in grouped_drives}
    emitted: set[int] = set()
    current_group_id: Optional[int] = None
    rows: list[ResolvedRow] = []

    for drive in drives:
        gid = drive.group_id

        if gid is None:
            rows.append(ResolvedRow(drive))
            current_group_id = None
            continue

        if gid == current_group_id:
            continue

        group = groups.get(gid)
        if group is None:
            logger.warning(
                "Drive %d references grouped drive %d which is not in its day",
                drive.id, gid,
            )
            rows.append(ResolvedRow(drive, inconsistent=True))
            current_group_id = None
            continue

        if gid in emitted:
            logger.warning(
                "Grouped drive %d is not contiguous (drive %d); row not repeated",
                gid, drive.id,
            )
            current_group_id = gid
            continue

        rows.append(ResolvedRow(group, is_group=True))
        emitted.add(gid)
        current_group_id = gid

    return rows
