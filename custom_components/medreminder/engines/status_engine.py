"""Status Engine - Pure logic for per-time dose status.

Maps a scheduled time plus "now" to pending / past_due / taken, with a
display-only delayed flag.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import as_local, combine_local

if TYPE_CHECKING:
    from ..models import Medication, ScheduledTime


@dataclass(frozen=True)
class DoseStatus:
    """Computed status of one scheduled time.

    Attributes:
        status: One of DOSE_STATUS_PENDING / PAST_DUE / TAKEN
        delayed: True whenever a delay is set for today, independent of status
        due: Effective due instant (delay target when set, else today at HH:MM)
    """

    status: str
    delayed: bool
    due: datetime


class StatusEngine:
    """Pure logic engine for schedule status. All methods are static."""

    @staticmethod
    def due_instant(scheduled: ScheduledTime, now: datetime) -> datetime:
        """Return the effective due instant for today.

        Once a delay is set it is authoritative, so a delay into the future
        suppresses past-due until that instant passes.
        """
        if scheduled.delayed_until is not None:
            return scheduled.delayed_until
        return combine_local(as_local(now).date(), scheduled.time_of_day)

    @staticmethod
    def status_of(scheduled: ScheduledTime, now: datetime) -> DoseStatus:
        """Compute the status of a scheduled time at `now`.

        Taken wins regardless of time or delay; otherwise past_due when
        now > due instant, else pending.
        """
        now = as_local(now)
        due = StatusEngine.due_instant(scheduled, now)
        delayed = scheduled.delayed_until is not None

        if scheduled.taken:
            status = const.DOSE_STATUS_TAKEN
        elif now > due:
            status = const.DOSE_STATUS_PAST_DUE
        else:
            status = const.DOSE_STATUS_PENDING

        return DoseStatus(status=status, delayed=delayed, due=due)

    @staticmethod
    def statuses_for(medication: Medication, now: datetime) -> list[DoseStatus]:
        """Status for every scheduled time of a medication, in order."""
        return [StatusEngine.status_of(t, now) for t in medication.times]
