"""Rollover Engine - Pure logic for the local-midnight daily reset.

Clears each scheduled time's transient DoseState and computes when the next
reset is due. Detects a missed rollover (device off at midnight) from the
stored `last_rollover` stamp.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies. The timer
that drives it lives in SystemManager.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from ..utils.dt_utils import as_local, next_local_midnight, start_of_local_day

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..models import Medication


@dataclass(frozen=True)
class RolloverResult:
    """Outcome of a rollover.

    Attributes:
        medications: Medications with every DoseState cleared
        next_rollover: Next local midnight strictly after the rollover instant
    """

    medications: list[Medication]
    next_rollover: datetime


class RolloverEngine:
    """Pure logic engine for the daily reset. All methods are static."""

    @staticmethod
    def compute_rollover(
        medications: Iterable[Medication], now: datetime
    ) -> RolloverResult:
        """Reset today's state for every medication.

        Durable configuration, including a cyclic policy's current_position,
        is untouched: cycle progression is derived from the start date.
        """
        return RolloverResult(
            medications=[medication.reset_times() for medication in medications],
            next_rollover=RolloverEngine.next_rollover(now),
        )

    @staticmethod
    def next_rollover(now: datetime) -> datetime:
        """Next local midnight strictly after `now`."""
        return next_local_midnight(now)

    @staticmethod
    def is_rollover_due(last_rollover: datetime | None, now: datetime) -> bool:
        """Return True when the reset for today's date has not run yet.

        Examples:
            last None → True
            last 2024-01-01 00:00, now 2024-01-01 18:00 → False
            last 2024-01-01 00:00, now 2024-01-02 08:00 → True
        """
        if last_rollover is None:
            return True
        return as_local(last_rollover) < start_of_local_day(now)
