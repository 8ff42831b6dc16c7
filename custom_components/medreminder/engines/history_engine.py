"""History Engine - Builds and queries the append-only dose log.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
Persisting the records is MedicationManager's job.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from ..models import HistoryRecord
from ..utils.dt_utils import as_local, to_local_date

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..models import Medication


class HistoryEngine:
    """Pure logic engine for history records. All methods are static."""

    @staticmethod
    def record_event(
        medication: Medication,
        time_index: int,
        taken: bool,
        scheduled_time: str,
        actual: datetime,
        now: datetime,
    ) -> HistoryRecord:
        """Build a history record for a toggle or delay action.

        Args:
            medication: Medication acted on (name and color are snapshotted)
            time_index: Index of the scheduled time
            taken: Taken flag to record
            scheduled_time: Original "HH:MM" of the scheduled time
            actual: Toggle instant, or the delayed-to instant for a delay
            now: Event timestamp
        """
        return HistoryRecord(
            timestamp=as_local(now),
            medication_id=medication.id,
            medication_name=medication.name,
            medication_color=medication.color,
            time_index=time_index,
            taken=taken,
            time=scheduled_time,
            actual_time=as_local(actual),
        )

    @staticmethod
    def records_on(records: Iterable[HistoryRecord], day: date) -> list[HistoryRecord]:
        """Records whose event timestamp falls on the given local date."""
        return [r for r in records if to_local_date(r.timestamp) == day]

    @staticmethod
    def sorted_newest_first(records: Iterable[HistoryRecord]) -> list[HistoryRecord]:
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
