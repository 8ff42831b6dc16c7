"""Engine modules for Medication Reminders.

Contains pure computation engines:
- dose_engine: Dose owed on a date under fixed / per-weekday / cyclic policies
- status_engine: Pending / past-due / taken status of a scheduled time
- reminder_engine: Recurring reminder trigger planning (RRULE based)
- rollover_engine: Daily reset and missed-rollover detection
- history_engine: Append-only dose log records
"""

# Use relative imports within package to avoid mypy module resolution issues
from .dose_engine import DoseEngine
from .history_engine import HistoryEngine
from .reminder_engine import ReminderEngine
from .rollover_engine import RolloverEngine, RolloverResult
from .status_engine import DoseStatus, StatusEngine

__all__ = [
    "DoseEngine",
    "DoseStatus",
    "HistoryEngine",
    "ReminderEngine",
    "RolloverEngine",
    "RolloverResult",
    "StatusEngine",
]
