"""Manager modules for Medication Reminders.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager
from .medication_manager import MedicationManager
from .reminder_manager import ReminderManager
from .system_manager import SystemManager

__all__ = [
    "BaseManager",
    "MedicationManager",
    "ReminderManager",
    "SystemManager",
]
