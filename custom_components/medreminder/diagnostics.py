"""Diagnostics support for Medication Reminders.

The config entry diagnostics return the raw storage data, identical to the
medreminder_data file, plus the reminder triggers currently armed.
"""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import MedReminderCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: MedReminderCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    next_rollover = coordinator.system_manager.next_rollover

    return {
        "storage": coordinator.store.data,
        "scheduled_reminders": [
            descriptor.as_dict()
            for descriptor in coordinator.reminder_manager.scheduled_descriptors()
        ],
        "next_rollover": next_rollover.isoformat() if next_rollover else None,
    }
