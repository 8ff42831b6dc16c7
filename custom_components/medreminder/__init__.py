# File: __init__.py
"""Initialization file for the Medication Reminders integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and preparing the coordinator for data handling.

Key Features:
- Config entry setup and unload support.
- Coordinator initialization (managers, rollover timer, reminder triggers).
- Storage management for persistent data handling.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import MedReminderCoordinator
from .services import async_setup_services, async_unload_services
from .store import MedReminderStore
from .utils import dt_utils

PLATFORMS = [
    Platform.SENSOR,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("Starting setup for Medication Reminders entry: %s", entry.entry_id)

    # Pure date helpers follow the Home Assistant configured timezone.
    # Must be done before anything resolves doses or statuses.
    time_zone = dt_util.get_time_zone(hass.config.time_zone)
    if time_zone is not None:
        dt_utils.set_default_timezone(time_zone)

    store = MedReminderStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    coordinator = MedReminderCoordinator(hass, entry, store)
    await coordinator.async_setup()
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Options changes (notify service, title, delay) take effect on reload
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    const.LOGGER.info(
        "Medication Reminders setup complete for entry: %s", entry.entry_id
    )
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options changed."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry.

    Timers, reminder triggers and signal listeners are released through
    entry.async_on_unload callbacks registered by the managers.
    """
    const.LOGGER.info("Unloading Medication Reminders entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)
        if not hass.data[const.DOMAIN]:
            async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry: delete the storage file."""
    const.LOGGER.info("Removing Medication Reminders entry: %s", entry.entry_id)
    store = MedReminderStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()
    const.LOGGER.info("Medication Reminders entry data cleared: %s", entry.entry_id)
