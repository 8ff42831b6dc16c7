# File: store.py
"""Handles persistent data storage for the Medication Reminders integration.

Uses Home Assistant's Storage helper to save and load medications, the dose
history and rollover bookkeeping in a single JSON file, so the state is
preserved across restarts.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from collections.abc import Mapping

    from homeassistant.core import HomeAssistant


class MedReminderStore:
    """Handles persistent storage operations for Medication Reminders data.

    Thin wrapper around Home Assistant's Store API. Writes are reported as a
    boolean: on failure the in-memory cache keeps its previous values so
    callers never observe state that was not persisted.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_LAST_ROLLOVER: None,
            },
            const.DATA_MEDICATIONS: [],
            const.DATA_HISTORY: [],
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure. Missing
        top-level keys are filled from the default structure.
        """
        const.LOGGER.debug("MedReminderStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("No existing storage found. Initializing new data")
            self._data = MedReminderStore.get_default_structure()
            return

        data = MedReminderStore.get_default_structure()
        data.update(existing_data)
        self._data = data
        const.LOGGER.debug(
            "MedReminderStore: Loaded %s medications, %s history records",
            len(self._data.get(const.DATA_MEDICATIONS, [])),
            len(self._data.get(const.DATA_HISTORY, [])),
        )

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Return a deep copy of one top-level section (None when absent)."""
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def async_set(self, key: str, value: Any) -> bool:
        """Write one top-level section. Returns False when the write failed."""
        return await self.async_set_many({key: value})

    async def async_set_many(self, values: Mapping[str, Any]) -> bool:
        """Write several top-level sections in a single file write.

        The in-memory cache is updated only after the write succeeded.

        Returns:
            True on success. False when the write failed; the failure is logged.
        """
        candidate = dict(self._data)
        candidate.update(values)
        if not await self._async_save(candidate):
            return False
        self._data = candidate
        return True

    async def _async_save(self, data: dict[str, Any]) -> bool:
        """Save a data structure to storage.

        Errors are logged, never raised:
            OSError: File system issues prevent saving.
            TypeError: Data contains non-serializable types.
            ValueError: Data is invalid for JSON serialization.
        """
        try:
            await self._store.async_save(data)
        except OSError as err:
            const.LOGGER.error(
                "Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "Failed to save storage due to non-serializable data: %s. "
                "Data contains types that cannot be converted to JSON",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "Failed to save storage due to invalid data format: %s. "
                "Data structure may be corrupted",
                err,
            )
        else:
            const.LOGGER.debug("MedReminderStore: Data saved successfully")
            return True
        return False

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        self._data = MedReminderStore.get_default_structure()
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "Storage file removed successfully: %s", self._store.path
            )
        except OSError as err:
            const.LOGGER.error(
                "Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
