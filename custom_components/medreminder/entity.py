"""Base entity classes for Medication Reminders."""

from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import MedReminderCoordinator


class MedReminderCoordinatorEntity(CoordinatorEntity[MedReminderCoordinator]):
    """Base entity class with typed coordinator access and a shared device."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: MedReminderCoordinator) -> None:
        """Attach the entity to the integration's service device."""
        super().__init__(coordinator)
        entry_id = coordinator.config_entry.entry_id
        self._attr_device_info = DeviceInfo(
            identifiers={(const.DOMAIN, entry_id)},
            name=const.MEDREMINDER_TITLE,
            entry_type=DeviceEntryType.SERVICE,
        )
