# File: sensor.py
"""Sensors for the Medication Reminders integration.

One MedicationSensor per medication:
- state: today's dose (0 when the medication is not scheduled today)
- attributes: color, frequency, weekdays, dosing type and one entry per
  scheduled time with status, delay and next reminder

Entities are added and removed as medications are added and removed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity
from homeassistant.core import callback
from homeassistant.helpers import entity_registry as er
from homeassistant.util import dt as dt_util

from . import const
from .engines import DoseEngine, ReminderEngine, StatusEngine
from .entity import MedReminderCoordinatorEntity
from .models import dosing_type
from .utils.dt_utils import WEEKDAY_LABELS, dt_to_iso
from .utils.math_utils import format_dose

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import MedReminderCoordinator
    from .models import Medication


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up medication sensors and keep them in step with the medication list."""
    coordinator: MedReminderCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    known_ids: set[str] = set()

    @callback
    def _async_sync_entities() -> None:
        current_ids = {medication.id for medication in coordinator.medications}

        new_ids = current_ids - known_ids
        if new_ids:
            async_add_entities(
                MedicationSensor(coordinator, medication_id)
                for medication_id in sorted(new_ids)
            )
            known_ids.update(new_ids)

        removed_ids = known_ids - current_ids
        if removed_ids:
            registry = er.async_get(hass)
            for medication_id in removed_ids:
                entity_id = registry.async_get_entity_id(
                    "sensor",
                    const.DOMAIN,
                    MedicationSensor.build_unique_id(entry.entry_id, medication_id),
                )
                if entity_id:
                    registry.async_remove(entity_id)
            known_ids.difference_update(removed_ids)

    _async_sync_entities()
    entry.async_on_unload(coordinator.async_add_listener(_async_sync_entities))


class MedicationSensor(MedReminderCoordinatorEntity, SensorEntity):
    """Today's dose and per-time status of one medication."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_MEDICATION
    _attr_icon = "mdi:pill"

    def __init__(self, coordinator: MedReminderCoordinator, medication_id: str) -> None:
        """Initialize the sensor.

        Args:
            coordinator: MedReminderCoordinator instance for data access.
            medication_id: Id of the medication this sensor tracks.
        """
        super().__init__(coordinator)
        self._medication_id = medication_id
        self._attr_unique_id = self.build_unique_id(
            coordinator.config_entry.entry_id, medication_id
        )
        medication = self._medication
        self._attr_translation_placeholders = {
            "medication_name": medication.name if medication else medication_id
        }

    @staticmethod
    def build_unique_id(entry_id: str, medication_id: str) -> str:
        return f"{entry_id}_{medication_id}{const.SENSOR_UID_SUFFIX_MEDICATION}"

    @property
    def _medication(self) -> Medication | None:
        for medication in self.coordinator.medications:
            if medication.id == self._medication_id:
                return medication
        return None

    @property
    def available(self) -> bool:
        return super().available and self._medication is not None

    @property
    def native_value(self) -> float | None:
        """Dose owed today, 0 when the medication does not apply today."""
        medication = self._medication
        if medication is None:
            return None
        now = dt_util.now()
        if not DoseEngine.is_scheduled_on(medication, now):
            return 0
        return DoseEngine.dose_for(medication, now)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        medication = self._medication
        if medication is None:
            return {}
        now = dt_util.now()
        applies_today = DoseEngine.is_scheduled_on(medication, now)
        dose = DoseEngine.dose_for(medication, now)

        times: list[dict[str, Any]] = []
        for index, (scheduled, status) in enumerate(
            zip(
                medication.times,
                StatusEngine.statuses_for(medication, now),
                strict=True,
            )
        ):
            next_reminder = ReminderEngine.next_fire_for_time(medication, index, now)
            times.append(
                {
                    const.DATA_TIME: scheduled.label,
                    const.ATTR_STATUS: status.status,
                    const.ATTR_DELAYED: status.delayed,
                    const.ATTR_DELAYED_UNTIL: dt_to_iso(scheduled.delayed_until),
                    const.ATTR_NEXT_REMINDER: dt_to_iso(next_reminder),
                }
            )

        days = (
            [
                label
                for label, flag in zip(
                    WEEKDAY_LABELS, medication.days_of_week or (), strict=False
                )
                if flag
            ]
            if medication.frequency == const.FREQUENCY_CUSTOM
            else list(WEEKDAY_LABELS)
        )

        return {
            const.ATTR_MEDICATION_ID: medication.id,
            const.ATTR_COLOR: medication.color,
            const.ATTR_FREQUENCY: medication.frequency,
            const.ATTR_DAYS: days,
            const.ATTR_APPLIES_TODAY: applies_today,
            const.ATTR_DOSING_TYPE: dosing_type(medication.policy),
            const.ATTR_BASE_DOSE: medication.dose,
            const.ATTR_DOSE_DISPLAY: format_dose(dose),
            const.ATTR_TIMES: times,
            const.ATTR_NEXT_ROLLOVER: dt_to_iso(
                self.coordinator.system_manager.next_rollover
            ),
        }
