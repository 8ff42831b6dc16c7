# File: coordinator.py
"""Coordinator for the Medication Reminders integration.

Owns the store, the in-memory medication list and the managers. The periodic
refresh carries no I/O: it only tells entities to recompute, so pending doses
turn past-due without user interaction.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .engines import DoseEngine, HistoryEngine, StatusEngine
from .managers import MedicationManager, ReminderManager, SystemManager
from .models import HistoryRecord, medications_from_list
from .utils.math_utils import format_dose

if TYPE_CHECKING:
    from datetime import date, datetime

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .models import Medication
    from .store import MedReminderStore


class MedReminderCoordinator(DataUpdateCoordinator[list["Medication"]]):
    """Coordinator for Medication Reminders.

    `data` is the current medication list; entities read it on every update.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: MedReminderStore,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=const.DEFAULT_UPDATE_INTERVAL),
        )
        self.store = store
        self.medications: list[Medication] = []
        # Stored records that failed validation, written back untouched
        self.invalid_records: list[dict[str, Any]] = []
        self.medication_manager = MedicationManager(hass, self)
        self.reminder_manager = ReminderManager(hass, self)
        self.system_manager = SystemManager(hass, self)

    # -------------------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------------------

    async def async_setup(self) -> None:
        """Load medications and start the managers.

        SystemManager starts last: its startup catch-up emits ROLLOVER, which
        ReminderManager must already be listening for.
        """
        self.medications, self.invalid_records = medications_from_list(
            self.store.get(const.DATA_MEDICATIONS)
        )
        const.LOGGER.debug(
            "Coordinator loaded %s medications from storage (%s invalid kept aside)",
            len(self.medications),
            len(self.invalid_records),
        )
        await self.medication_manager.async_setup()
        await self.reminder_manager.async_setup()
        await self.system_manager.async_setup()

    async def _async_update_data(self) -> list[Medication]:
        """Periodic update; statuses are time-dependent, data is in memory."""
        return self.medications

    @callback
    def async_set_medications(self, medications: list[Medication]) -> None:
        """Replace the in-memory list after a successful write."""
        self.medications = list(medications)
        self.async_set_updated_data(self.medications)

    # -------------------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------------------

    @property
    def notify_service(self) -> str:
        return self.config_entry.options.get(
            const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
        )

    @property
    def delay_minutes(self) -> int:
        return int(
            self.config_entry.options.get(
                const.CONF_DELAY_MINUTES, const.DEFAULT_DELAY_MINUTES
            )
        )

    @property
    def reminder_title(self) -> str:
        return self.config_entry.options.get(
            const.CONF_REMINDER_TITLE, const.DEFAULT_REMINDER_TITLE
        )

    # -------------------------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------------------------

    def history_records(self, day: date | None = None) -> list[HistoryRecord]:
        """Stored history, newest first, optionally limited to one local date."""
        records = [
            record
            for item in self.store.get(const.DATA_HISTORY) or []
            if (record := HistoryRecord.from_dict(item)) is not None
        ]
        if day is not None:
            records = HistoryEngine.records_on(records, day)
        return HistoryEngine.sorted_newest_first(records)

    def today_overview(self, now: datetime) -> list[dict[str, Any]]:
        """Medications scheduled on `now`'s date with dose and time statuses."""
        overview: list[dict[str, Any]] = []
        for medication in self.medications:
            if not DoseEngine.is_scheduled_on(medication, now):
                continue
            dose = DoseEngine.dose_for(medication, now)
            overview.append(
                {
                    const.ATTR_MEDICATION_ID: medication.id,
                    const.DATA_MEDICATION_NAME: medication.name,
                    const.DATA_MEDICATION_COLOR: medication.color,
                    const.DATA_MEDICATION_DOSE: dose,
                    const.ATTR_DOSE_DISPLAY: format_dose(dose),
                    const.ATTR_TIMES: [
                        {
                            const.FIELD_TIME_INDEX: index,
                            const.DATA_TIME: scheduled.label,
                            const.ATTR_STATUS: status.status,
                            const.ATTR_DELAYED: status.delayed,
                            const.ATTR_DUE: status.due.isoformat(),
                        }
                        for index, (scheduled, status) in enumerate(
                            zip(
                                medication.times,
                                StatusEngine.statuses_for(medication, now),
                                strict=True,
                            )
                        )
                    ],
                }
            )
        return overview
