# File: managers/medication_manager.py
"""Medication Manager - User actions on medications.

Every action is one full read-modify-write of the store:
1. Build the new medication list (and history records) from the in-memory copy
2. Persist medications + history + meta in a single store write
3. Only after a successful write, replace the coordinator's in-memory list

A failed write raises StoreUnavailableError and leaves memory untouched, so
the user-visible action fails instead of being silently lost.

Signals Emitted:
- SIGNAL_SUFFIX_MEDICATIONS_CHANGED: After every successful write
- SIGNAL_SUFFIX_MEDICATION_DELETED: After a medication is removed
- SIGNAL_SUFFIX_DOSE_TOGGLED: After a taken flag flips
- SIGNAL_SUFFIX_DOSE_DELAYED: After a dose is delayed
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any
import uuid

from homeassistant.util import dt as dt_util

from .. import const
from ..engines import HistoryEngine, RolloverEngine
from ..exceptions import MissingMedicationError, StoreUnavailableError
from ..models import (
    CyclicDosing,
    DailyVariableDosing,
    FixedDosing,
    InvalidPolicyConfiguration,
    Medication,
    ScheduledTime,
)
from ..utils.dt_utils import dt_to_iso, parse_time_of_day, to_local_date
from ..utils.math_utils import parse_dose_sequence
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Mapping

    from homeassistant.core import HomeAssistant

    from ..coordinator import MedReminderCoordinator
    from ..engines import RolloverResult
    from ..models import DosingPolicy, HistoryRecord


def _days_to_flags(days: Any) -> tuple[bool, ...] | None:
    """Convert weekday numbers (0 = Sunday) or 7 flags into 7 weekday flags."""
    if days is None:
        return None
    values = list(days)
    if len(values) == const.DAYS_PER_WEEK and all(
        isinstance(value, bool) for value in values
    ):
        return tuple(values)
    selected: set[int] = set()
    for value in values:
        try:
            day = int(value)
        except (TypeError, ValueError) as err:
            raise InvalidPolicyConfiguration(
                f"Invalid weekday {value!r}", const.FIELD_DAYS_OF_WEEK
            ) from err
        if not 0 <= day < const.DAYS_PER_WEEK:
            raise InvalidPolicyConfiguration(
                f"Weekday {day} out of range 0-6", const.FIELD_DAYS_OF_WEEK
            )
        selected.add(day)
    return tuple(day in selected for day in range(const.DAYS_PER_WEEK))


class MedicationManager(BaseManager):
    """Manager for medication CRUD, dose toggling, delays and the rollover."""

    def __init__(
        self, hass: HomeAssistant, coordinator: MedReminderCoordinator
    ) -> None:
        """Initialize medication manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator owning the store and in-memory list
        """
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """No subscriptions; actions are invoked by services and SystemManager."""
        const.LOGGER.debug(
            "MedicationManager initialized with %s medications for entry %s",
            len(self.coordinator.medications),
            self.entry_id,
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_medication(self, medication_id: str) -> Medication:
        """Return a medication by id.

        Raises:
            MissingMedicationError: If no medication has that id.
        """
        for medication in self.coordinator.medications:
            if medication.id == medication_id:
                return medication
        raise MissingMedicationError(medication_id)

    @staticmethod
    def _scheduled_or_raise(medication: Medication, time_index: int) -> ScheduledTime:
        try:
            return medication.time_at(time_index)
        except IndexError as err:
            raise InvalidPolicyConfiguration(
                str(err), const.FIELD_TIME_INDEX
            ) from err

    def _replaced(self, updated: Medication) -> list[Medication]:
        return [
            updated if medication.id == updated.id else medication
            for medication in self.coordinator.medications
        ]

    # =========================================================================
    # Building medications from service data
    # =========================================================================

    @staticmethod
    def build_dosing(
        data: Mapping[str, Any],
        base_dose: float,
        previous: DosingPolicy | None = None,
    ) -> DosingPolicy:
        """Build the dosing policy described by service data.

        When the type is omitted the previous policy is kept (or Fixed for a
        new medication). Editing a cyclic policy keeps its current_position
        unless a new position is supplied.
        """
        kind = data.get(const.FIELD_DOSING_TYPE)
        if kind is None:
            if previous is None or isinstance(previous, FixedDosing):
                return FixedDosing(base_dose)
            kind = (
                const.DOSING_CYCLIC
                if isinstance(previous, CyclicDosing)
                else const.DOSING_DAILY_VARIABLE
            )

        if kind == const.DOSING_FIXED:
            return FixedDosing(base_dose)

        if kind == const.DOSING_DAILY_VARIABLE:
            amounts = data.get(const.FIELD_DAILY_DOSES)
            if amounts is None and isinstance(previous, DailyVariableDosing):
                return previous
            return DailyVariableDosing(dict(amounts or {}))

        if kind == const.DOSING_CYCLIC:
            old = previous if isinstance(previous, CyclicDosing) else None
            raw_sequence = data.get(const.FIELD_CYCLE_SEQUENCE)
            sequence = (
                parse_dose_sequence(raw_sequence)
                if raw_sequence is not None
                else list(old.sequence if old else ())
            )
            start_date = data.get(const.FIELD_CYCLE_START_DATE) or (
                old.start_date if old else to_local_date(dt_util.now())
            )
            position = data.get(const.FIELD_CYCLE_POSITION)
            if position is None:
                position = old.current_position if old else 0
            return CyclicDosing(
                sequence=tuple(sequence),
                start_date=start_date,
                current_position=position,
            )

        raise InvalidPolicyConfiguration(
            f"Unknown dosing type {kind!r}", const.FIELD_DOSING_TYPE
        )

    @staticmethod
    def build_medication(
        medication_id: str,
        data: Mapping[str, Any],
        previous: Medication | None = None,
    ) -> Medication:
        """Build and validate a medication from service data.

        Fields missing from `data` are taken from `previous`. A scheduled
        time keeps today's state only when its HH:MM is unchanged at the
        same index.
        """
        base_dose = data.get(
            const.FIELD_DOSE, previous.dose if previous else None
        )
        if base_dose is None:
            raise InvalidPolicyConfiguration("Dose is required", const.FIELD_DOSE)

        raw_times = data.get(const.FIELD_TIMES)
        if raw_times is None:
            times = previous.times if previous else ()
        else:
            new_times: list[ScheduledTime] = []
            for index, raw in enumerate(raw_times):
                try:
                    time_of_day = parse_time_of_day(raw)
                except ValueError as err:
                    raise InvalidPolicyConfiguration(
                        str(err), const.FIELD_TIMES
                    ) from err
                old = (
                    previous.times[index]
                    if previous and index < len(previous.times)
                    else None
                )
                if old is not None and old.time_of_day == time_of_day:
                    new_times.append(old)
                else:
                    new_times.append(ScheduledTime(time_of_day=time_of_day))
            times = tuple(new_times)

        frequency = data.get(
            const.FIELD_FREQUENCY,
            previous.frequency if previous else const.FREQUENCY_DAILY,
        )
        if const.FIELD_DAYS_OF_WEEK in data:
            days = _days_to_flags(data[const.FIELD_DAYS_OF_WEEK])
        else:
            days = previous.days_of_week if previous else None

        try:
            dose_value = float(base_dose)
        except (TypeError, ValueError) as err:
            raise InvalidPolicyConfiguration(
                f"Dose must be a number, got {base_dose!r}", const.FIELD_DOSE
            ) from err

        return Medication(
            id=medication_id,
            name=data.get(const.FIELD_NAME, previous.name if previous else ""),
            color=data.get(
                const.FIELD_COLOR, previous.color if previous else const.DEFAULT_COLOR
            ),
            dose=dose_value,
            frequency=frequency,
            days_of_week=days,
            times=tuple(times),
            dosing=MedicationManager.build_dosing(
                data, dose_value, previous.policy if previous else None
            ),
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _async_commit(
        self,
        medications: list[Medication],
        records: list[HistoryRecord] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """Persist medications (plus new history / meta) in one write.

        Stored records that failed validation at load are written back after
        the valid ones.

        Raises:
            StoreUnavailableError: The write failed; memory is unchanged.
        """
        store = self.coordinator.store
        values: dict[str, Any] = {
            const.DATA_MEDICATIONS: [m.as_dict() for m in medications]
            + self.coordinator.invalid_records,
        }
        if records:
            history = store.get(const.DATA_HISTORY) or []
            history.extend(record.as_dict() for record in records)
            values[const.DATA_HISTORY] = history
        if meta is not None:
            values[const.DATA_META] = meta

        if not await store.async_set_many(values):
            const.LOGGER.warning(
                "Medication change not applied: storage write failed for entry %s",
                self.entry_id,
            )
            raise StoreUnavailableError

        self.coordinator.async_set_medications(medications)
        self.emit(const.SIGNAL_SUFFIX_MEDICATIONS_CHANGED, count=len(medications))

    # =========================================================================
    # Actions
    # =========================================================================

    async def async_add_medication(self, data: Mapping[str, Any]) -> Medication:
        """Validate and add a new medication with a fresh id."""
        medication = self.build_medication(uuid.uuid4().hex, data)
        await self._async_commit([*self.coordinator.medications, medication])
        const.LOGGER.info("Added medication '%s' (%s)", medication.name, medication.id)
        return medication

    async def async_update_medication(
        self, medication_id: str, data: Mapping[str, Any]
    ) -> Medication:
        """Replace a medication's configuration, keeping unchanged state."""
        previous = self.get_medication(medication_id)
        updated = self.build_medication(medication_id, data, previous)
        await self._async_commit(self._replaced(updated))
        const.LOGGER.info("Updated medication '%s' (%s)", updated.name, updated.id)
        return updated

    async def async_remove_medication(self, medication_id: str) -> None:
        """Delete a medication. Its history records are kept."""
        medication = self.get_medication(medication_id)
        remaining = [m for m in self.coordinator.medications if m.id != medication_id]
        await self._async_commit(remaining)
        self.emit(const.SIGNAL_SUFFIX_MEDICATION_DELETED, medication_id=medication_id)
        const.LOGGER.info(
            "Removed medication '%s' (%s)", medication.name, medication_id
        )

    async def async_toggle_taken(
        self, medication_id: str, time_index: int
    ) -> Medication:
        """Flip the taken flag of one scheduled time and log the action.

        Un-marking is logged too, with taken=False.
        """
        now = dt_util.now()
        medication = self.get_medication(medication_id)
        scheduled = self._scheduled_or_raise(medication, time_index)
        toggled = scheduled.with_state(taken=not scheduled.taken)
        updated = medication.with_time(time_index, toggled)
        record = HistoryEngine.record_event(
            updated,
            time_index,
            toggled.taken,
            scheduled.label,
            actual=now,
            now=now,
        )
        await self._async_commit(self._replaced(updated), [record])
        self.emit(
            const.SIGNAL_SUFFIX_DOSE_TOGGLED,
            medication_id=medication_id,
            time_index=time_index,
            taken=toggled.taken,
        )
        return updated

    async def async_delay_dose(
        self,
        medication_id: str,
        time_index: int,
        minutes: int | None = None,
    ) -> Medication:
        """Push today's due instant of one scheduled time to now + minutes.

        Only an untaken dose can be delayed. The history record is logged as
        not taken with the delayed instant as its actual time.
        """
        if minutes is None:
            minutes = self.coordinator.delay_minutes
        if minutes <= 0:
            raise InvalidPolicyConfiguration(
                "Delay must be at least one minute", const.FIELD_MINUTES
            )
        now = dt_util.now()
        medication = self.get_medication(medication_id)
        scheduled = self._scheduled_or_raise(medication, time_index)
        if scheduled.taken:
            raise InvalidPolicyConfiguration(
                "A dose already taken cannot be delayed", const.FIELD_TIME_INDEX
            )
        delayed_until = now + timedelta(minutes=minutes)
        updated = medication.with_time(
            time_index, scheduled.with_state(delayed_until=delayed_until)
        )
        record = HistoryEngine.record_event(
            updated,
            time_index,
            False,
            scheduled.label,
            actual=delayed_until,
            now=now,
        )
        await self._async_commit(self._replaced(updated), [record])
        self.emit(
            const.SIGNAL_SUFFIX_DOSE_DELAYED,
            medication_id=medication_id,
            time_index=time_index,
            delayed_until=dt_to_iso(delayed_until),
        )
        return updated

    async def async_apply_rollover(
        self, now: datetime | None = None, *, catch_up: bool = False
    ) -> RolloverResult:
        """Clear today's state for every medication and stamp last_rollover.

        Writes no history.
        """
        now = now or dt_util.now()
        result = RolloverEngine.compute_rollover(self.coordinator.medications, now)
        meta = self.coordinator.store.get(const.DATA_META) or {}
        meta[const.DATA_META_SCHEMA_VERSION] = const.SCHEMA_VERSION
        meta[const.DATA_META_LAST_ROLLOVER] = dt_to_iso(now)
        await self._async_commit(result.medications, meta=meta)
        const.LOGGER.info(
            "Daily rollover applied%s: %s medications reset, next at %s",
            " (catch-up)" if catch_up else "",
            len(result.medications),
            result.next_rollover.isoformat(),
        )
        return result
