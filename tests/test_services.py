"""Service tests for Medication Reminders.

Frozen at Monday 2024-01-01 10:00 in the HA test timezone. The scenario has:
- Aspirin: daily, fixed 1, at 08:00 and 20:00
- Vitamin D: Mon/Wed/Fri, 2 on Monday and 4 on Wednesday
- Prednisone: daily, cycle [5, 5, 2.5] from 2024-01-01
"""

# pylint: disable=redefined-outer-name

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import patch
from zoneinfo import ZoneInfo

from freezegun.api import FrozenDateTimeFactory
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ServiceValidationError
from homeassistant.util import dt as dt_util
import pytest

from custom_components.medreminder import const
from custom_components.medreminder.exceptions import (
    MissingMedicationError,
    StoreUnavailableError,
)
from tests.helpers import SetupResult, setup_from_yaml, stored_data

SCENARIO = "scenario_medications.yaml"


async def _call(
    hass: HomeAssistant,
    service: str,
    data: dict[str, Any] | None = None,
    return_response: bool = False,
) -> Any:
    return await hass.services.async_call(
        const.DOMAIN,
        service,
        data or {},
        blocking=True,
        return_response=return_response,
    )


@pytest.fixture
def local_tz(hass: HomeAssistant) -> ZoneInfo:
    return ZoneInfo(hass.config.time_zone)


@pytest.fixture
async def scenario(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    freezer: FrozenDateTimeFactory,
    local_tz: ZoneInfo,
) -> SetupResult:
    """Scenario loaded on Monday morning."""
    freezer.move_to(datetime(2024, 1, 1, 10, 0, tzinfo=local_tz))
    return await setup_from_yaml(hass, hass_storage, SCENARIO)


def _medication(result: SetupResult, medication_id: str):
    return result.coordinator.medication_manager.get_medication(medication_id)


# =============================================================================
# Add / update / remove
# =============================================================================


async def test_add_medication_returns_id_and_persists(
    hass: HomeAssistant, hass_storage: dict[str, Any], scenario: SetupResult
) -> None:
    """Adding a medication stores it and returns its new id."""
    response = await _call(
        hass,
        const.SERVICE_ADD_MEDICATION,
        {
            const.FIELD_NAME: "Metformin",
            const.FIELD_DOSE: 500,
            const.FIELD_TIMES: ["07:00", "19:00"],
        },
        return_response=True,
    )

    medication_id = response[const.FIELD_MEDICATION_ID]
    medication = _medication(scenario, medication_id)
    assert medication.name == "Metformin"
    assert [t.label for t in medication.times] == ["07:00", "19:00"]
    stored_ids = [
        item[const.DATA_MEDICATION_ID]
        for item in stored_data(hass_storage)[const.DATA_MEDICATIONS]
    ]
    assert stored_ids[-1] == medication_id


async def test_add_cyclic_medication_from_text_sequence(
    hass: HomeAssistant, scenario: SetupResult, freezer: FrozenDateTimeFactory
) -> None:
    """A comma separated sequence is parsed and anchored to its start date."""
    response = await _call(
        hass,
        const.SERVICE_ADD_MEDICATION,
        {
            const.FIELD_NAME: "Warfarin",
            const.FIELD_DOSE: 1,
            const.FIELD_TIMES: ["18:00"],
            const.FIELD_DOSING_TYPE: const.DOSING_CYCLIC,
            const.FIELD_CYCLE_SEQUENCE: "1, 1.5",
            const.FIELD_CYCLE_START_DATE: "2024-01-01",
        },
        return_response=True,
    )
    medication_id = response[const.FIELD_MEDICATION_ID]

    def _dose_today(today: dict[str, Any]) -> float:
        (entry,) = [
            item
            for item in today[const.RESPONSE_MEDICATIONS]
            if item[const.ATTR_MEDICATION_ID] == medication_id
        ]
        return entry[const.DATA_MEDICATION_DOSE]

    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    assert _dose_today(today) == 1.0

    freezer.tick(timedelta(days=1))
    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    assert _dose_today(today) == 1.5


async def test_add_custom_medication_without_days_is_rejected(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    """Custom frequency with no weekday fails validation and stores nothing."""
    before = len(scenario.coordinator.medications)
    with pytest.raises(ServiceValidationError):
        await _call(
            hass,
            const.SERVICE_ADD_MEDICATION,
            {
                const.FIELD_NAME: "Iron",
                const.FIELD_DOSE: 1,
                const.FIELD_TIMES: ["08:00"],
                const.FIELD_FREQUENCY: const.FREQUENCY_CUSTOM,
                const.FIELD_DAYS_OF_WEEK: [],
            },
        )
    assert len(scenario.coordinator.medications) == before


async def test_add_medication_with_invalid_time_is_rejected(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    with pytest.raises(ServiceValidationError):
        await _call(
            hass,
            const.SERVICE_ADD_MEDICATION,
            {const.FIELD_NAME: "Iron", const.FIELD_DOSE: 1, const.FIELD_TIMES: ["25:00"]},
        )


async def test_update_keeps_state_of_unchanged_times(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    """A time whose HH:MM is unchanged keeps today's taken flag."""
    await _call(
        hass,
        const.SERVICE_TOGGLE_TAKEN,
        {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
    )
    await _call(
        hass,
        const.SERVICE_UPDATE_MEDICATION,
        {
            const.FIELD_MEDICATION_ID: "aspirin",
            const.FIELD_DOSE: 2,
            const.FIELD_TIMES: ["08:00", "21:00"],
        },
    )

    medication = _medication(scenario, "aspirin")
    assert medication.dose == 2.0
    assert medication.name == "Aspirin"
    assert medication.times[0].taken
    assert medication.times[1].label == "21:00"
    assert not medication.times[1].taken


async def test_update_cyclic_keeps_position_and_start(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    """Replacing the sequence alone keeps the start date and position."""
    await _call(
        hass,
        const.SERVICE_UPDATE_MEDICATION,
        {const.FIELD_MEDICATION_ID: "prednisone", const.FIELD_CYCLE_SEQUENCE: [10, 5]},
    )
    policy = _medication(scenario, "prednisone").policy
    assert policy.sequence == (10.0, 5.0)
    assert policy.start_date.isoformat() == "2024-01-01"
    assert policy.current_position == 0


async def test_update_unknown_medication_raises(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    with pytest.raises(MissingMedicationError):
        await _call(
            hass,
            const.SERVICE_UPDATE_MEDICATION,
            {const.FIELD_MEDICATION_ID: "nope", const.FIELD_DOSE: 1},
        )


async def test_remove_medication_keeps_history(
    hass: HomeAssistant, hass_storage: dict[str, Any], scenario: SetupResult
) -> None:
    """Removing a medication deletes it but leaves its history records."""
    await _call(
        hass,
        const.SERVICE_TOGGLE_TAKEN,
        {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
    )
    await _call(
        hass, const.SERVICE_REMOVE_MEDICATION, {const.FIELD_MEDICATION_ID: "aspirin"}
    )

    assert "aspirin" not in [m.id for m in scenario.coordinator.medications]
    data = stored_data(hass_storage)
    assert "aspirin" not in [m[const.DATA_MEDICATION_ID] for m in data[const.DATA_MEDICATIONS]]
    assert len(data[const.DATA_HISTORY]) == 1


# =============================================================================
# Toggle / delay
# =============================================================================


async def test_toggle_taken_logs_history_both_ways(
    hass: HomeAssistant, scenario: SetupResult, freezer: FrozenDateTimeFactory
) -> None:
    """Marking and un-marking both write a record, newest first."""
    target = {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0}
    await _call(hass, const.SERVICE_TOGGLE_TAKEN, target)
    assert _medication(scenario, "aspirin").times[0].taken

    freezer.tick(timedelta(minutes=1))
    await _call(hass, const.SERVICE_TOGGLE_TAKEN, target)
    assert not _medication(scenario, "aspirin").times[0].taken

    response = await _call(hass, const.SERVICE_GET_HISTORY, return_response=True)
    records = response[const.RESPONSE_RECORDS]
    assert [r[const.DATA_HISTORY_TAKEN] for r in records] == [False, True]
    assert records[0][const.DATA_HISTORY_TIME] == "08:00"
    assert records[0][const.DATA_HISTORY_MEDICATION][const.DATA_MEDICATION_NAME] == (
        "Aspirin"
    )


async def test_toggle_invalid_time_index_is_rejected(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    with pytest.raises(ServiceValidationError):
        await _call(
            hass,
            const.SERVICE_TOGGLE_TAKEN,
            {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 5},
        )


async def test_toggle_unknown_medication_raises(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    with pytest.raises(MissingMedicationError):
        await _call(
            hass,
            const.SERVICE_TOGGLE_TAKEN,
            {const.FIELD_MEDICATION_ID: "nope", const.FIELD_TIME_INDEX: 0},
        )


async def test_delay_uses_configured_default(
    hass: HomeAssistant, scenario: SetupResult, local_tz: ZoneInfo
) -> None:
    """Without minutes the option default (60) applies; logged as not taken."""
    now = datetime(2024, 1, 1, 10, 0, tzinfo=local_tz)
    await _call(
        hass,
        const.SERVICE_DELAY_DOSE,
        {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
    )

    scheduled = _medication(scenario, "aspirin").times[0]
    assert scheduled.delayed_until == now + timedelta(minutes=60)

    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    aspirin = today[const.RESPONSE_MEDICATIONS][0]
    first_time = aspirin[const.ATTR_TIMES][0]
    assert first_time[const.ATTR_STATUS] == const.DOSE_STATUS_PENDING
    assert first_time[const.ATTR_DELAYED] is True

    history = await _call(hass, const.SERVICE_GET_HISTORY, return_response=True)
    (record,) = history[const.RESPONSE_RECORDS]
    assert record[const.DATA_HISTORY_TAKEN] is False
    assert dt_util.parse_datetime(record[const.DATA_HISTORY_ACTUAL_TIME]) == (
        now + timedelta(minutes=60)
    )


async def test_delay_with_explicit_minutes(
    hass: HomeAssistant, scenario: SetupResult, local_tz: ZoneInfo
) -> None:
    await _call(
        hass,
        const.SERVICE_DELAY_DOSE,
        {
            const.FIELD_MEDICATION_ID: "aspirin",
            const.FIELD_TIME_INDEX: 1,
            const.FIELD_MINUTES: 30,
        },
    )
    assert _medication(scenario, "aspirin").times[1].delayed_until == datetime(
        2024, 1, 1, 10, 30, tzinfo=local_tz
    )


async def test_delay_rejects_taken_dose(
    hass: HomeAssistant, hass_storage: dict[str, Any], scenario: SetupResult
) -> None:
    """A dose marked taken cannot be pushed back; nothing is stored."""
    target = {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0}
    await _call(hass, const.SERVICE_TOGGLE_TAKEN, target)

    with pytest.raises(ServiceValidationError):
        await _call(hass, const.SERVICE_DELAY_DOSE, target)

    scheduled = _medication(scenario, "aspirin").times[0]
    assert scheduled.taken
    assert scheduled.delayed_until is None
    history = stored_data(hass_storage)[const.DATA_HISTORY]
    assert [r[const.DATA_HISTORY_TAKEN] for r in history] == [True]


# =============================================================================
# Queries and maintenance
# =============================================================================


async def test_get_today_lists_scheduled_medications(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    """Monday: all three medications with their resolved doses."""
    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    doses = {
        item[const.ATTR_MEDICATION_ID]: item[const.DATA_MEDICATION_DOSE]
        for item in today[const.RESPONSE_MEDICATIONS]
    }
    assert doses == {"aspirin": 1.0, "vitamin_d": 2.0, "prednisone": 5.0}

    aspirin = today[const.RESPONSE_MEDICATIONS][0]
    assert [t[const.ATTR_STATUS] for t in aspirin[const.ATTR_TIMES]] == [
        const.DOSE_STATUS_PAST_DUE,
        const.DOSE_STATUS_PENDING,
    ]


async def test_get_today_skips_unscheduled_weekdays(
    hass: HomeAssistant, scenario: SetupResult, freezer: FrozenDateTimeFactory
) -> None:
    """Tuesday: no Vitamin D; Wednesday: Vitamin D 4 and Prednisone 2.5."""
    freezer.tick(timedelta(days=1))
    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    ids = [item[const.ATTR_MEDICATION_ID] for item in today[const.RESPONSE_MEDICATIONS]]
    assert ids == ["aspirin", "prednisone"]

    freezer.tick(timedelta(days=1))
    today = await _call(hass, const.SERVICE_GET_TODAY, return_response=True)
    doses = {
        item[const.ATTR_MEDICATION_ID]: item[const.DATA_MEDICATION_DOSE]
        for item in today[const.RESPONSE_MEDICATIONS]
    }
    assert doses == {"aspirin": 1.0, "vitamin_d": 4.0, "prednisone": 2.5}


async def test_get_history_filters(
    hass: HomeAssistant, scenario: SetupResult
) -> None:
    """History can be limited to a date and to one medication."""
    await _call(
        hass,
        const.SERVICE_TOGGLE_TAKEN,
        {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
    )
    await _call(
        hass,
        const.SERVICE_TOGGLE_TAKEN,
        {const.FIELD_MEDICATION_ID: "prednisone", const.FIELD_TIME_INDEX: 0},
    )

    on_day = await _call(
        hass,
        const.SERVICE_GET_HISTORY,
        {const.FIELD_DATE: "2024-01-01"},
        return_response=True,
    )
    assert len(on_day[const.RESPONSE_RECORDS]) == 2

    other_day = await _call(
        hass,
        const.SERVICE_GET_HISTORY,
        {const.FIELD_DATE: "2023-12-31"},
        return_response=True,
    )
    assert other_day[const.RESPONSE_RECORDS] == []

    only_prednisone = await _call(
        hass,
        const.SERVICE_GET_HISTORY,
        {const.FIELD_MEDICATION_ID: "prednisone"},
        return_response=True,
    )
    (record,) = only_prednisone[const.RESPONSE_RECORDS]
    assert record[const.DATA_HISTORY_MEDICATION][const.DATA_MEDICATION_ID] == (
        "prednisone"
    )


async def test_apply_rollover_service_clears_state_without_history(
    hass: HomeAssistant, hass_storage: dict[str, Any], scenario: SetupResult
) -> None:
    await _call(
        hass,
        const.SERVICE_TOGGLE_TAKEN,
        {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
    )
    await _call(hass, const.SERVICE_APPLY_ROLLOVER)

    assert not _medication(scenario, "aspirin").times[0].taken
    assert len(stored_data(hass_storage)[const.DATA_HISTORY]) == 1


async def test_failed_write_leaves_state_unchanged(
    hass: HomeAssistant, hass_storage: dict[str, Any], scenario: SetupResult
) -> None:
    """A store failure surfaces as an error; memory and storage are untouched."""
    with (
        patch(
            "homeassistant.helpers.storage.Store.async_save",
            side_effect=OSError("Disk full"),
        ),
        pytest.raises(StoreUnavailableError),
    ):
        await _call(
            hass,
            const.SERVICE_TOGGLE_TAKEN,
            {const.FIELD_MEDICATION_ID: "aspirin", const.FIELD_TIME_INDEX: 0},
        )

    assert not _medication(scenario, "aspirin").times[0].taken
    assert stored_data(hass_storage)[const.DATA_HISTORY] == []
