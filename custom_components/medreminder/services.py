# File: services.py
"""Defines custom services for the Medication Reminders integration.

These services are the user-facing actions (add / edit / remove medications,
mark a dose taken, delay it) plus read-only queries for history and today's
schedule. They can be called from scripts, automations or dashboards.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
    callback,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.util import dt as dt_util

from . import const
from .coordinator import MedReminderCoordinator
from .models import InvalidPolicyConfiguration

# --- Service Schemas ---
_WEEKDAY = vol.All(vol.Coerce(int), vol.Range(min=0, max=const.DAYS_PER_WEEK - 1))

_MEDICATION_FIELDS = {
    vol.Optional(const.FIELD_COLOR): cv.string,
    vol.Optional(const.FIELD_FREQUENCY): vol.In(const.FREQUENCY_OPTIONS),
    vol.Optional(const.FIELD_DAYS_OF_WEEK): vol.All(cv.ensure_list, [_WEEKDAY]),
    vol.Optional(const.FIELD_DOSING_TYPE): vol.In(const.DOSING_OPTIONS),
    vol.Optional(const.FIELD_DAILY_DOSES): vol.Schema(
        {_WEEKDAY: vol.Coerce(float)}
    ),
    vol.Optional(const.FIELD_CYCLE_SEQUENCE): vol.Any(
        cv.string, [vol.Coerce(float)]
    ),
    vol.Optional(const.FIELD_CYCLE_START_DATE): cv.date,
    vol.Optional(const.FIELD_CYCLE_POSITION): vol.All(
        vol.Coerce(int), vol.Range(min=0)
    ),
}

ADD_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_NAME): cv.string,
        vol.Required(const.FIELD_DOSE): vol.Coerce(float),
        vol.Required(const.FIELD_TIMES): vol.All(cv.ensure_list, [cv.string]),
        **_MEDICATION_FIELDS,
    }
)

UPDATE_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MEDICATION_ID): cv.string,
        vol.Optional(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_DOSE): vol.Coerce(float),
        vol.Optional(const.FIELD_TIMES): vol.All(cv.ensure_list, [cv.string]),
        **_MEDICATION_FIELDS,
    }
)

REMOVE_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MEDICATION_ID): cv.string,
    }
)

TOGGLE_TAKEN_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MEDICATION_ID): cv.string,
        vol.Required(const.FIELD_TIME_INDEX): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    }
)

DELAY_DOSE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MEDICATION_ID): cv.string,
        vol.Required(const.FIELD_TIME_INDEX): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(const.FIELD_MINUTES): vol.All(
            vol.Coerce(int),
            vol.Range(min=const.MIN_DELAY_MINUTES, max=const.MAX_DELAY_MINUTES),
        ),
    }
)

GET_HISTORY_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_DATE): cv.date,
        vol.Optional(const.FIELD_MEDICATION_ID): cv.string,
    }
)

EMPTY_SCHEMA = vol.Schema({})


def _get_coordinator(hass: HomeAssistant) -> MedReminderCoordinator:
    """Return the coordinator of the (single) loaded entry."""
    for entry_data in hass.data.get(const.DOMAIN, {}).values():
        return entry_data[const.COORDINATOR]
    raise HomeAssistantError(
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_ERROR_NO_ENTRY,
    )


def _invalid(err: InvalidPolicyConfiguration) -> ServiceValidationError:
    return ServiceValidationError(
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_ERROR_INVALID_CONFIGURATION,
        translation_placeholders={"error": str(err)},
    )


def _medication_data(call: ServiceCall) -> dict[str, Any]:
    return {
        key: value
        for key, value in call.data.items()
        if key != const.FIELD_MEDICATION_ID
    }


@callback
def async_setup_services(hass: HomeAssistant) -> None:
    """Register Medication Reminders services."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_ADD_MEDICATION):
        return

    async def handle_add_medication(call: ServiceCall) -> ServiceResponse:
        """Handle adding a medication."""
        coordinator = _get_coordinator(hass)
        try:
            medication = await coordinator.medication_manager.async_add_medication(
                _medication_data(call)
            )
        except InvalidPolicyConfiguration as err:
            raise _invalid(err) from err
        return {const.FIELD_MEDICATION_ID: medication.id}

    async def handle_update_medication(call: ServiceCall) -> None:
        """Handle editing a medication."""
        coordinator = _get_coordinator(hass)
        try:
            await coordinator.medication_manager.async_update_medication(
                call.data[const.FIELD_MEDICATION_ID], _medication_data(call)
            )
        except InvalidPolicyConfiguration as err:
            raise _invalid(err) from err

    async def handle_remove_medication(call: ServiceCall) -> None:
        """Handle deleting a medication."""
        coordinator = _get_coordinator(hass)
        await coordinator.medication_manager.async_remove_medication(
            call.data[const.FIELD_MEDICATION_ID]
        )

    async def handle_toggle_taken(call: ServiceCall) -> None:
        """Handle marking a dose taken (or un-marking it)."""
        coordinator = _get_coordinator(hass)
        try:
            await coordinator.medication_manager.async_toggle_taken(
                call.data[const.FIELD_MEDICATION_ID],
                call.data[const.FIELD_TIME_INDEX],
            )
        except InvalidPolicyConfiguration as err:
            raise _invalid(err) from err

    async def handle_delay_dose(call: ServiceCall) -> None:
        """Handle delaying a dose for today."""
        coordinator = _get_coordinator(hass)
        try:
            await coordinator.medication_manager.async_delay_dose(
                call.data[const.FIELD_MEDICATION_ID],
                call.data[const.FIELD_TIME_INDEX],
                call.data.get(const.FIELD_MINUTES),
            )
        except InvalidPolicyConfiguration as err:
            raise _invalid(err) from err

    async def handle_apply_rollover(call: ServiceCall) -> None:
        """Handle a manual daily reset."""
        coordinator = _get_coordinator(hass)
        await coordinator.system_manager.async_apply_rollover()

    async def handle_reschedule_reminders(call: ServiceCall) -> None:
        """Handle cancel-all-then-reschedule of every reminder."""
        coordinator = _get_coordinator(hass)
        count = coordinator.reminder_manager.async_sync(coordinator.medications)
        const.LOGGER.info("Rescheduled %s reminder triggers", count)

    async def handle_get_history(call: ServiceCall) -> ServiceResponse:
        """Return history records, newest first."""
        coordinator = _get_coordinator(hass)
        records = coordinator.history_records(call.data.get(const.FIELD_DATE))
        medication_id = call.data.get(const.FIELD_MEDICATION_ID)
        if medication_id:
            records = [r for r in records if r.medication_id == medication_id]
        return {const.RESPONSE_RECORDS: [record.as_dict() for record in records]}

    async def handle_get_today(call: ServiceCall) -> ServiceResponse:
        """Return every medication scheduled today with dose and statuses."""
        coordinator = _get_coordinator(hass)
        return {
            const.RESPONSE_MEDICATIONS: coordinator.today_overview(dt_util.now())
        }

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ADD_MEDICATION,
        handle_add_medication,
        schema=ADD_MEDICATION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_UPDATE_MEDICATION,
        handle_update_medication,
        schema=UPDATE_MEDICATION_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REMOVE_MEDICATION,
        handle_remove_medication,
        schema=REMOVE_MEDICATION_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_TOGGLE_TAKEN,
        handle_toggle_taken,
        schema=TOGGLE_TAKEN_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELAY_DOSE,
        handle_delay_dose,
        schema=DELAY_DOSE_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_APPLY_ROLLOVER,
        handle_apply_rollover,
        schema=EMPTY_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESCHEDULE_REMINDERS,
        handle_reschedule_reminders,
        schema=EMPTY_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_HISTORY,
        handle_get_history,
        schema=GET_HISTORY_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_TODAY,
        handle_get_today,
        schema=EMPTY_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    const.LOGGER.info("Medication Reminders services have been registered")


@callback
def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Medication Reminders services when unloading the integration."""
    for service in const.SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("Medication Reminders services have been unregistered")
