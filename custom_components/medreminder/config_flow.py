# File: config_flow.py
"""Config flow for the Medication Reminders integration.

Single instance. The setup step and the options flow share one schema:
notify service, default delay and reminder title. Medications themselves are
managed through services and live in storage, not in the config entry.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import selector

from . import const


def _get_notify_services(hass: HomeAssistant) -> list[dict[str, str]]:
    """Return every notify.* service as selector options."""
    services_list = []
    all_services = hass.services.async_services()
    if const.NOTIFY_DOMAIN in all_services:
        for service_name in all_services[const.NOTIFY_DOMAIN]:
            fullname = f"{const.NOTIFY_DOMAIN}.{service_name}"
            services_list.append({"value": fullname, "label": fullname})
    return services_list


def build_options_schema(
    hass: HomeAssistant, defaults: dict[str, Any] | None = None
) -> vol.Schema:
    """Build the options schema, pre-filled with `defaults`."""
    defaults = defaults or {}
    notify_options = [
        {"value": const.CONF_EMPTY, "label": const.LABEL_NONE}
    ] + _get_notify_services(hass)

    return vol.Schema(
        {
            vol.Optional(
                const.CONF_NOTIFY_SERVICE,
                default=defaults.get(
                    const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
                ),
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=notify_options,
                    mode=selector.SelectSelectorMode.DROPDOWN,
                    custom_value=True,
                    multiple=False,
                )
            ),
            vol.Required(
                const.CONF_DELAY_MINUTES,
                default=defaults.get(
                    const.CONF_DELAY_MINUTES, const.DEFAULT_DELAY_MINUTES
                ),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=const.MIN_DELAY_MINUTES,
                    max=const.MAX_DELAY_MINUTES,
                    step=1,
                    mode=selector.NumberSelectorMode.BOX,
                    unit_of_measurement="min",
                )
            ),
            vol.Required(
                const.CONF_REMINDER_TITLE,
                default=defaults.get(
                    const.CONF_REMINDER_TITLE, const.DEFAULT_REMINDER_TITLE
                ),
            ): str,
        }
    )


def validate_options(hass: HomeAssistant, user_input: dict[str, Any]) -> dict[str, str]:
    """Return form errors for the submitted options."""
    errors: dict[str, str] = {}
    notify_service = user_input.get(const.CONF_NOTIFY_SERVICE) or const.CONF_EMPTY
    if notify_service:
        domain, _, service = notify_service.rpartition(".")
        if not hass.services.has_service(domain or const.NOTIFY_DOMAIN, service):
            errors[const.CONF_NOTIFY_SERVICE] = (
                const.TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE
            )
    return errors


def normalize_options(user_input: dict[str, Any]) -> dict[str, Any]:
    """Coerce submitted options to their stored types."""
    return {
        const.CONF_NOTIFY_SERVICE: user_input.get(const.CONF_NOTIFY_SERVICE)
        or const.CONF_EMPTY,
        const.CONF_DELAY_MINUTES: int(
            user_input.get(const.CONF_DELAY_MINUTES, const.DEFAULT_DELAY_MINUTES)
        ),
        const.CONF_REMINDER_TITLE: (
            user_input.get(const.CONF_REMINDER_TITLE) or const.DEFAULT_REMINDER_TITLE
        ).strip(),
    }


class MedReminderConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config flow for Medication Reminders."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Create the single entry."""
        if self._async_current_entries():
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = validate_options(self.hass, user_input)
            if not errors:
                return self.async_create_entry(
                    title=const.MEDREMINDER_TITLE,
                    data={},
                    options=normalize_options(user_input),
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=build_options_schema(self.hass, user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> MedReminderOptionsFlowHandler:
        """Return the Options Flow."""
        return MedReminderOptionsFlowHandler()


class MedReminderOptionsFlowHandler(config_entries.OptionsFlow):
    """Edit notify service, delay and reminder title.

    Saving reloads the entry through the update listener in __init__.py.
    """

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = validate_options(self.hass, user_input)
            if not errors:
                return self.async_create_entry(data=normalize_options(user_input))

        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=build_options_schema(
                self.hass, user_input or dict(self.config_entry.options)
            ),
            errors=errors,
        )
