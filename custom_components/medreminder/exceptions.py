"""Exceptions raised by the Medication Reminders integration."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError

from . import const


class StoreUnavailableError(HomeAssistantError):
    """The store rejected a write; in-memory state was left unchanged."""

    def __init__(self) -> None:
        """Initialize with the translated store-unavailable message."""
        super().__init__(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_STORE_UNAVAILABLE,
        )


class MissingMedicationError(HomeAssistantError):
    """No medication exists with the requested id."""

    def __init__(self, medication_id: str) -> None:
        """Initialize with the unknown medication id."""
        self.medication_id = medication_id
        super().__init__(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_MEDICATION_NOT_FOUND,
            translation_placeholders={"medication_id": medication_id},
        )
