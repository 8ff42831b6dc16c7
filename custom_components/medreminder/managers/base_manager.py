"""Shared plumbing for the Medication Reminders managers.

Managers talk to each other only through dispatcher signals scoped to one
config entry, so two entries (or a reloaded entry) never see each other's
medication events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import MedReminderCoordinator


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Dispatcher signal name for one entry: 'medreminder_{entry_id}_{suffix}'."""
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


class BaseManager(ABC):
    """Manager owned by the coordinator.

    `emit` broadcasts a medication event, `listen` subscribes to one. Every
    subscription is released through `config_entry.async_on_unload`.
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: MedReminderCoordinator
    ) -> None:
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def signal(self, suffix: str) -> str:
        return get_event_signal(self.entry_id, suffix)

    def emit(self, suffix: str, **payload: Any) -> None:
        """Broadcast `payload` to the listeners of this entry.

        Only call after the change is persisted.

        Example:
            self.emit(const.SIGNAL_SUFFIX_MEDICATION_DELETED, medication_id="abc")
        """
        const.LOGGER.debug(
            "%s: emit '%s' (%s)",
            self.__class__.__name__,
            suffix,
            ", ".join(sorted(payload)),
        )
        # Dispatcher forwards positional args only
        async_dispatcher_send(self.hass, self.signal(suffix), payload)

    def listen(self, suffix: str, handler: Callable[[dict[str, Any]], Any]) -> None:
        """Call `handler(payload)` for every `suffix` event until unload."""
        self.coordinator.config_entry.async_on_unload(
            async_dispatcher_connect(self.hass, self.signal(suffix), handler)
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Subscribe to signals and arm timers. Called once by the coordinator."""
