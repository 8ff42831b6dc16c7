# File: managers/reminder_manager.py
"""Reminder Manager - Notification backend for Medication Reminders.

Applies the trigger plan computed by ReminderEngine: every descriptor is armed
with `async_track_time_change` and delivers a notification when it fires.

Responsibilities:
- Keep exactly one armed listener per trigger identifier
- Resync the whole plan when medications change or the day rolls over
- Cancel a medication's triggers when it is deleted
- Deliver via the configured notify service, falling back to a persistent
  notification when none is configured

Signals Consumed:
- SIGNAL_SUFFIX_MEDICATIONS_CHANGED: Full resync
- SIGNAL_SUFFIX_MEDICATION_DELETED: Cancel that medication's triggers
- SIGNAL_SUFFIX_ROLLOVER: Full resync
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.helpers.event import async_track_time_change

from .. import const
from ..engines import ReminderEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import MedReminderCoordinator
    from ..models import Medication, TriggerDescriptor


# =============================================================================
# Module-level helper for testability
# =============================================================================


async def async_send_notification(
    hass: HomeAssistant,
    service: str,
    title: str,
    message: str,
    extra_data: dict[str, Any] | None = None,
) -> None:
    """Send a notification via Home Assistant service call.

    Module-level so tests can patch it.

    Args:
        hass: Home Assistant instance
        service: Notification service as "notify.service_name" or just the name
        title: Notification title
        message: Notification message
        extra_data: Optional extra data (e.g., tag)
    """
    if "." in service:
        domain, svc = service.split(".", 1)
    else:
        domain = const.NOTIFY_DOMAIN
        svc = service

    payload: dict[str, Any] = {
        const.NOTIFY_TITLE: title,
        const.NOTIFY_MESSAGE: message,
    }
    if extra_data:
        payload[const.NOTIFY_DATA] = dict(extra_data)

    const.LOGGER.debug(
        "async_send_notification: %s.%s - title='%s', message='%s'",
        domain,
        svc,
        title,
        message,
    )
    await hass.services.async_call(domain, svc, payload, blocking=True)


class ReminderManager(BaseManager):
    """Manager owning the armed reminder listeners.

    Every scheduled descriptor maps to one `async_track_time_change`
    unsubscribe handle, keyed by the descriptor's identifier.
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: MedReminderCoordinator
    ) -> None:
        """Initialize reminder manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator for data access
        """
        super().__init__(hass, coordinator)
        self._scheduled: dict[str, CALLBACK_TYPE] = {}
        self._descriptors: dict[str, TriggerDescriptor] = {}

    async def async_setup(self) -> None:
        """Subscribe to medication lifecycle signals and arm the current plan."""
        self.listen(
            const.SIGNAL_SUFFIX_MEDICATIONS_CHANGED, self._handle_medications_changed
        )
        self.listen(
            const.SIGNAL_SUFFIX_MEDICATION_DELETED, self._handle_medication_deleted
        )
        self.listen(const.SIGNAL_SUFFIX_ROLLOVER, self._handle_rollover)
        self.coordinator.config_entry.async_on_unload(self.async_shutdown)

        count = self.async_sync(self.coordinator.medications)
        const.LOGGER.debug(
            "ReminderManager initialized with %s triggers for entry %s",
            count,
            self.entry_id,
        )

    # =========================================================================
    # Notification backend
    # =========================================================================

    @callback
    def schedule_if_absent(self, descriptor: TriggerDescriptor) -> bool:
        """Arm a trigger unless one with the same identifier is already armed.

        Returns:
            True if a new listener was armed, False if it already existed.
        """
        if descriptor.identifier in self._scheduled:
            return False

        @callback
        def _on_time(now: datetime) -> None:
            self._handle_trigger(descriptor, now)

        self._scheduled[descriptor.identifier] = async_track_time_change(
            self.hass,
            _on_time,
            hour=descriptor.hour,
            minute=descriptor.minute,
            second=0,
        )
        self._descriptors[descriptor.identifier] = descriptor
        return True

    @callback
    def cancel_all(self) -> bool:
        """Cancel every armed trigger. Always succeeds."""
        for unsub in self._scheduled.values():
            unsub()
        self._scheduled.clear()
        self._descriptors.clear()
        return True

    @callback
    def async_shutdown(self) -> None:
        """Disarm every trigger when the entry unloads."""
        self.cancel_all()

    @callback
    def list_scheduled(self) -> list[str]:
        """Identifiers of every armed trigger, sorted."""
        return sorted(self._scheduled)

    @callback
    def scheduled_descriptors(self) -> list[TriggerDescriptor]:
        """Armed descriptors in identifier order."""
        return [self._descriptors[key] for key in self.list_scheduled()]

    @callback
    def cancel_for_medication(self, medication_id: str) -> int:
        """Cancel every trigger of one medication.

        Returns:
            Number of cancelled triggers.
        """
        prefix = ReminderEngine.identifier_prefix(medication_id)
        matching = [key for key in self._scheduled if key.startswith(prefix)]
        for key in matching:
            self._scheduled.pop(key)()
            self._descriptors.pop(key, None)
        if matching:
            const.LOGGER.debug(
                "Cancelled %s reminder triggers for medication %s",
                len(matching),
                medication_id,
            )
        return len(matching)

    @callback
    def async_sync(self, medications: Iterable[Medication]) -> int:
        """Cancel everything, then arm the full plan for `medications`.

        Returns:
            Number of armed triggers.
        """
        self.cancel_all()
        plan = ReminderEngine.plan_all(
            medications, title=self.coordinator.reminder_title
        )
        for descriptor in plan:
            self.schedule_if_absent(descriptor)
        const.LOGGER.debug("Reminder plan synced: %s triggers", len(self._scheduled))
        return len(self._scheduled)

    # =========================================================================
    # Delivery
    # =========================================================================

    @callback
    def _handle_trigger(self, descriptor: TriggerDescriptor, now: datetime) -> None:
        """Deliver a reminder when its listener fires on a matching day."""
        if not ReminderEngine.fires_on(descriptor, now):
            return
        const.LOGGER.debug("Reminder trigger fired: %s", descriptor.identifier)
        self.hass.async_create_task(self._async_deliver(descriptor))

    async def _async_deliver(self, descriptor: TriggerDescriptor) -> None:
        """Send one reminder. Failures are logged, never raised."""
        notify_service = self.coordinator.notify_service
        try:
            if not notify_service:
                await self.send_persistent_notification(descriptor)
                return

            domain, _, service = notify_service.rpartition(".")
            domain = domain or const.NOTIFY_DOMAIN
            if not self.hass.services.has_service(domain, service):
                const.LOGGER.warning(
                    "Notification service '%s.%s' not available - skipping reminder "
                    "%s. Configure the service or clear it in the integration options",
                    domain,
                    service,
                    descriptor.identifier,
                )
                return

            await async_send_notification(
                self.hass,
                f"{domain}.{service}",
                descriptor.title,
                descriptor.body,
                extra_data={const.NOTIFY_TAG: descriptor.identifier},
            )
        except Exception as err:  # pylint: disable=broad-exception-caught
            # Broad exception allowed: fire-and-forget background task
            const.LOGGER.error(
                "Unexpected error delivering reminder %s: %s",
                descriptor.identifier,
                err,
            )

    async def send_persistent_notification(self, descriptor: TriggerDescriptor) -> None:
        """Show a reminder as a persistent notification in the HA frontend."""
        await self.hass.services.async_call(
            const.PERSISTENT_NOTIFICATION_DOMAIN,
            const.PERSISTENT_NOTIFICATION_CREATE,
            {
                const.NOTIFY_TITLE: descriptor.title,
                const.NOTIFY_MESSAGE: descriptor.body,
                const.PERSISTENT_NOTIFICATION_ID: (
                    f"{const.DOMAIN}_{descriptor.identifier}"
                ),
            },
            blocking=True,
        )

    # =========================================================================
    # Signal Handlers
    # =========================================================================

    @callback
    def _handle_medications_changed(self, payload: dict[str, Any]) -> None:
        """Re-plan after any add, edit or state change."""
        self.async_sync(self.coordinator.medications)

    @callback
    def _handle_medication_deleted(self, payload: dict[str, Any]) -> None:
        medication_id = payload.get("medication_id", "")
        if medication_id:
            self.cancel_for_medication(medication_id)

    @callback
    def _handle_rollover(self, payload: dict[str, Any]) -> None:
        """Re-arm the full plan for the new day."""
        self.async_sync(self.coordinator.medications)
