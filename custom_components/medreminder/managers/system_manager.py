# File: managers/system_manager.py
"""System Manager for Medication Reminders.

The single timer owner for the daily reset.

Responsibilities:
- Arm exactly one point-in-time wait for the next local midnight
- On fire: apply the rollover, emit ROLLOVER, re-arm (even after a failure)
- On startup: catch up a missed rollover once, before arming
- On unload: cancel the pending wait

Signals Emitted:
- SIGNAL_SUFFIX_ROLLOVER: After each successful rollover (catch_up flag set at
  startup)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_point_in_time
from homeassistant.util import dt as dt_util

from .. import const
from ..engines import RolloverEngine
from ..utils.dt_utils import dt_parse
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import MedReminderCoordinator


class SystemManager(BaseManager):
    """System Manager - owns the rollover timer.

    There is never more than one pending wait: arming always cancels the
    previous unsubscribe handle first.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: MedReminderCoordinator,
    ) -> None:
        """Initialize system manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator
        """
        super().__init__(hass, coordinator)
        self._unsub_rollover: CALLBACK_TYPE | None = None
        self._next_rollover: datetime | None = None

    async def async_setup(self) -> None:
        """Catch up a missed rollover, then arm the midnight timer."""
        self.coordinator.config_entry.async_on_unload(self.async_cancel)

        await self._async_run_startup_catchup()
        self._arm(dt_util.now())

        const.LOGGER.debug(
            "SystemManager initialized: next rollover %s for entry %s",
            self._next_rollover,
            self.entry_id,
        )

    @property
    def next_rollover(self) -> datetime | None:
        """Instant of the pending rollover wait, None when disarmed."""
        return self._next_rollover

    @property
    def last_rollover(self) -> datetime | None:
        """Parsed `meta.last_rollover` stamp."""
        meta = self.coordinator.store.get(const.DATA_META) or {}
        raw_timestamp = meta.get(const.DATA_META_LAST_ROLLOVER)
        if raw_timestamp is None:
            return None
        parsed = dt_parse(raw_timestamp)
        if parsed is None:
            const.LOGGER.warning(
                "SystemManager: Invalid last_rollover timestamp '%s'", raw_timestamp
            )
        return parsed

    # =========================================================================
    # Timer
    # =========================================================================

    @callback
    def _arm(self, now: datetime) -> None:
        """Cancel any pending wait and arm one for the next local midnight."""
        self.async_cancel()
        self._next_rollover = RolloverEngine.next_rollover(now)
        self._unsub_rollover = async_track_point_in_time(
            self.hass, self._async_on_rollover, self._next_rollover
        )

    @callback
    def async_cancel(self) -> None:
        """Cancel the pending rollover wait, if any."""
        if self._unsub_rollover is not None:
            self._unsub_rollover()
            self._unsub_rollover = None
        self._next_rollover = None

    async def _async_on_rollover(self, fired_at: datetime) -> None:
        """Handle the midnight wait firing.

        Re-arming happens in `finally` so a failed store write never stops
        future resets; the stale last_rollover stamp lets the next startup
        repair the missed one.
        """
        # The wait has fired; its handle is no longer valid.
        self._unsub_rollover = None
        try:
            await self.async_apply_rollover(fired_at)
        except HomeAssistantError as err:
            const.LOGGER.error(
                "SystemManager: Daily rollover failed, will retry at next "
                "midnight or startup: %s",
                err,
            )
        finally:
            self._arm(fired_at)

    async def async_apply_rollover(
        self, now: datetime | None = None, *, catch_up: bool = False
    ) -> None:
        """Apply the rollover and notify listeners."""
        now = now or dt_util.now()
        await self.coordinator.medication_manager.async_apply_rollover(
            now, catch_up=catch_up
        )
        self.emit(const.SIGNAL_SUFFIX_ROLLOVER, catch_up=catch_up)

    async def _async_run_startup_catchup(self) -> None:
        """Apply one rollover on startup when today's reset has not run."""
        now = dt_util.now()
        last = self.last_rollover
        if not RolloverEngine.is_rollover_due(last, now):
            const.LOGGER.debug(
                "SystemManager: Rollover catch-up not needed (last_rollover=%s)",
                last.isoformat() if last else None,
            )
            return

        const.LOGGER.info(
            "SystemManager: Startup rollover catch-up triggered (last_rollover=%s)",
            last.isoformat() if last else "missing",
        )
        try:
            await self.async_apply_rollover(now, catch_up=True)
        except HomeAssistantError as err:
            const.LOGGER.error(
                "SystemManager: Startup rollover catch-up failed: %s", err
            )
