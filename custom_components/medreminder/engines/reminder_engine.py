"""Reminder Engine - Pure planning of recurring reminder triggers.

Derives the declarative trigger set for a medication:
- daily: one trigger per scheduled time, repeating every day
- custom: one trigger per (scheduled time × selected weekday)

Uses `dateutil.rrule` to answer "when does this trigger fire next".

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies. It never
talks to a notification service; ReminderManager applies the plan.

The plan is derived only from durable configuration (time of day, frequency,
weekday flags). Today's taken / delayed overrides never change it.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from dateutil.rrule import DAILY, WEEKLY, rrule

from .. import const
from ..models import TriggerDescriptor
from ..utils.dt_utils import as_local, python_weekday, start_of_local_day

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..models import Medication


class ReminderEngine:
    """Pure logic engine for reminder planning. All methods are static."""

    @staticmethod
    def identifier_prefix(medication_id: str) -> str:
        """Prefix shared by every trigger identifier of one medication."""
        return f"{medication_id}-"

    @staticmethod
    def build_identifier(
        medication_id: str, time_index: int, weekday: int | None = None
    ) -> str:
        """Build a stable trigger identifier.

        Examples:
            ("abc", 0) → "abc-0"
            ("abc", 1, 3) → "abc-1-3"
        """
        if weekday is None:
            return f"{medication_id}-{time_index}"
        return f"{medication_id}-{time_index}-{weekday}"

    @staticmethod
    def plan_triggers(
        medication: Medication,
        title: str = const.DEFAULT_REMINDER_TITLE,
        body_fmt: str = const.DEFAULT_REMINDER_BODY_FMT,
    ) -> list[TriggerDescriptor]:
        """Return every trigger the medication requires.

        Deterministic: the same medication always yields the same list in the
        same order (time index, then weekday).
        """
        body = body_fmt.format(name=medication.name)
        triggers: list[TriggerDescriptor] = []

        for index, scheduled in enumerate(medication.times):
            hour = scheduled.time_of_day.hour
            minute = scheduled.time_of_day.minute

            if medication.frequency == const.FREQUENCY_DAILY:
                triggers.append(
                    TriggerDescriptor(
                        identifier=ReminderEngine.build_identifier(
                            medication.id, index
                        ),
                        title=title,
                        body=body,
                        hour=hour,
                        minute=minute,
                        weekday=None,
                    )
                )
                continue

            for weekday, selected in enumerate(medication.days_of_week or ()):
                if not selected:
                    continue
                triggers.append(
                    TriggerDescriptor(
                        identifier=ReminderEngine.build_identifier(
                            medication.id, index, weekday
                        ),
                        title=title,
                        body=body,
                        hour=hour,
                        minute=minute,
                        weekday=weekday,
                    )
                )

        return triggers

    @staticmethod
    def plan_all(
        medications: Iterable[Medication],
        title: str = const.DEFAULT_REMINDER_TITLE,
        body_fmt: str = const.DEFAULT_REMINDER_BODY_FMT,
    ) -> list[TriggerDescriptor]:
        """Concatenate the plans of every medication."""
        triggers: list[TriggerDescriptor] = []
        for medication in medications:
            triggers.extend(
                ReminderEngine.plan_triggers(medication, title=title, body_fmt=body_fmt)
            )
        return triggers

    @staticmethod
    def fires_on(descriptor: TriggerDescriptor, moment: datetime) -> bool:
        """Return True if a trigger applies on the local day of `moment`."""
        if descriptor.weekday is None:
            return True
        return as_local(moment).weekday() == python_weekday(descriptor.weekday)

    @staticmethod
    def next_fire(descriptor: TriggerDescriptor, after: datetime) -> datetime | None:
        """Return the first local fire time strictly after `after`.

        Examples:
            daily 08:00, after Mon 09:00 → Tue 08:00
            Wednesday 08:00, after Mon 09:00 → Wed 08:00
        """
        after_local = as_local(after)
        rule = rrule(
            WEEKLY if descriptor.weekday is not None else DAILY,
            dtstart=start_of_local_day(after_local),
            byweekday=(
                python_weekday(descriptor.weekday)
                if descriptor.weekday is not None
                else None
            ),
            byhour=descriptor.hour,
            byminute=descriptor.minute,
            bysecond=0,
        )
        return rule.after(after_local, inc=False)

    @staticmethod
    def next_fire_for_time(
        medication: Medication, time_index: int, after: datetime
    ) -> datetime | None:
        """Earliest upcoming reminder for one scheduled time of a medication."""
        base = ReminderEngine.build_identifier(medication.id, time_index)
        candidates: list[datetime] = []
        for trigger in ReminderEngine.plan_triggers(medication):
            if trigger.identifier != base and not trigger.identifier.startswith(
                f"{base}-"
            ):
                continue
            fire = ReminderEngine.next_fire(trigger, after)
            if fire is not None:
                candidates.append(fire)
        return min(candidates) if candidates else None
