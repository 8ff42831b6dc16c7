"""Tests for ReminderEngine - trigger planning and next-fire math.

2024-01-01 is a Monday (weekday 1 with Sunday = 0).
"""

from __future__ import annotations

from datetime import UTC, datetime, time

from custom_components.medreminder import const
from custom_components.medreminder.engines import ReminderEngine
from custom_components.medreminder.models import (
    Medication,
    ScheduledTime,
    TriggerDescriptor,
)

MON_WED = (False, True, False, True, False, False, False)


def _daily(times: tuple[time, ...] = (time(8, 0),)) -> Medication:
    return Medication(
        id="med1",
        name="Aspirin",
        dose=1,
        times=tuple(ScheduledTime(t) for t in times),
    )


def _custom(
    days: tuple[bool, ...] = MON_WED, times: tuple[time, ...] = (time(8, 0),)
) -> Medication:
    return Medication(
        id="med2",
        name="Vitamin D",
        dose=1,
        frequency=const.FREQUENCY_CUSTOM,
        days_of_week=days,
        times=tuple(ScheduledTime(t) for t in times),
    )


def _descriptor(weekday: int | None = None) -> TriggerDescriptor:
    return TriggerDescriptor(
        identifier="med1-0",
        title="Medicine Reminder",
        body="Time to take your Aspirin",
        hour=8,
        minute=0,
        weekday=weekday,
    )


class TestPlanTriggers:
    """Trigger derivation."""

    def test_daily_one_trigger_per_time(self) -> None:
        triggers = ReminderEngine.plan_triggers(_daily((time(8, 0), time(20, 30))))
        assert [t.identifier for t in triggers] == ["med1-0", "med1-1"]
        assert [(t.hour, t.minute, t.weekday) for t in triggers] == [
            (8, 0, None),
            (20, 30, None),
        ]
        assert triggers[0].title == const.DEFAULT_REMINDER_TITLE
        assert triggers[0].body == "Time to take your Aspirin"

    def test_custom_one_trigger_per_time_and_weekday(self) -> None:
        triggers = ReminderEngine.plan_triggers(
            _custom(times=(time(8, 0), time(21, 0)))
        )
        assert [t.identifier for t in triggers] == [
            "med2-0-1",
            "med2-0-3",
            "med2-1-1",
            "med2-1-3",
        ]
        assert {t.weekday for t in triggers} == {1, 3}

    def test_plan_is_deterministic(self) -> None:
        medication = _custom()
        assert ReminderEngine.plan_triggers(medication) == ReminderEngine.plan_triggers(
            medication
        )

    def test_todays_state_does_not_change_the_plan(self) -> None:
        medication = _daily()
        marked = medication.with_time(
            0,
            medication.times[0].with_state(
                taken=True, delayed_until=datetime(2024, 1, 1, 9, tzinfo=UTC)
            ),
        )
        assert ReminderEngine.plan_triggers(marked) == ReminderEngine.plan_triggers(
            medication
        )

    def test_custom_title_and_body(self) -> None:
        triggers = ReminderEngine.plan_triggers(
            _daily(), title="Pills", body_fmt="{name} now"
        )
        assert triggers[0].title == "Pills"
        assert triggers[0].body == "Aspirin now"

    def test_plan_all_concatenates(self) -> None:
        triggers = ReminderEngine.plan_all([_daily(), _custom()])
        assert [t.identifier for t in triggers] == ["med1-0", "med2-0-1", "med2-0-3"]

    def test_identifier_prefix_does_not_match_longer_ids(self) -> None:
        """The prefix of med1 never matches a trigger of med10."""
        prefix = ReminderEngine.identifier_prefix("med1")
        assert "med1-0".startswith(prefix)
        assert not "med10-0".startswith(prefix)


class TestFiring:
    """fires_on / next_fire."""

    def test_daily_trigger_fires_every_day(self) -> None:
        assert ReminderEngine.fires_on(_descriptor(), datetime(2024, 1, 2, tzinfo=UTC))

    def test_weekday_trigger_only_fires_on_its_weekday(self) -> None:
        monday = _descriptor(weekday=1)
        assert ReminderEngine.fires_on(monday, datetime(2024, 1, 1, 8, tzinfo=UTC))
        assert not ReminderEngine.fires_on(monday, datetime(2024, 1, 2, 8, tzinfo=UTC))

    def test_next_fire_later_today(self) -> None:
        after = datetime(2024, 1, 1, 7, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire(_descriptor(), after) == datetime(
            2024, 1, 1, 8, 0, tzinfo=UTC
        )

    def test_next_fire_tomorrow_once_passed(self) -> None:
        after = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire(_descriptor(), after) == datetime(
            2024, 1, 2, 8, 0, tzinfo=UTC
        )

    def test_next_fire_is_strictly_after(self) -> None:
        after = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire(_descriptor(), after) == datetime(
            2024, 1, 2, 8, 0, tzinfo=UTC
        )

    def test_next_fire_weekly(self) -> None:
        """Wednesday trigger seen from Monday 09:00 → Wednesday 08:00."""
        after = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire(_descriptor(weekday=3), after) == datetime(
            2024, 1, 3, 8, 0, tzinfo=UTC
        )

    def test_next_fire_for_time_picks_earliest_weekday(self) -> None:
        """Mon/Wed at 08:00 seen from Tuesday → Wednesday."""
        after = datetime(2024, 1, 2, 12, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire_for_time(_custom(), 0, after) == datetime(
            2024, 1, 3, 8, 0, tzinfo=UTC
        )

    def test_next_fire_for_time_ignores_other_times(self) -> None:
        medication = _daily((time(8, 0), time(20, 0)))
        after = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
        assert ReminderEngine.next_fire_for_time(medication, 1, after) == datetime(
            2024, 1, 1, 20, 0, tzinfo=UTC
        )
