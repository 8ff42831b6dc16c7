"""Tests for DoseEngine - pure logic, no HA fixtures needed.

Dates used below: 2024-01-01 is a Monday, 2024-01-07 a Sunday.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from custom_components.medreminder import const
from custom_components.medreminder.engines import DoseEngine
from custom_components.medreminder.models import (
    CyclicDosing,
    DailyVariableDosing,
    FixedDosing,
    Medication,
    ScheduledTime,
)
from custom_components.medreminder.utils import dt_utils


def _medication(**overrides: Any) -> Medication:
    values: dict[str, Any] = {
        "id": "med1",
        "name": "Aspirin",
        "dose": 1.0,
        "times": (ScheduledTime(time(8, 0)),),
    }
    values.update(overrides)
    return Medication(**values)


# =============================================================================
# TEST: FIXED AND PER-WEEKDAY DOSING
# =============================================================================


class TestFixedAndDailyVariable:
    """Fixed and per-weekday dose resolution."""

    def test_fixed_returns_amount_every_day(self) -> None:
        policy = FixedDosing(2.5)
        for day in range(1, 8):
            assert DoseEngine.resolve_dose(policy, date(2024, 1, day), 1.0) == 2.5

    def test_daily_variable_uses_sunday_first_weekdays(self) -> None:
        """Key 0 is Sunday, key 3 is Wednesday."""
        policy = DailyVariableDosing({0: 2.0, 3: 1.5})
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 7), 1.0) == 2.0
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 3), 1.0) == 1.5

    def test_daily_variable_missing_weekday_falls_back_to_base(self) -> None:
        policy = DailyVariableDosing({0: 2.0})
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 1), 0.5) == 0.5

    def test_daily_variable_accepts_string_keys_from_storage(self) -> None:
        policy = DailyVariableDosing({"1": 3})
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 1), 1.0) == 3.0


# =============================================================================
# TEST: CYCLIC DOSING
# =============================================================================


class TestCyclicDosing:
    """Cyclic dose resolution anchored to a start date."""

    def test_sequence_advances_one_step_per_day(self) -> None:
        """[1, 1.5] from Jan 1: Jan 1 → 1, Jan 2 → 1.5, Jan 3 → 1."""
        policy = CyclicDosing(sequence=(1.0, 1.5), start_date=date(2024, 1, 1))
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 1), 9.0) == 1.0
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 2), 9.0) == 1.5
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 3), 9.0) == 1.0

    def test_sequence_amounts_keep_full_precision(self) -> None:
        """A 0.125 step resolves to 0.125, not a rounded value."""
        policy = CyclicDosing(sequence=(0.125, 1.0), start_date=date(2024, 1, 1))
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 1), 1.0) == 0.125
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 2), 1.0) == 1.0

    def test_current_position_offsets_the_cycle(self) -> None:
        policy = CyclicDosing(
            sequence=(1.0, 1.5, 2.0), start_date=date(2024, 1, 1), current_position=2
        )
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 1), 9.0) == 2.0
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 2), 9.0) == 1.0

    def test_before_start_date_uses_base_dose(self) -> None:
        policy = CyclicDosing(sequence=(1.0, 1.5), start_date=date(2024, 1, 10))
        assert DoseEngine.resolve_dose(policy, date(2024, 1, 9), 0.75) == 0.75
        assert DoseEngine.cycle_position(policy, date(2024, 1, 9)) is None

    def test_time_of_day_does_not_change_the_dose(self) -> None:
        """00:01 and 23:59 on the same day resolve identically."""
        policy = CyclicDosing(sequence=(1.0, 1.5), start_date=date(2024, 1, 1))
        early = datetime(2024, 1, 2, 0, 1, tzinfo=UTC)
        late = datetime(2024, 1, 2, 23, 59, tzinfo=UTC)
        assert DoseEngine.resolve_dose(policy, early, 9.0) == 1.5
        assert DoseEngine.resolve_dose(policy, late, 9.0) == 1.5

    def test_datetimes_are_normalized_to_the_local_date(self) -> None:
        """03:00 UTC on Jan 3 is still Jan 2 in New York."""
        dt_utils.set_default_timezone(ZoneInfo("America/New_York"))
        policy = CyclicDosing(sequence=(1.0, 1.5), start_date=date(2024, 1, 1))
        reference = datetime(2024, 1, 3, 3, 0, tzinfo=UTC)
        assert DoseEngine.days_since_start(policy, reference) == 1
        assert DoseEngine.resolve_dose(policy, reference, 9.0) == 1.5

    def test_long_running_cycle_wraps(self) -> None:
        policy = CyclicDosing(sequence=(5.0, 5.0, 2.5), start_date=date(2024, 1, 1))
        # 1000 days later: 1000 % 3 == 1
        assert DoseEngine.cycle_position(policy, date(2026, 9, 27)) == 1
        assert DoseEngine.resolve_dose(policy, date(2026, 9, 27), 9.0) == 5.0

    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            (date(2024, 1, 1), 5.0),
            (date(2024, 1, 2), 5.0),
            (date(2024, 1, 3), 2.5),
            (date(2024, 1, 4), 5.0),
        ],
    )
    def test_taper_pattern(self, reference: date, expected: float) -> None:
        policy = CyclicDosing(sequence=(5.0, 5.0, 2.5), start_date=date(2024, 1, 1))
        assert DoseEngine.resolve_dose(policy, reference, 9.0) == expected


# =============================================================================
# TEST: MEDICATION HELPERS
# =============================================================================


class TestMedicationHelpers:
    """dose_for / is_scheduled_on."""

    def test_dose_for_defaults_to_fixed_base_dose(self) -> None:
        medication = _medication(dose=2.0)
        assert DoseEngine.dose_for(medication, date(2024, 1, 1)) == 2.0

    def test_daily_medication_is_scheduled_every_day(self) -> None:
        medication = _medication()
        assert all(
            DoseEngine.is_scheduled_on(medication, date(2024, 1, day))
            for day in range(1, 8)
        )

    def test_custom_medication_only_on_flagged_weekdays(self) -> None:
        """Monday-only flags (index 1)."""
        medication = _medication(
            frequency=const.FREQUENCY_CUSTOM,
            days_of_week=(False, True, False, False, False, False, False),
        )
        assert DoseEngine.is_scheduled_on(medication, date(2024, 1, 1))
        assert not DoseEngine.is_scheduled_on(medication, date(2024, 1, 2))
        assert not DoseEngine.is_scheduled_on(medication, date(2024, 1, 7))
