"""Dose Engine - Pure logic for resolving the dose owed on a date.

This engine provides stateless, pure Python functions for:
- Dose resolution across the three dosing policies (fixed, per weekday, cyclic)
- Cycle position math anchored to a start date
- "Is this medication scheduled on that day" checks

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data. Dispatch over
the policy variants happens in exactly one place (resolve_dose) so the
midnight normalization and modulo indexing are not duplicated per variant.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from .. import const
from ..models import CyclicDosing, DailyVariableDosing, FixedDosing
from ..utils.dt_utils import sunday_weekday, to_local_date

if TYPE_CHECKING:
    from ..models import DosingPolicy, Medication


class DoseEngine:
    """Pure logic engine for dose resolution.

    All methods are static - no instance state. The result is a function of
    the calendar date only, never of the wall-clock instant.
    """

    @staticmethod
    def resolve_dose(
        policy: DosingPolicy,
        reference: date | datetime,
        base_dose: float,
    ) -> float:
        """Return the dose owed on the reference date.

        Args:
            policy: Active dosing policy
            reference: Date (or datetime, normalized to its local date)
            base_dose: Medication's standard dose, used as fallback

        Returns:
            - Fixed: the fixed amount
            - DailyVariable: the weekday amount, else base_dose
            - Cyclic: sequence[(current_position + days since start) % len],
              base_dose before the start date or for an empty sequence

        Examples:
            Cyclic([1, 1.5], start=2024-01-01): Jan 1 → 1, Jan 2 → 1.5, Jan 3 → 1
            DailyVariable({0: 2, 3: 1}), base 1: Sunday → 2, Tuesday → 1
        """
        if isinstance(policy, FixedDosing):
            return policy.amount

        if isinstance(policy, DailyVariableDosing):
            return policy.amounts.get(sunday_weekday(reference), base_dose)

        if isinstance(policy, CyclicDosing):
            position = DoseEngine.cycle_position(policy, reference)
            if position is None:
                return base_dose
            return policy.sequence[position]

        const.LOGGER.warning(
            "DoseEngine: Unknown dosing policy %s, using base dose",
            type(policy).__name__,
        )
        return base_dose

    @staticmethod
    def days_since_start(policy: CyclicDosing, reference: date | datetime) -> int:
        """Whole calendar days from the cycle start to the reference date.

        Both ends are normalized to local dates, so 23:59 and 00:01 on the same
        day give the same count. Negative when the cycle has not started.
        """
        return (to_local_date(reference) - to_local_date(policy.start_date)).days

    @staticmethod
    def cycle_position(
        policy: CyclicDosing, reference: date | datetime
    ) -> int | None:
        """Return the sequence index in effect on the reference date.

        Returns None when the cycle has not started yet or the sequence is
        empty (callers fall back to the base dose).
        """
        length = len(policy.sequence)
        if not length:
            return None
        days = DoseEngine.days_since_start(policy, reference)
        if days < 0:
            return None
        return (policy.current_position + days) % length

    @staticmethod
    def dose_for(medication: Medication, reference: date | datetime) -> float:
        """Resolve the dose for a medication on the reference date."""
        return DoseEngine.resolve_dose(medication.policy, reference, medication.dose)

    @staticmethod
    def is_scheduled_on(medication: Medication, reference: date | datetime) -> bool:
        """Return True if the medication is taken on the reference date.

        Daily medications always apply; custom ones apply on flagged weekdays.
        """
        if medication.frequency == const.FREQUENCY_DAILY:
            return True
        days = medication.days_of_week or ()
        weekday = sunday_weekday(reference)
        return weekday < len(days) and bool(days[weekday])
