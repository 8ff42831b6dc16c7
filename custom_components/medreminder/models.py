"""Domain records for Medication Reminders.

Pure dataclasses with ZERO Home Assistant dependencies. Every record is
immutable; state changes produce new instances via `dataclasses.replace`.

Durable configuration (time of day, frequency, dosing policy) and the
transient per-day state (`DoseState`: taken / delayed_until) live in separate
structures so the daily rollover is "replace DoseState with its default".

Construction validates the configuration and raises
InvalidPolicyConfiguration, so an invalid medication never reaches the
engines.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
import logging
from typing import Any, cast

from . import const
from .type_defs import (
    DosingData,
    HistoryRecordData,
    MedicationData,
    ScheduledTimeData,
)
from .utils.dt_utils import (
    dt_parse,
    dt_parse_date,
    dt_to_iso,
    format_time_of_day,
    parse_time_of_day,
)

_LOGGER = logging.getLogger(__name__)


class InvalidPolicyConfiguration(ValueError):
    """Raised when a medication or dosing configuration is invalid.

    Attributes:
        field: Name of the offending field (for service error reporting)
    """

    def __init__(self, message: str, field_name: str | None = None) -> None:
        """Initialize with a message and optional field name."""
        self.field = field_name
        super().__init__(message)


def _positive_amount(value: Any, label: str) -> float:
    """Coerce a dose amount to float and require it to be > 0.

    The amount is kept exactly as given; rounding is a display concern.
    """
    try:
        amount = float(value)
    except (TypeError, ValueError) as err:
        raise InvalidPolicyConfiguration(
            f"{label} must be a number, got {value!r}", label
        ) from err
    if amount <= 0:
        raise InvalidPolicyConfiguration(f"{label} must be greater than 0", label)
    return amount


# =============================================================================
# Dosing policies (tagged union)
# =============================================================================


@dataclass(frozen=True)
class FixedDosing:
    """Same amount every day."""

    amount: float

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "amount", _positive_amount(self.amount, const.DATA_DOSING_AMOUNT)
        )

    def as_dict(self) -> DosingData:
        return {
            const.DATA_DOSING_TYPE: const.DOSING_FIXED,
            const.DATA_DOSING_AMOUNT: self.amount,
        }


@dataclass(frozen=True)
class DailyVariableDosing:
    """Amount per weekday (0 = Sunday … 6 = Saturday); gaps use the base dose."""

    amounts: Mapping[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized: dict[int, float] = {}
        for raw_day, raw_amount in self.amounts.items():
            try:
                day = int(raw_day)
            except (TypeError, ValueError) as err:
                raise InvalidPolicyConfiguration(
                    f"Invalid weekday key {raw_day!r}", const.DATA_DOSING_AMOUNTS
                ) from err
            if not 0 <= day < const.DAYS_PER_WEEK:
                raise InvalidPolicyConfiguration(
                    f"Weekday {day} out of range 0-6", const.DATA_DOSING_AMOUNTS
                )
            normalized[day] = _positive_amount(raw_amount, const.DATA_DOSING_AMOUNTS)
        object.__setattr__(self, "amounts", normalized)

    def as_dict(self) -> DosingData:
        return {
            const.DATA_DOSING_TYPE: const.DOSING_DAILY_VARIABLE,
            const.DATA_DOSING_AMOUNTS: {
                str(day): amount for day, amount in sorted(self.amounts.items())
            },
        }


@dataclass(frozen=True)
class CyclicDosing:
    """Repeating sequence anchored to a start date.

    `current_position` is the sequence index that applies on `start_date`;
    the index for any later day is derived from the elapsed calendar days, so
    nothing has to be advanced at midnight.
    """

    sequence: tuple[float, ...]
    start_date: date
    current_position: int = 0

    def __post_init__(self) -> None:
        sequence = tuple(
            _positive_amount(value, const.DATA_DOSING_SEQUENCE)
            for value in self.sequence
        )
        if not sequence:
            raise InvalidPolicyConfiguration(
                "Cyclic dose sequence must contain at least one dose",
                const.DATA_DOSING_SEQUENCE,
            )
        if not isinstance(self.start_date, date):
            raise InvalidPolicyConfiguration(
                "Cyclic start date is required", const.DATA_DOSING_START_DATE
            )
        if isinstance(self.start_date, datetime):
            object.__setattr__(self, "start_date", dt_parse_date(self.start_date))
        try:
            position = int(self.current_position)
        except (TypeError, ValueError) as err:
            raise InvalidPolicyConfiguration(
                "Cycle position must be an integer",
                const.DATA_DOSING_CURRENT_POSITION,
            ) from err
        if position < 0:
            raise InvalidPolicyConfiguration(
                "Cycle position cannot be negative",
                const.DATA_DOSING_CURRENT_POSITION,
            )
        object.__setattr__(self, "sequence", sequence)
        object.__setattr__(self, "current_position", position)

    def as_dict(self) -> DosingData:
        return {
            const.DATA_DOSING_TYPE: const.DOSING_CYCLIC,
            const.DATA_DOSING_SEQUENCE: list(self.sequence),
            const.DATA_DOSING_START_DATE: self.start_date.isoformat(),
            const.DATA_DOSING_CURRENT_POSITION: self.current_position,
        }


DosingPolicy = FixedDosing | DailyVariableDosing | CyclicDosing


def dosing_type(policy: DosingPolicy) -> str:
    """Return the stored discriminator for a policy."""
    if isinstance(policy, CyclicDosing):
        return const.DOSING_CYCLIC
    if isinstance(policy, DailyVariableDosing):
        return const.DOSING_DAILY_VARIABLE
    return const.DOSING_FIXED


def dosing_from_dict(data: Mapping[str, Any] | None, base_dose: float) -> DosingPolicy:
    """Build a dosing policy from its stored form.

    Missing data means Fixed at the base dose.
    """
    if not data:
        return FixedDosing(base_dose)

    kind = data.get(const.DATA_DOSING_TYPE, const.DOSING_FIXED)
    if kind == const.DOSING_FIXED:
        return FixedDosing(data.get(const.DATA_DOSING_AMOUNT, base_dose))
    if kind == const.DOSING_DAILY_VARIABLE:
        return DailyVariableDosing(dict(data.get(const.DATA_DOSING_AMOUNTS) or {}))
    if kind == const.DOSING_CYCLIC:
        start_date = dt_parse_date(data.get(const.DATA_DOSING_START_DATE))
        if start_date is None:
            raise InvalidPolicyConfiguration(
                "Cyclic start date is required", const.DATA_DOSING_START_DATE
            )
        return CyclicDosing(
            sequence=tuple(data.get(const.DATA_DOSING_SEQUENCE) or ()),
            start_date=start_date,
            current_position=data.get(const.DATA_DOSING_CURRENT_POSITION, 0),
        )
    raise InvalidPolicyConfiguration(
        f"Unknown dosing type {kind!r}", const.DATA_DOSING_TYPE
    )


# =============================================================================
# Scheduled times
# =============================================================================


@dataclass(frozen=True)
class DoseState:
    """Today's transient state for one scheduled time."""

    taken: bool = False
    delayed_until: datetime | None = None


@dataclass(frozen=True)
class ScheduledTime:
    """A durable wall-clock time plus today's DoseState."""

    time_of_day: time
    state: DoseState = field(default_factory=DoseState)

    @property
    def taken(self) -> bool:
        return self.state.taken

    @property
    def delayed_until(self) -> datetime | None:
        return self.state.delayed_until

    @property
    def label(self) -> str:
        """Zero-padded "HH:MM"."""
        return format_time_of_day(self.time_of_day)

    def with_state(self, **changes: Any) -> ScheduledTime:
        """Return a copy with DoseState fields replaced."""
        return replace(self, state=replace(self.state, **changes))

    def reset(self) -> ScheduledTime:
        """Return a copy with a fresh DoseState."""
        return replace(self, state=DoseState())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | str) -> ScheduledTime:
        """Build from stored form; a bare "HH:MM" string is accepted too."""
        if isinstance(data, str):
            data = {const.DATA_TIME: data}
        try:
            time_of_day = parse_time_of_day(data.get(const.DATA_TIME, ""))
        except ValueError as err:
            raise InvalidPolicyConfiguration(str(err), const.DATA_MEDICATION_TIMES) from err
        return cls(
            time_of_day=time_of_day,
            state=DoseState(
                taken=bool(data.get(const.DATA_TIME_TAKEN, False)),
                delayed_until=dt_parse(data.get(const.DATA_TIME_DELAYED_UNTIL)),
            ),
        )

    def as_dict(self) -> ScheduledTimeData:
        return {
            const.DATA_TIME: self.label,
            const.DATA_TIME_TAKEN: self.state.taken,
            const.DATA_TIME_DELAYED_UNTIL: dt_to_iso(self.state.delayed_until),
        }


# =============================================================================
# Medication
# =============================================================================


@dataclass(frozen=True)
class Medication:
    """A medication with its schedule and dosing policy.

    Invariants enforced at construction:
    - name is non-empty
    - frequency is daily or custom; custom has 7 weekday flags, at least one set
    - at least one scheduled time
    - base dose and every policy amount are > 0
    """

    id: str
    name: str
    dose: float
    times: tuple[ScheduledTime, ...]
    frequency: str = const.FREQUENCY_DAILY
    days_of_week: tuple[bool, ...] | None = None
    color: str = const.DEFAULT_COLOR
    dosing: DosingPolicy | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidPolicyConfiguration(
                "Medication id is required", const.DATA_MEDICATION_ID
            )
        name = (self.name or "").strip()
        if not name:
            raise InvalidPolicyConfiguration(
                "Medication name is required", const.DATA_MEDICATION_NAME
            )
        object.__setattr__(self, "name", name)
        object.__setattr__(
            self, "dose", _positive_amount(self.dose, const.DATA_MEDICATION_DOSE)
        )

        if self.frequency not in const.FREQUENCY_OPTIONS:
            raise InvalidPolicyConfiguration(
                f"Unknown frequency {self.frequency!r}",
                const.DATA_MEDICATION_FREQUENCY,
            )
        if self.frequency == const.FREQUENCY_CUSTOM:
            days = tuple(bool(flag) for flag in (self.days_of_week or ()))
            if len(days) != const.DAYS_PER_WEEK:
                raise InvalidPolicyConfiguration(
                    "Custom frequency needs exactly 7 weekday flags",
                    const.DATA_MEDICATION_DAYS_OF_WEEK,
                )
            if not any(days):
                raise InvalidPolicyConfiguration(
                    "Select at least one day of the week",
                    const.DATA_MEDICATION_DAYS_OF_WEEK,
                )
            object.__setattr__(self, "days_of_week", days)
        else:
            object.__setattr__(self, "days_of_week", None)

        times = tuple(self.times)
        if not times:
            raise InvalidPolicyConfiguration(
                "Add at least one time", const.DATA_MEDICATION_TIMES
            )
        object.__setattr__(self, "times", times)

        if self.dosing is None:
            object.__setattr__(self, "dosing", FixedDosing(self.dose))
        object.__setattr__(self, "color", self.color or const.DEFAULT_COLOR)

    @property
    def policy(self) -> DosingPolicy:
        """Active dosing policy (never None after construction)."""
        return cast("DosingPolicy", self.dosing)

    def time_at(self, index: int) -> ScheduledTime:
        """Return the scheduled time at `index`.

        Raises:
            IndexError: If the index is out of range.
        """
        if not 0 <= index < len(self.times):
            raise IndexError(
                f"Time index {index} out of range for medication {self.id} "
                f"({len(self.times)} times)"
            )
        return self.times[index]

    def with_time(self, index: int, scheduled: ScheduledTime) -> Medication:
        """Return a copy with one scheduled time replaced."""
        self.time_at(index)
        times = list(self.times)
        times[index] = scheduled
        return replace(self, times=tuple(times))

    def reset_times(self) -> Medication:
        """Return a copy with every DoseState cleared."""
        return replace(self, times=tuple(t.reset() for t in self.times))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Medication:
        """Build and validate a medication from its stored form."""
        raw_dose = data.get(const.DATA_MEDICATION_DOSE)
        base_dose = _positive_amount(raw_dose, const.DATA_MEDICATION_DOSE)
        raw_days = data.get(const.DATA_MEDICATION_DAYS_OF_WEEK)
        return cls(
            id=str(data.get(const.DATA_MEDICATION_ID) or ""),
            name=str(data.get(const.DATA_MEDICATION_NAME) or ""),
            color=str(data.get(const.DATA_MEDICATION_COLOR) or const.DEFAULT_COLOR),
            dose=base_dose,
            frequency=data.get(const.DATA_MEDICATION_FREQUENCY, const.FREQUENCY_DAILY),
            days_of_week=tuple(raw_days) if raw_days is not None else None,
            times=tuple(
                ScheduledTime.from_dict(item)
                for item in data.get(const.DATA_MEDICATION_TIMES) or ()
            ),
            dosing=dosing_from_dict(data.get(const.DATA_MEDICATION_DOSING), base_dose),
        )

    def as_dict(self) -> MedicationData:
        return {
            const.DATA_MEDICATION_ID: self.id,
            const.DATA_MEDICATION_NAME: self.name,
            const.DATA_MEDICATION_COLOR: self.color,
            const.DATA_MEDICATION_DOSE: self.dose,
            const.DATA_MEDICATION_FREQUENCY: self.frequency,  # type: ignore[typeddict-item]
            const.DATA_MEDICATION_DAYS_OF_WEEK: (
                list(self.days_of_week) if self.days_of_week is not None else None
            ),
            const.DATA_MEDICATION_TIMES: [t.as_dict() for t in self.times],
            const.DATA_MEDICATION_DOSING: self.policy.as_dict(),
        }


def medications_from_list(
    items: list[Mapping[str, Any]] | None,
) -> tuple[list[Medication], list[dict[str, Any]]]:
    """Load stored medications, setting invalid records aside.

    A single corrupt record must not make the whole list unreadable. The
    invalid records are returned untouched so they can be written back.

    Returns:
        (valid medications, raw invalid records)
    """
    valid: list[Medication] = []
    invalid: list[dict[str, Any]] = []
    for item in items or []:
        try:
            valid.append(Medication.from_dict(item))
        except InvalidPolicyConfiguration as err:
            _LOGGER.warning(
                "Keeping invalid stored medication %s aside: %s",
                item.get(const.DATA_MEDICATION_ID, "?"),
                err,
            )
            invalid.append(dict(item))
    return valid, invalid


# =============================================================================
# History and triggers
# =============================================================================


@dataclass(frozen=True)
class HistoryRecord:
    """Immutable audit entry for one toggle or delay action."""

    timestamp: datetime
    medication_id: str
    medication_name: str
    medication_color: str
    time_index: int
    taken: bool
    time: str
    actual_time: datetime

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryRecord | None:
        """Build from stored form; returns None for unreadable records."""
        timestamp = dt_parse(data.get(const.DATA_HISTORY_TIMESTAMP))
        if timestamp is None:
            return None
        snapshot = data.get(const.DATA_HISTORY_MEDICATION) or {}
        return cls(
            timestamp=timestamp,
            medication_id=str(snapshot.get(const.DATA_MEDICATION_ID, "")),
            medication_name=str(snapshot.get(const.DATA_MEDICATION_NAME, "")),
            medication_color=str(
                snapshot.get(const.DATA_MEDICATION_COLOR) or const.DEFAULT_COLOR
            ),
            time_index=int(data.get(const.DATA_HISTORY_TIME_INDEX, 0)),
            taken=bool(data.get(const.DATA_HISTORY_TAKEN, False)),
            time=str(data.get(const.DATA_HISTORY_TIME, "")),
            actual_time=dt_parse(data.get(const.DATA_HISTORY_ACTUAL_TIME)) or timestamp,
        )

    def as_dict(self) -> HistoryRecordData:
        return {
            const.DATA_HISTORY_TIMESTAMP: self.timestamp.isoformat(),
            const.DATA_HISTORY_MEDICATION: {
                const.DATA_MEDICATION_ID: self.medication_id,
                const.DATA_MEDICATION_NAME: self.medication_name,
                const.DATA_MEDICATION_COLOR: self.medication_color,
            },
            const.DATA_HISTORY_TIME_INDEX: self.time_index,
            const.DATA_HISTORY_TAKEN: self.taken,
            const.DATA_HISTORY_TIME: self.time,
            const.DATA_HISTORY_ACTUAL_TIME: self.actual_time.isoformat(),
        }


@dataclass(frozen=True)
class TriggerDescriptor:
    """Declarative description of one recurring reminder.

    `weekday` uses Sunday = 0; None repeats every day.
    """

    identifier: str
    title: str
    body: str
    hour: int
    minute: int
    weekday: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "title": self.title,
            "body": self.body,
            "hour": self.hour,
            "minute": self.minute,
            "weekday": self.weekday,
        }
