"""Type definitions for stored Medication Reminders data.

These TypedDicts describe the JSON shapes written to the Home Assistant
store. The runtime objects the engines operate on are the dataclasses in
models.py; `Medication.from_dict()` / `as_dict()` convert between the two.

NOTE: TypedDict is STATIC ANALYSIS ONLY. All runtime validation happens in
models.py and raises InvalidPolicyConfiguration.

IMPORTANT: This file must NOT import from coordinator.py or any module that
imports Home Assistant.
"""

from typing import Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

MedicationId = str  # uuid4 hex string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+01:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"
TimeOfDay = str  # "HH:MM"


# =============================================================================
# Dosing
# =============================================================================


class DosingData(TypedDict):
    """Serialized dosing policy (one variant active)."""

    type: Literal["fixed", "daily_variable", "cyclic"]
    amount: NotRequired[float]  # fixed
    amounts: NotRequired[dict[str, float]]  # daily_variable, keys "0".."6"
    sequence: NotRequired[list[float]]  # cyclic
    start_date: NotRequired[ISODate]  # cyclic
    current_position: NotRequired[int]  # cyclic


# =============================================================================
# Medication
# =============================================================================


class ScheduledTimeData(TypedDict):
    """Serialized scheduled time: durable HH:MM plus today's transient state."""

    time: TimeOfDay
    taken: bool
    delayed_until: ISODatetime | None


class MedicationData(TypedDict):
    """Serialized medication record."""

    id: MedicationId
    name: str
    color: str
    dose: float
    frequency: Literal["daily", "custom"]
    days_of_week: list[bool] | None
    times: list[ScheduledTimeData]
    dosing: DosingData


# =============================================================================
# History
# =============================================================================


class MedicationSnapshot(TypedDict):
    """Medication identity captured at event time."""

    id: MedicationId
    name: str
    color: str


class HistoryRecordData(TypedDict):
    """Serialized history record (append-only)."""

    timestamp: ISODatetime
    medication: MedicationSnapshot
    time_index: int
    taken: bool
    time: TimeOfDay
    actual_time: ISODatetime


# =============================================================================
# Storage
# =============================================================================


class StorageMeta(TypedDict):
    """Bookkeeping stored alongside the medication list."""

    schema_version: int
    last_rollover: ISODatetime | None


class StorageData(TypedDict):
    """Complete store payload."""

    meta: StorageMeta
    medications: list[MedicationData]
    history: list[HistoryRecordData]
