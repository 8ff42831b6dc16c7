# File: utils/dt_utils.py
"""Date and time utilities for Medication Reminders.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

Functions:
    - set_default_timezone: Local clock configuration
    - as_local: Convert to local timezone
    - to_local_date: Normalize a date/datetime to a local calendar date
    - start_of_local_day: Local midnight of a datetime
    - next_local_midnight: First local midnight strictly after a datetime
    - combine_local: Local date + wall-clock time → aware datetime
    - parse_time_of_day / format_time_of_day: "HH:MM" conversions
    - dt_parse: Normalize ISO datetime strings
    - dt_parse_date: Normalize ISO date strings
    - sunday_weekday / python_weekday: Weekday index with Sunday = 0
"""

from __future__ import annotations

from datetime import date, datetime, time
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - replaced at integration setup with the HA configured zone
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Weekday labels indexed with Sunday = 0
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


# ==============================================================================
# Local Conversions
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are taken to already be local wall-clock values.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


def to_local_date(value: date | datetime, tz: ZoneInfo | None = None) -> date:
    """Normalize a date or datetime to a local calendar date.

    Strips time-of-day so day arithmetic is a pure calendar difference.

    Examples:
        to_local_date(date(2024, 1, 2)) → date(2024, 1, 2)
        to_local_date(datetime(2024, 1, 2, 23, 59, tzinfo=UTC)) → local date
    """
    if isinstance(value, datetime):
        return as_local(value, tz).date()
    return value


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Built from the calendar date rather than by replacing time fields on the
    converted value, so the offset is the one valid at midnight (DST-safe).
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    local_date = as_local(dt_obj, tz_info).date()
    return datetime.combine(local_date, time.min, tzinfo=tz_info)


def next_local_midnight(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Return the first local midnight strictly after `dt_obj`.

    Examples:
        2024-01-01 23:59 → 2024-01-02 00:00
        2024-01-02 00:00 → 2024-01-03 00:00
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    local_date = as_local(dt_obj, tz_info).date() + relativedelta(days=1)
    return datetime.combine(local_date, time.min, tzinfo=tz_info)


def combine_local(
    day: date, time_of_day: time, tz: ZoneInfo | None = None
) -> datetime:
    """Combine a local calendar date with a wall-clock time, seconds zeroed."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(
        day, time_of_day.replace(second=0, microsecond=0), tzinfo=tz_info
    )


# ==============================================================================
# Parsing / Formatting
# ==============================================================================


def parse_time_of_day(value: str | time) -> time:
    """Parse an "HH:MM" string into a `datetime.time`.

    Raises:
        ValueError: If the string is malformed or out of range.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")

    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r} (out of range)")
    return time(hour, minute)


def format_time_of_day(value: time) -> str:
    """Format a `datetime.time` as zero-padded "HH:MM"."""
    return f"{value.hour:02d}:{value.minute:02d}"


def dt_parse_date(value: str | date | datetime | None) -> date | None:
    """Safely parse an ISO date (or the date part of an ISO datetime)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_date(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        pass

    parsed = dt_parse(value)
    return to_local_date(parsed) if parsed else None


def dt_parse(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 datetime string into an aware datetime.

    Naive values are interpreted in the default (local) timezone.
    Returns None on empty or malformed input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_local(value) if value.tzinfo is None else value
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        _LOGGER.warning("Unable to parse datetime value '%s'", value)
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=DEFAULT_TIME_ZONE)
    return parsed


def dt_to_iso(value: datetime | None) -> str | None:
    """Serialize an aware datetime, passing None through."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=DEFAULT_TIME_ZONE)
    return value.isoformat()


# ==============================================================================
# Weekdays
# ==============================================================================


def sunday_weekday(value: date | datetime) -> int:
    """Return the weekday index with Sunday = 0 … Saturday = 6.

    Python's `date.weekday()` uses Monday = 0; stored weekday flags and
    per-weekday dose maps use Sunday = 0.
    """
    return (to_local_date(value).weekday() + 1) % 7


def python_weekday(sunday_index: int) -> int:
    """Convert a Sunday = 0 weekday index to Python's Monday = 0 numbering."""
    return (sunday_index - 1) % 7
