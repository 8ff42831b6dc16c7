# File: utils/math_utils.py
"""Math and formatting utilities for Medication Reminders.

Pure Python functions with ZERO Home Assistant dependencies.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Dose amounts are stored exactly as entered. Rounding happens for display only.

Functions:
    - format_dose: Human display of a dose ("1", "1.5")
    - parse_dose_sequence: Parse "1, 1, 0.5" style sequences
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Display precision for dose amounts
DISPLAY_DOSE_QUANTUM = Decimal("0.1")


def format_dose(value: float) -> str:
    """Format a dose for display.

    Whole numbers render without decimals, anything else with one decimal,
    halves rounded away from zero.

    Examples:
        format_dose(2.0) → "2"
        format_dose(1.5) → "1.5"
        format_dose(0.25) → "0.3"
    """
    if float(value).is_integer():
        return str(int(value))
    return str(
        Decimal(str(value)).quantize(DISPLAY_DOSE_QUANTUM, rounding=ROUND_HALF_UP)
    )


def parse_dose_sequence(raw_input: str | list | tuple | None) -> list[float]:
    """Parse a cyclic dose sequence from text or a list.

    Accepts comma or pipe separated text ("1, 1, 0.5" / "1|1|0.5") or any
    iterable of numbers. Invalid entries are skipped with a warning.
    """
    if raw_input is None:
        return []

    if isinstance(raw_input, str):
        normalized = raw_input.replace("|", ",")
        parts: list = [p.strip() for p in normalized.split(",") if p.strip()]
    else:
        parts = list(raw_input)

    result: list[float] = []
    for part in parts:
        try:
            result.append(float(part))
        except (TypeError, ValueError):
            _LOGGER.warning("Skipping invalid dose sequence entry: %s", part)
    return result
