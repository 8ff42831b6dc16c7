# File: utils/__init__.py
"""Pure Python utilities for Medication Reminders.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed in this module.

Submodules:
    - dt_utils: Date/time parsing, formatting, local-midnight calculations
    - math_utils: Dose rounding, display formatting, sequence parsing

Usage:
    from . import dt_utils
    from .math_utils import format_dose
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
