"""Test helpers for Medication Reminders tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import (
        SetupResult, build_entry, setup_integration, setup_from_yaml,
        create_mock_medication_data, preload_storage, stored_data,
    )

See setup.py for full documentation.
"""

from tests.helpers.setup import (
    MEDICATION_ID,
    SetupResult,
    build_entry,
    create_mock_medication_data,
    load_scenario,
    preload_storage,
    setup_from_yaml,
    setup_integration,
    stored_data,
    weekday_flags,
)

__all__ = [
    "MEDICATION_ID",
    "SetupResult",
    "build_entry",
    "create_mock_medication_data",
    "load_scenario",
    "preload_storage",
    "setup_from_yaml",
    "setup_integration",
    "stored_data",
    "weekday_flags",
]
