"""Tests for MedReminderStore."""

from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant
import pytest

from custom_components.medreminder import const
from custom_components.medreminder.store import MedReminderStore
from tests.helpers import create_mock_medication_data, preload_storage, stored_data


async def test_fresh_install_uses_default_structure(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    store = MedReminderStore(hass)
    await store.async_initialize()

    assert store.data == MedReminderStore.get_default_structure()
    assert const.STORAGE_KEY not in hass_storage


async def test_missing_sections_are_filled(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    preload_storage(hass_storage, [create_mock_medication_data()])
    del hass_storage[const.STORAGE_KEY]["data"][const.DATA_HISTORY]

    store = MedReminderStore(hass)
    await store.async_initialize()

    assert store.get(const.DATA_HISTORY) == []
    assert len(store.get(const.DATA_MEDICATIONS)) == 1


async def test_get_returns_a_copy(hass: HomeAssistant) -> None:
    store = MedReminderStore(hass)
    await store.async_initialize()

    medications = store.get(const.DATA_MEDICATIONS)
    medications.append({"id": "sneaky"})

    assert store.get(const.DATA_MEDICATIONS) == []
    assert store.get("unknown", "fallback") == "fallback"


async def test_set_many_writes_once(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    store = MedReminderStore(hass)
    await store.async_initialize()

    assert await store.async_set_many(
        {
            const.DATA_MEDICATIONS: [create_mock_medication_data()],
            const.DATA_HISTORY: [{"medication_id": "med1"}],
        }
    )

    written = stored_data(hass_storage)
    assert len(written[const.DATA_MEDICATIONS]) == 1
    assert written[const.DATA_HISTORY] == [{"medication_id": "med1"}]


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (OSError("Disk full"), "file system error"),
        (TypeError("bad"), "non-serializable data"),
        (ValueError("bad"), "invalid data format"),
    ],
)
async def test_failed_write_keeps_cache(
    hass: HomeAssistant,
    caplog: pytest.LogCaptureFixture,
    error: Exception,
    message: str,
) -> None:
    """The in-memory data only changes once the write succeeded."""
    store = MedReminderStore(hass)
    await store.async_initialize()

    with patch(
        "homeassistant.helpers.storage.Store.async_save", side_effect=error
    ):
        ok = await store.async_set(
            const.DATA_MEDICATIONS, [create_mock_medication_data()]
        )

    assert ok is False
    assert store.get(const.DATA_MEDICATIONS) == []
    assert message in caplog.text


async def test_delete_resets_data(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    preload_storage(hass_storage, [create_mock_medication_data()])
    store = MedReminderStore(hass)
    await store.async_initialize()

    await store.async_delete_storage()

    assert store.data == MedReminderStore.get_default_structure()
    assert const.STORAGE_KEY not in hass_storage
