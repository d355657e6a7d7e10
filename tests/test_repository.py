"""Unit tests for the SQLModel settings repository."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import inspect

from platform_settings.infra.repositories import (
    SQLModelSettingsRepository,
    create_settings_repository_factory,
)
from platform_settings.models import ObjectSettingEntry, SettingEntity, SettingValueType


def _entity(name, object_type=None, object_id=None, value="x"):
    return SettingEntity.from_model(
        ObjectSettingEntry(name=name, object_type=object_type, object_id=object_id, value=value)
    )


@pytest.fixture
def seeded(session_factory):
    with SQLModelSettingsRepository(session_factory()) as repo:
        repo.add(_entity("Theme"))
        repo.add(_entity("Theme", "Cart", "1"))
        repo.add(_entity("MaxItems", "Cart", "1"))
        repo.add(_entity("MaxItems", "Cart", "2"))
        repo.add(_entity("MaxItems", "Order", "1"))
        repo.commit()
    return session_factory


def test_get_object_settings_filters_by_identity(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        rows = repo.get_object_settings("Cart", "1")

    assert sorted(row.name for row in rows) == ["MaxItems", "Theme"]


def test_get_object_settings_matches_null_identity(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        rows = repo.get_object_settings(None, None)

    assert [(row.name, row.object_type, row.object_id) for row in rows] == [("Theme", None, None)]


def test_get_all_object_settings_by_types_and_ids(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        carts = repo.get_all_object_settings_by_types_and_ids(["Cart"], ["1", "2"])
        first_ids = repo.get_all_object_settings_by_types_and_ids(None, ["1"])

    assert {(row.name, row.object_id) for row in carts} == {
        ("Theme", "1"),
        ("MaxItems", "1"),
        ("MaxItems", "2"),
    }
    assert {row.object_type for row in first_ids} == {"Cart", "Order"}


def test_get_settings_by_names_is_case_insensitive(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        rows = repo.get_settings_by_names(["maxitems"])
        nothing = repo.get_settings_by_names([])

    assert len(rows) == 3
    assert nothing == []


def test_find_setting(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        found = repo.find_setting("THEME", "Cart", "1")
        missing = repo.find_setting("Theme", "Cart", "2")

    assert found is not None
    assert found.object_id == "1"
    assert missing is None


def test_disabled_tracking_returns_detached_rows(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        repo.disable_changes_tracking()
        rows = repo.get_object_settings("Cart", "2")

        assert all(inspect(row).detached for row in rows)
        # values were eagerly loaded before detaching
        assert rows[0].setting_values[0].short_text_value == "x"


def test_exit_without_commit_discards_changes(session_factory, stored_rows):
    with SQLModelSettingsRepository(session_factory()) as repo:
        repo.add(_entity("Theme"))

    assert stored_rows() == []


def test_exit_with_error_rolls_back(session_factory, stored_rows):
    with pytest.raises(RuntimeError):
        with SQLModelSettingsRepository(session_factory()) as repo:
            repo.add(_entity("Theme"))
            repo.session.flush()
            raise RuntimeError("boom")

    assert stored_rows() == []


def test_remove_cascades_to_values(seeded):
    with SQLModelSettingsRepository(seeded()) as repo:
        row = repo.find_setting("MaxItems", "Order", "1")
        repo.remove(row)
        repo.commit()

    with SQLModelSettingsRepository(seeded()) as repo:
        assert repo.find_setting("MaxItems", "Order", "1") is None
        remaining = repo.get_all_object_settings_by_types_and_ids(None, None)

    assert len(remaining) == 4


def test_typed_values_survive_persistence(session_factory):
    entry = ObjectSettingEntry(
        name="Limit", value_type=SettingValueType.DECIMAL, object_type="Cart", object_id="1", value="12.5"
    )
    with SQLModelSettingsRepository(session_factory()) as repo:
        repo.add(SettingEntity.from_model(entry))
        repo.commit()

    with SQLModelSettingsRepository(session_factory()) as repo:
        row = repo.find_setting("Limit", "Cart", "1")
        restored = row.to_model(
            ObjectSettingEntry(name="Limit", value_type=SettingValueType.DECIMAL)
        )

    assert restored.value == Decimal("12.5")


def test_factory_returns_fresh_repositories(session_factory):
    factory = create_settings_repository_factory(session_factory)

    first, second = factory(), factory()

    assert isinstance(first, SQLModelSettingsRepository)
    assert first is not second
    assert first.session is not second.session
    first.session.close()
    second.session.close()


def test_patching_a_stored_row_updates_it_in_place(seeded, stored_rows):
    incoming = _entity("MaxItems", "Cart", "2", value="y")
    with SQLModelSettingsRepository(seeded()) as repo:
        target = repo.find_setting("MaxItems", "Cart", "2")
        incoming.patch(target)
        assert incoming not in repo.session
        repo.commit()

    rows = [row for row in stored_rows() if row.object_id == "2"]
    assert len(rows) == 1
    assert [value.short_text_value for value in rows[0].setting_values] == ["y"]


def test_datetime_values_come_back_as_utc(session_factory):
    entry = ObjectSettingEntry(
        name="Expires",
        value_type=SettingValueType.DATE_TIME,
        object_type="Cart",
        object_id="1",
        value="2025-03-04T05:06:07",
    )
    with SQLModelSettingsRepository(session_factory()) as repo:
        repo.add(SettingEntity.from_model(entry))
        repo.commit()

    with SQLModelSettingsRepository(session_factory()) as repo:
        row = repo.find_setting("Expires", "Cart", "1")
        restored = row.to_model(
            ObjectSettingEntry(name="Expires", value_type=SettingValueType.DATE_TIME)
        )

    assert restored.value == datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
