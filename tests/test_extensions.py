"""Tests for the value helpers and deep load/save of settings-carrying objects."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

import pytest

from platform_settings.exceptions import SettingNotRegisteredError, SettingValueError
from platform_settings.models import ObjectSettingEntry
from platform_settings.services.extensions import (
    deep_load_settings,
    deep_save_settings,
    get_value,
    set_value,
)


@dataclass
class Cart:
    object_id: Optional[str]
    object_type: str = "Cart"
    settings: list[ObjectSettingEntry] = field(default_factory=list)


def run(coro):
    return asyncio.run(coro)


def test_get_value_returns_default_when_unset(manager):
    assert run(get_value(manager, "Layout", default={"columns": 1})) == {"columns": 1}
    assert run(get_value(manager, "MaxItems", default=1, object_type="Cart", object_id="1")) == 50


def test_get_value_rejects_unregistered_names(manager):
    with pytest.raises(SettingNotRegisteredError):
        run(get_value(manager, "Missing"))


def test_set_value_coerces_and_persists(manager, stored_rows):
    saved = run(set_value(manager, "MaxItems", "25", "Cart", "3"))

    assert saved.value == 25
    assert run(get_value(manager, "MaxItems", object_type="Cart", object_id="3")) == 25
    assert len(stored_rows()) == 1


def test_set_value_does_not_mutate_cached_entry(manager):
    cached = run(manager.get_object_setting("MaxItems", "Cart", "3"))

    run(set_value(manager, "MaxItems", 5, "Cart", "3"))

    assert cached.value == 50


def test_set_value_on_dictionary_setting(manager):
    saved = run(set_value(manager, "Tags", ["red", "blue"], "Page", "home"))

    assert saved.allowed_values == ["red", "blue"]
    entry = run(manager.get_object_setting("Tags", "Page", "home"))
    assert sorted(entry.allowed_values) == ["blue", "red"]


def test_set_value_rejects_invalid_value(manager, stored_rows):
    with pytest.raises(SettingValueError):
        run(set_value(manager, "Enabled", "perhaps", "Cart", "1"))

    assert stored_rows() == []


def test_deep_load_fills_registered_settings(manager):
    cart = Cart(object_id="9")

    run(deep_load_settings(manager, cart))

    assert [entry.name for entry in cart.settings] == ["MaxItems", "Enabled"]
    assert all(entry.object_id == "9" for entry in cart.settings)


def test_deep_load_without_registered_settings_clears_list(manager):
    order = Cart(object_id="1", object_type="Order", settings=[ObjectSettingEntry(name="x")])

    run(deep_load_settings(manager, order))

    assert order.settings == []


def test_editing_loaded_settings_does_not_change_cached_values(manager):
    cart = Cart(object_id="13")
    run(deep_load_settings(manager, cart))

    cart.settings[0].value = 99

    assert run(get_value(manager, "MaxItems", object_type="Cart", object_id="13")) == 50


def test_deep_save_stamps_object_identity(manager, make_entry):
    cart = Cart(object_id="11", settings=[make_entry("MaxItems", value=70)])

    run(deep_save_settings(manager, cart))

    assert cart.settings[0].object_id is None
    stored = run(manager.get_object_setting("MaxItems", "Cart", "11"))
    assert stored.value == 70
    assert run(manager.get_object_setting("MaxItems")).value == 50


def test_deep_round_trip(manager):
    cart = Cart(object_id="12")
    run(deep_load_settings(manager, cart))
    cart.settings[0].value = 3

    run(deep_save_settings(manager, cart))

    reloaded = Cart(object_id="12")
    run(deep_load_settings(manager, reloaded))
    assert reloaded.settings[0].value == 3
