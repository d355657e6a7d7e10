"""Tests for the setting descriptor registry."""

from __future__ import annotations

import pytest

from platform_settings.exceptions import SettingNotRegisteredError
from platform_settings.models import SettingDescriptor, SettingValueType
from platform_settings.services import SettingsManifest, SettingsRegistry


def test_register_settings_assigns_module_id():
    registry = SettingsRegistry()
    descriptor = SettingDescriptor(name="MaxItems", value_type=SettingValueType.INTEGER)

    registry.register_settings([descriptor], module_id="cart")

    assert registry.require("MaxItems").module_id == "cart"


def test_last_registration_wins_case_insensitively():
    registry = SettingsRegistry()
    registry.register_settings([SettingDescriptor(name="MaxItems", default_value="1")], "a")
    registry.register_settings([SettingDescriptor(name="MAXITEMS", default_value="2")], "b")

    (only,) = registry.all_registered_settings
    assert only.name == "MAXITEMS"
    assert only.default_value == "2"
    assert only.module_id == "b"
    assert len(registry) == 1


def test_all_registered_settings_is_a_snapshot():
    registry = SettingsRegistry()
    registry.register_settings([SettingDescriptor(name="A")])
    snapshot = registry.all_registered_settings

    registry.register_settings([SettingDescriptor(name="B")])

    assert [d.name for d in snapshot] == ["A"]
    assert {d.name for d in registry.all_registered_settings} == {"A", "B"}


def test_register_settings_requires_descriptors():
    registry = SettingsRegistry()

    with pytest.raises(ValueError):
        registry.register_settings(None)
    with pytest.raises(ValueError):
        registry.register_settings_for_type(None, "Cart")


def test_register_settings_for_type_merges_and_deduplicates():
    registry = SettingsRegistry()
    a, b, c = (SettingDescriptor(name=n) for n in ("A", "B", "C"))

    registry.register_settings_for_type([a, b], "Cart")
    registry.register_settings_for_type([SettingDescriptor(name="b"), c], "cart")

    assert [d.name for d in registry.get_settings_for_type("CART")] == ["A", "B", "C"]


def test_unknown_type_returns_empty():
    registry = SettingsRegistry()

    assert registry.get_settings_for_type("Nothing") == ()
    assert registry.get_settings_for_types(["Nothing", "Else"]) == ()


def test_get_settings_for_types_unions_registered_types():
    registry = SettingsRegistry()
    shared = SettingDescriptor(name="Shared")
    registry.register_settings_for_type([shared, SettingDescriptor(name="CartOnly")], "Cart")
    registry.register_settings_for_type([shared, SettingDescriptor(name="OrderOnly")], "Order")

    names = [d.name for d in registry.get_settings_for_types(["Cart", "Order", "Missing"])]

    assert names == ["Shared", "CartOnly", "OrderOnly"]


def test_find_and_require():
    registry = SettingsRegistry()
    registry.register_settings([SettingDescriptor(name="Theme")])

    assert registry.find("theme").name == "Theme"
    assert registry.find("missing") is None
    assert "THEME" in registry
    with pytest.raises(SettingNotRegisteredError) as excinfo:
        registry.require("missing")
    assert excinfo.value.name == "missing"
    assert "missing" in str(excinfo.value)


def test_register_manifest_registers_settings_and_types():
    manifest = SettingsManifest.from_dict(
        {
            "module_id": "cart",
            "settings": [
                {"name": "Cart.MaxItems", "valueType": "Integer", "defaultValue": "50"},
                {"name": "Cart.Enabled", "valueType": "Boolean", "defaultValue": True},
            ],
            "types": {"Cart": ["cart.maxitems"]},
        }
    )
    registry = SettingsRegistry()

    registry.register_manifest(manifest)

    assert registry.require("Cart.MaxItems").default_value == 50
    assert registry.require("Cart.Enabled").module_id == "cart"
    assert [d.name for d in registry.get_settings_for_type("Cart")] == ["Cart.MaxItems"]
