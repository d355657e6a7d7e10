"""Convenience helpers layered on top of the settings manager."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional, Protocol

from ..models.entry import ObjectSettingEntry
from .settings_manager import SettingsManager


class HasSettings(Protocol):
    """An object that carries its own settings."""

    object_type: str
    object_id: Optional[str]
    settings: list[ObjectSettingEntry]


async def get_value(
    manager: SettingsManager,
    name: str,
    default: Any = None,
    object_type: Optional[str] = None,
    object_id: Optional[str] = None,
) -> Any:
    """Return the stored value of ``name``, or ``default`` when it is unset."""

    entry = await manager.get_object_setting(name, object_type, object_id)
    if entry is None or entry.value is None:
        return default
    return entry.value


async def set_value(
    manager: SettingsManager,
    name: str,
    value: Any,
    object_type: Optional[str] = None,
    object_id: Optional[str] = None,
) -> ObjectSettingEntry:
    """Store ``value`` for ``name`` and return the saved entry."""

    entry = await manager.get_object_setting(name, object_type, object_id)
    # Work on a copy; the fetched entry may be shared through the cache.
    if entry.is_dictionary:
        updated = replace(
            entry, allowed_values=[entry.value_type.coerce(item) for item in value or ()]
        )
    else:
        updated = replace(entry, value=entry.value_type.coerce(value))
    await manager.save_object_settings([updated])
    return updated


async def deep_load_settings(manager: SettingsManager, obj: HasSettings) -> None:
    """Fill ``obj.settings`` with every setting registered for its type."""

    descriptors = manager.get_settings_for_type(obj.object_type)
    if not descriptors:
        obj.settings = []
        return
    entries = await manager.get_object_settings(
        [descriptor.name for descriptor in descriptors], obj.object_type, obj.object_id
    )
    # Copies, so edits on the object never reach the cached entries.
    obj.settings = [replace(entry, allowed_values=list(entry.allowed_values)) for entry in entries]


async def deep_save_settings(manager: SettingsManager, obj: HasSettings) -> None:
    """Persist ``obj.settings`` under the object's own identity."""

    if not obj.settings:
        return
    entries = [
        replace(entry, object_type=obj.object_type, object_id=obj.object_id)
        for entry in obj.settings
    ]
    await manager.save_object_settings(entries)


__all__ = ["HasSettings", "deep_load_settings", "deep_save_settings", "get_value", "set_value"]
