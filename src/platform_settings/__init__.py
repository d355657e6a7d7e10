"""Object-scoped settings registry and store for modular applications."""

from __future__ import annotations

from .caching import SettingsCacheRegion, TaggedMemoryCache
from .config import BaseConfig, TestConfig
from .context import SettingsContext, create_settings_context, create_settings_manager
from .exceptions import SettingNotRegisteredError, SettingsError, SettingValueError
from .models import ObjectSettingEntry, SettingDescriptor, SettingValueType
from .services import SettingsManager, SettingsManifest, SettingsRegistry, load_settings_manifest

__all__ = [
    "BaseConfig",
    "ObjectSettingEntry",
    "SettingDescriptor",
    "SettingNotRegisteredError",
    "SettingValueError",
    "SettingValueType",
    "SettingsCacheRegion",
    "SettingsContext",
    "SettingsError",
    "SettingsManager",
    "SettingsManifest",
    "SettingsRegistry",
    "TaggedMemoryCache",
    "TestConfig",
    "create_settings_context",
    "create_settings_manager",
    "load_settings_manifest",
]
