"""Service module exports."""

from . import extensions, manifest, registry, settings_manager
from .manifest import SettingsManifest, load_settings_manifest
from .registry import SettingsRegistry
from .settings_manager import SettingsManager

__all__ = [
    "SettingsManager",
    "SettingsManifest",
    "SettingsRegistry",
    "extensions",
    "load_settings_manifest",
    "manifest",
    "registry",
    "settings_manager",
]
