"""Registry of setting descriptors declared by modules."""

from __future__ import annotations

from typing import Iterable, Optional

from ..exceptions import SettingNotRegisteredError
from ..logging_config import get_logger
from ..models.descriptor import SettingDescriptor
from .manifest import SettingsManifest

logger = get_logger("registry")


class SettingsRegistry:
    """Descriptors by name and by owning type, both case-insensitive.

    Built once during startup and handed to the settings manager.
    Registration is not synchronized.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, SettingDescriptor] = {}
        self._by_type: dict[str, tuple[SettingDescriptor, ...]] = {}

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def register_settings(
        self, descriptors: Iterable[SettingDescriptor], module_id: Optional[str] = None
    ) -> None:
        """Register descriptors owned by ``module_id``; a later name replaces an earlier one."""

        if descriptors is None:
            raise ValueError("descriptors is required")
        count = 0
        for descriptor in descriptors:
            descriptor.module_id = module_id
            self._by_name[descriptor.key] = descriptor
            count += 1
        logger.info("Registered settings", extra={"module_id": module_id, "count": count})

    def register_settings_for_type(
        self, descriptors: Iterable[SettingDescriptor], type_name: str
    ) -> None:
        """Merge descriptors into the set applicable to ``type_name``."""

        if descriptors is None:
            raise ValueError("descriptors is required")
        key = type_name.lower()
        merged: dict[SettingDescriptor, None] = dict.fromkeys(self._by_type.get(key, ()))
        for descriptor in descriptors:
            merged.setdefault(descriptor, None)
        self._by_type[key] = tuple(merged)

    def register_manifest(self, manifest: SettingsManifest) -> None:
        self.register_settings(manifest.settings, manifest.module_id)
        for type_name in manifest.types:
            self.register_settings_for_type(manifest.descriptors_for_type(type_name), type_name)

    def get_settings_for_type(self, type_name: str) -> tuple[SettingDescriptor, ...]:
        return self._by_type.get(type_name.lower(), ())

    def get_settings_for_types(self, type_names: Iterable[str]) -> tuple[SettingDescriptor, ...]:
        """Union of the descriptors registered for any of ``type_names``."""

        merged: dict[SettingDescriptor, None] = {}
        for type_name in type_names:
            for descriptor in self.get_settings_for_type(type_name):
                merged.setdefault(descriptor, None)
        return tuple(merged)

    @property
    def all_registered_settings(self) -> tuple[SettingDescriptor, ...]:
        return tuple(self._by_name.values())

    def find(self, name: str) -> Optional[SettingDescriptor]:
        """Return the descriptor registered under ``name``, or None."""
        return self._by_name.get(name.lower())

    def require(self, name: str) -> SettingDescriptor:
        """Return the descriptor registered under ``name`` or raise."""

        descriptor = self.find(name)
        if descriptor is None:
            raise SettingNotRegisteredError(name)
        return descriptor


__all__ = ["SettingsRegistry"]
