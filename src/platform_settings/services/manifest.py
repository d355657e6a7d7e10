"""Module settings manifests.

A manifest is a JSON document a module ships to declare its settings::

    {
        "module_id": "cart",
        "settings": [
            {"name": "Cart.MaxItems", "valueType": "Integer", "defaultValue": 50}
        ],
        "types": {"Cart": ["Cart.MaxItems"]}
    }

``types`` lists, per owning type, the names of settings that apply to it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from ..models.descriptor import SettingDescriptor


@dataclass
class SettingsManifest:
    """Settings declared by one module."""

    module_id: str | None
    settings: list[SettingDescriptor] = field(default_factory=list)
    types: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SettingsManifest":
        raw_settings = data.get("settings") or []
        if not isinstance(raw_settings, list):
            raise ValueError("Manifest 'settings' must be a list")
        raw_types = data.get("types") or {}
        if not isinstance(raw_types, dict):
            raise ValueError("Manifest 'types' must be an object")

        settings = [SettingDescriptor.from_dict(item) for item in raw_settings]
        known = {descriptor.key for descriptor in settings}
        types: dict[str, list[str]] = {}
        for type_name, names in raw_types.items():
            for name in names:
                if name.lower() not in known:
                    raise ValueError(
                        f"Manifest type {type_name!r} references undeclared setting {name!r}"
                    )
            types[type_name] = list(names)

        module_id = data.get("module_id", data.get("moduleId"))
        return cls(module_id=module_id, settings=settings, types=types)

    def descriptors_for_type(self, type_name: str) -> list[SettingDescriptor]:
        by_key = {descriptor.key: descriptor for descriptor in self.settings}
        return [by_key[name.lower()] for name in self.types.get(type_name, [])]


def load_settings_manifest(path: str | Path) -> SettingsManifest:
    """Read and validate a manifest file."""

    manifest_path = Path(path)
    with manifest_path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{manifest_path} does not contain a JSON object")
    return SettingsManifest.from_dict(data)


__all__ = ["SettingsManifest", "load_settings_manifest"]
