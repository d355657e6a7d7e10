"""Resolved setting values scoped to an object."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .descriptor import SettingDescriptor, SettingValueType


@dataclass
class ObjectSettingEntry:
    """A setting resolved for a specific (object_type, object_id) pair.

    ``object_type`` and ``object_id`` are both ``None`` for global settings.
    """

    name: str
    value_type: SettingValueType = SettingValueType.SHORT_TEXT
    object_type: Optional[str] = None
    object_id: Optional[str] = None
    value: Any = None
    default_value: Any = None
    allowed_values: list[Any] = field(default_factory=list)
    is_dictionary: bool = False
    module_id: Optional[str] = None
    group_name: Optional[str] = None
    is_hidden: bool = False
    is_public: bool = False
    restart_required: bool = False

    @classmethod
    def from_descriptor(
        cls,
        descriptor: SettingDescriptor,
        object_type: Optional[str] = None,
        object_id: Optional[str] = None,
    ) -> "ObjectSettingEntry":
        """Create an entry carrying the descriptor's metadata and default value."""

        return cls(
            name=descriptor.name,
            value_type=descriptor.value_type,
            object_type=object_type,
            object_id=object_id,
            value=descriptor.default_value,
            default_value=descriptor.default_value,
            allowed_values=list(descriptor.allowed_values),
            is_dictionary=descriptor.is_dictionary,
            module_id=descriptor.module_id,
            group_name=descriptor.group_name,
            is_hidden=descriptor.is_hidden,
            is_public=descriptor.is_public,
            restart_required=descriptor.restart_required,
        )

    @property
    def has_values(self) -> bool:
        """True when there is something to persist for this entry."""

        if self.value is not None:
            return True
        return self.is_dictionary and bool(self.allowed_values)

    @property
    def identity(self) -> tuple[str, Optional[str], Optional[str]]:
        """(name, object_type, object_id) with the name lower-cased."""
        return (self.name.lower(), self.object_type, self.object_id)


__all__ = ["ObjectSettingEntry"]
