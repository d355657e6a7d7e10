"""Setting metadata, resolved entries and SQLModel table exports."""

from .descriptor import SettingDescriptor, SettingValueType
from .entry import ObjectSettingEntry
from .setting import SettingEntity, SettingValueEntity

__all__ = [
    "ObjectSettingEntry",
    "SettingDescriptor",
    "SettingEntity",
    "SettingValueEntity",
    "SettingValueType",
]
