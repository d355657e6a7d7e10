"""Setting metadata declared by modules at startup."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional

from ..exceptions import SettingValueError

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


class SettingValueType(str, Enum):
    """Declared value type of a setting."""

    SHORT_TEXT = "ShortText"
    LONG_TEXT = "LongText"
    INTEGER = "Integer"
    POSITIVE_INTEGER = "PositiveInteger"
    DECIMAL = "Decimal"
    DATE_TIME = "DateTime"
    BOOLEAN = "Boolean"
    SECURE_STRING = "SecureString"
    JSON = "Json"

    @classmethod
    def parse(cls, raw: "SettingValueType | str | None") -> "SettingValueType":
        """Resolve a value type from its name, case-insensitively."""

        if raw is None:
            return cls.SHORT_TEXT
        if isinstance(raw, cls):
            return raw
        lowered = str(raw).strip().lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        raise SettingValueError(f"Unknown setting value type: {raw!r}")

    def coerce(self, raw: Any) -> Any:
        """Convert loosely typed input into the Python value for this type."""

        if raw is None:
            return None
        try:
            return _COERCERS[self](raw)
        except SettingValueError:
            raise
        except (TypeError, ValueError, InvalidOperation) as exc:
            raise SettingValueError(f"Cannot convert {raw!r} to {self.value}") from exc


def _to_text(raw: Any) -> str:
    return raw if isinstance(raw, str) else str(raw)


def _to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise TypeError("booleans are not integers here")
    if isinstance(raw, float) and not raw.is_integer():
        raise ValueError("fractional value")
    return int(raw)


def _to_positive_int(raw: Any) -> int:
    value = _to_int(raw)
    if value < 0:
        raise SettingValueError(f"{value} is not a positive integer")
    return value


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise TypeError("booleans are not decimals here")
    if isinstance(raw, Decimal):
        return raw
    return Decimal(str(raw))


def _to_datetime(raw: Any) -> datetime:
    value = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw).strip())
    # Naive input is taken as UTC; stored values are always aware.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw != 0
    lowered = str(raw).strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _to_json(raw: Any) -> Any:
    if isinstance(raw, str):
        return json.loads(raw)
    # Reject values that cannot be persisted later on.
    json.dumps(raw)
    return raw


_COERCERS = {
    SettingValueType.SHORT_TEXT: _to_text,
    SettingValueType.LONG_TEXT: _to_text,
    SettingValueType.SECURE_STRING: _to_text,
    SettingValueType.INTEGER: _to_int,
    SettingValueType.POSITIVE_INTEGER: _to_positive_int,
    SettingValueType.DECIMAL: _to_decimal,
    SettingValueType.DATE_TIME: _to_datetime,
    SettingValueType.BOOLEAN: _to_bool,
    SettingValueType.JSON: _to_json,
}


@dataclass(eq=False)
class SettingDescriptor:
    """Metadata for one named setting.

    Descriptors compare and hash by name, case-insensitively, so the same
    setting registered twice for a type collapses to a single entry.
    """

    name: str
    value_type: SettingValueType = SettingValueType.SHORT_TEXT
    module_id: Optional[str] = None
    group_name: Optional[str] = None
    display_name: Optional[str] = None
    default_value: Any = None
    allowed_values: tuple[Any, ...] = field(default_factory=tuple)
    is_dictionary: bool = False
    is_hidden: bool = False
    is_public: bool = False
    restart_required: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Setting descriptor name must not be empty")
        self.value_type = SettingValueType.parse(self.value_type)
        self.allowed_values = tuple(self.value_type.coerce(v) for v in self.allowed_values or ())
        self.default_value = self.value_type.coerce(self.default_value)

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.name.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SettingDescriptor):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SettingDescriptor":
        """Build a descriptor from a manifest entry (camelCase or snake_case keys)."""

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return default

        name = pick("name")
        if not name:
            raise ValueError("Manifest setting is missing a name")
        return cls(
            name=name,
            value_type=SettingValueType.parse(pick("value_type", "valueType")),
            group_name=pick("group_name", "groupName"),
            display_name=pick("display_name", "displayName"),
            default_value=pick("default_value", "defaultValue"),
            allowed_values=tuple(pick("allowed_values", "allowedValues", default=()) or ()),
            is_dictionary=bool(pick("is_dictionary", "isDictionary", default=False)),
            is_hidden=bool(pick("is_hidden", "isHidden", default=False)),
            is_public=bool(pick("is_public", "isPublic", default=False)),
            restart_required=bool(pick("restart_required", "restartRequired", default=False)),
        )


__all__ = ["SettingDescriptor", "SettingValueType"]
