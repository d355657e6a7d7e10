"""Persisted setting rows and their typed value rows."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Optional
from uuid import uuid4

from sqlalchemy import Column, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from .descriptor import SettingValueType
from .entry import ObjectSettingEntry

# Storage column used for each declared value type.
_VALUE_COLUMNS: dict[SettingValueType, str] = {
    SettingValueType.SHORT_TEXT: "short_text_value",
    SettingValueType.SECURE_STRING: "short_text_value",
    SettingValueType.LONG_TEXT: "long_text_value",
    SettingValueType.JSON: "long_text_value",
    SettingValueType.INTEGER: "integer_value",
    SettingValueType.POSITIVE_INTEGER: "integer_value",
    SettingValueType.DECIMAL: "decimal_value",
    SettingValueType.BOOLEAN: "boolean_value",
    SettingValueType.DATE_TIME: "datetime_value",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class SettingEntity(SQLModel, table=True):
    """One setting value set, keyed by (name, object_type, object_id)."""

    __tablename__: ClassVar[str] = "platform_setting"
    __table_args__ = (
        UniqueConstraint("name", "object_type", "object_id", name="uq_platform_setting_identity"),
    )

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=128)
    name: str = Field(index=True, nullable=False, max_length=128)
    object_type: Optional[str] = Field(default=None, index=True, max_length=128)
    object_id: Optional[str] = Field(default=None, index=True, max_length=128)
    created_date: datetime = Field(default_factory=_utcnow, nullable=False)
    modified_date: Optional[datetime] = Field(default=None)

    setting_values: list["SettingValueEntity"] = Relationship(
        back_populates="setting",
        sa_relationship=relationship(
            "SettingValueEntity",
            back_populates="setting",
            cascade="all, delete-orphan",
            lazy="selectin",
        ),
    )

    def matches(self, entry: ObjectSettingEntry) -> bool:
        """Return True when this row stores ``entry``'s identity."""

        return (
            self.name.lower() == entry.name.lower()
            and self.object_type == entry.object_type
            and self.object_id == entry.object_id
        )

    def to_model(self, entry: ObjectSettingEntry) -> ObjectSettingEntry:
        """Copy the persisted identity and values onto ``entry`` and return it."""

        entry.object_type = self.object_type
        entry.object_id = self.object_id
        values = [row.get_value() for row in self.setting_values]
        if entry.is_dictionary:
            entry.allowed_values = values
        else:
            entry.value = values[0] if values else None
        return entry

    @classmethod
    def from_model(cls, entry: ObjectSettingEntry) -> "SettingEntity":
        """Build a detached row holding ``entry``'s values."""

        value_type = SettingValueType.parse(entry.value_type)
        if entry.is_dictionary:
            raw_values = list(entry.allowed_values)
        else:
            raw_values = [] if entry.value is None else [entry.value]

        entity = cls(name=entry.name, object_type=entry.object_type, object_id=entry.object_id)
        entity.setting_values = [
            SettingValueEntity.from_value(value_type, raw) for raw in raw_values
        ]
        return entity

    def patch(self, target: "SettingEntity") -> None:
        """Apply this row's identity and values onto ``target``, keeping its id.

        Value rows already present on ``target`` with the same content are
        kept; the rest are replaced by copies of this row's values, so this
        row never becomes reachable from ``target``.
        """

        target.name = self.name
        target.object_type = self.object_type
        target.object_id = self.object_id
        target.modified_date = _utcnow()

        incoming = list(self.setting_values)
        incoming_keys = [value.comparison_key() for value in incoming]
        for existing in list(target.setting_values):
            if existing.comparison_key() not in incoming_keys:
                target.setting_values.remove(existing)

        present = {value.comparison_key() for value in target.setting_values}
        for value in incoming:
            if value.comparison_key() not in present:
                target.setting_values.append(value.detached_copy())
                present.add(value.comparison_key())


class SettingValueEntity(SQLModel, table=True):
    """A single typed value belonging to a setting row."""

    __tablename__: ClassVar[str] = "platform_setting_value"

    id: Optional[int] = Field(default=None, primary_key=True)
    setting_id: Optional[str] = Field(
        default=None, foreign_key="platform_setting.id", index=True, max_length=128
    )
    value_type: str = Field(nullable=False, max_length=64)
    short_text_value: Optional[str] = Field(default=None, max_length=512)
    long_text_value: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    integer_value: Optional[int] = Field(default=None)
    decimal_value: Optional[Decimal] = Field(default=None, max_digits=28, decimal_places=8)
    boolean_value: Optional[bool] = Field(default=None)
    datetime_value: Optional[datetime] = Field(default=None)

    setting: Optional["SettingEntity"] = Relationship(
        sa_relationship=relationship("SettingEntity", back_populates="setting_values")
    )

    @classmethod
    def from_value(cls, value_type: SettingValueType, raw: Any) -> "SettingValueEntity":
        row = cls(value_type=value_type.value)
        value = value_type.coerce(raw)
        if value_type is SettingValueType.JSON:
            value = json.dumps(value, sort_keys=True)
        setattr(row, _VALUE_COLUMNS[value_type], value)
        return row

    def get_value(self) -> Any:
        value_type = SettingValueType.parse(self.value_type)
        value = getattr(self, _VALUE_COLUMNS[value_type])
        if value_type is SettingValueType.JSON and value is not None:
            return json.loads(value)
        if value_type is SettingValueType.DECIMAL and value is not None:
            return Decimal(str(value))
        if value_type is SettingValueType.DATE_TIME and value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def detached_copy(self) -> "SettingValueEntity":
        """Return an unattached row holding the same typed value."""

        row = SettingValueEntity(value_type=self.value_type)
        column = _VALUE_COLUMNS[SettingValueType.parse(self.value_type)]
        setattr(row, column, getattr(self, column))
        return row

    def comparison_key(self) -> tuple[str, str]:
        column = _VALUE_COLUMNS[SettingValueType.parse(self.value_type)]
        return (self.value_type, str(getattr(self, column)))


__all__ = ["SettingEntity", "SettingValueEntity"]
