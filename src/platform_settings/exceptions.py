"""Errors raised by the settings store."""

from __future__ import annotations


class SettingsError(Exception):
    """Base class for settings store failures."""


class SettingNotRegisteredError(SettingsError):
    """A setting name was requested that no module registered."""

    def __init__(self, name: str):
        super().__init__(f"Setting with name {name} is not registered")
        self.name = name


class SettingValueError(SettingsError, ValueError):
    """A value could not be converted to the setting's declared type."""


__all__ = ["SettingsError", "SettingNotRegisteredError", "SettingValueError"]
