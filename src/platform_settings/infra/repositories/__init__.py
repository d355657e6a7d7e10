"""Concrete repository implementations using SQLModel."""

from .settings import SQLModelSettingsRepository, create_settings_repository_factory

__all__ = ["SQLModelSettingsRepository", "create_settings_repository_factory"]
