"""Repository protocol definitions for domain layer."""

from .settings import SettingsRepository, SettingsRepositoryFactory

__all__ = ["SettingsRepository", "SettingsRepositoryFactory"]
