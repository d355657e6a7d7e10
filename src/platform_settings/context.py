"""Application context wiring the settings store together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .caching.memory_cache import TaggedMemoryCache
from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import create_settings_repository_factory
from .services.registry import SettingsRegistry
from .services.settings_manager import SettingsManager


@dataclass
class SettingsContext:
    """Everything a host application needs to read and write settings."""

    config: BaseConfig
    engine: Engine
    session_factory: Callable[[], Session]
    registry: SettingsRegistry
    cache: TaggedMemoryCache
    manager: SettingsManager

    def dispose(self) -> None:
        self.cache.clear()
        self.engine.dispose()


def create_settings_context(
    config: Optional[BaseConfig] = None,
    registry: Optional[SettingsRegistry] = None,
) -> SettingsContext:
    """Create the engine, schema, cache and manager from configuration."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    cache: TaggedMemoryCache = TaggedMemoryCache(
        enabled=config.CACHE_ENABLED,
        ttl_seconds=config.CACHE_TTL_SECONDS,
        max_entries=config.CACHE_MAX_ENTRIES,
    )
    registry = registry if registry is not None else SettingsRegistry()
    manager = SettingsManager(
        create_settings_repository_factory(session_factory), cache, registry
    )

    return SettingsContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        registry=registry,
        cache=cache,
        manager=manager,
    )


def create_settings_manager(config: Optional[BaseConfig] = None) -> SettingsManager:
    return create_settings_context(config).manager


__all__ = ["SettingsContext", "create_settings_context", "create_settings_manager"]
