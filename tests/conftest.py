"""Pytest configuration and shared fixtures for platform-settings tests.

Each test gets its own SQLite file with the setting tables created, a fresh
descriptor registry and an empty cache.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from platform_settings.caching import TaggedMemoryCache
from platform_settings.infra.repositories import SQLModelSettingsRepository
from platform_settings.models import (  # noqa: F401  # registers tables on the metadata
    ObjectSettingEntry,
    SettingDescriptor,
    SettingEntity,
    SettingValueEntity,
    SettingValueType,
)
from platform_settings.services import SettingsManager, SettingsRegistry

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to the test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Return a callable producing new sessions on the test database."""

    def factory() -> Session:
        return Session(db_engine, expire_on_commit=False)

    return factory


class CountingRepositoryFactory:
    """Repository factory that records how many scopes were opened."""

    repository_class = SQLModelSettingsRepository

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.repository_class(self.session_factory())


@pytest.fixture
def repository_factory(session_factory) -> CountingRepositoryFactory:
    return CountingRepositoryFactory(session_factory)


@pytest.fixture
def stored_rows(session_factory):
    """Return a callable reading every persisted setting row from the database."""

    def _stored_rows() -> list[SettingEntity]:
        with session_factory() as session:
            rows = list(session.exec(select(SettingEntity)).all())
            session.expunge_all()
            return rows

    return _stored_rows


# =============================================================================
# Registry / Manager Fixtures
# =============================================================================


@pytest.fixture
def registry() -> SettingsRegistry:
    """Registry holding a small set of cart and UI settings."""

    registry = SettingsRegistry()
    max_items = SettingDescriptor(
        name="MaxItems", value_type=SettingValueType.INTEGER, default_value=50
    )
    enabled = SettingDescriptor(
        name="Enabled", value_type=SettingValueType.BOOLEAN, default_value=False
    )
    registry.register_settings([max_items, enabled], module_id="cart")
    registry.register_settings(
        [
            SettingDescriptor(
                name="Theme",
                default_value="light",
                allowed_values=("light", "dark"),
            ),
            SettingDescriptor(name="Tags", is_dictionary=True),
            SettingDescriptor(name="Layout", value_type=SettingValueType.JSON),
        ],
        module_id="ui",
    )
    registry.register_settings_for_type([max_items, enabled], "Cart")
    return registry


@pytest.fixture
def cache() -> TaggedMemoryCache:
    return TaggedMemoryCache()


@pytest.fixture
def manager(repository_factory, cache, registry) -> SettingsManager:
    return SettingsManager(repository_factory, cache, registry)


@pytest.fixture
def make_entry(registry):
    """Factory for entries built from registered descriptors."""

    def _make_entry(name, object_type=None, object_id=None, **changes) -> ObjectSettingEntry:
        entry = ObjectSettingEntry.from_descriptor(registry.require(name), object_type, object_id)
        for field_name, value in changes.items():
            setattr(entry, field_name, value)
        return entry

    return _make_entry
