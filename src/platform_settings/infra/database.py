"""Database infrastructure for the settings store."""

from __future__ import annotations

from typing import Callable, Tuple

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""
    engine_options = config.sqlalchemy_engine_options()
    return create_engine(config.DATABASE_URL, **engine_options)


def init_database(engine: Engine) -> None:
    """Create the setting tables if they do not exist."""
    # Import models so their tables are registered on the metadata
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> Callable[[], Session]:
    """Create a factory returning plain sessions bound to ``engine``.

    Repositories own commit and rollback, so sessions are handed out bare.
    """

    def factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return factory


def bootstrap_database(
    config: BaseConfig | None = None,
) -> Tuple[Engine, Callable[[], Session]]:
    """Create the engine, initialize the schema and build a session factory.

    Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
