"""Configuration objects for the settings store."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return float(value)


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "platform-settings"
    DB_FILENAME = "platform_settings.db"
    ENV_PREFIX = "PLATFORM_SETTINGS_"
    DEFAULT_CACHE_MAX_ENTRIES = 10_000

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool(f"{self.ENV_PREFIX}DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv(f"{self.ENV_PREFIX}DATABASE_URL", self._build_sqlite_url())
        self.CACHE_ENABLED = _env_bool(f"{self.ENV_PREFIX}CACHE_ENABLED", default=True)
        self.CACHE_TTL_SECONDS = _env_float(f"{self.ENV_PREFIX}CACHE_TTL")
        self.CACHE_MAX_ENTRIES = int(
            os.getenv(f"{self.ENV_PREFIX}CACHE_MAX_ENTRIES", self.DEFAULT_CACHE_MAX_ENTRIES)
        )
        if self.CACHE_TTL_SECONDS is not None and self.CACHE_TTL_SECONDS <= 0:
            raise ValueError(f"{self.ENV_PREFIX}CACHE_TTL must be a positive number of seconds.")
        if self.CACHE_MAX_ENTRIES < 1:
            raise ValueError(f"{self.ENV_PREFIX}CACHE_MAX_ENTRIES must be at least 1.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv(f"{self.ENV_PREFIX}DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = Path(self.DATA_DIR) / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # Storage calls are dispatched to worker threads.
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options


class TestConfig(BaseConfig):
    """Configuration pointing at a throwaway SQLite file."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, data_dir: str | Path | None = None) -> None:
        if data_dir is None:
            data_dir = tempfile.mkdtemp(prefix="platform-settings-")
        self._data_root = Path(data_dir)
        super().__init__()
        self.DEV_MODE = True
        self.DATABASE_URL = self._build_sqlite_url()

    def _resolve_data_dir(self) -> Path:
        self._data_root.mkdir(parents=True, exist_ok=True)
        return self._data_root.resolve()


__all__ = ["BaseConfig", "TestConfig"]
