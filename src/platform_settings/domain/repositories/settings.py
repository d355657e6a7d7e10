"""Settings repository protocol."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol, Sequence

from ...models.setting import SettingEntity


class SettingsRepository(Protocol):
    """Scoped unit of work over persisted setting rows.

    Instances are context managers: leaving the block releases the
    underlying session, rolling back anything not committed.
    """

    def __enter__(self) -> "SettingsRepository":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        ...

    def disable_changes_tracking(self) -> None:
        """Detach rows returned by later queries (read-only usage)."""
        ...

    def get_object_settings(
        self, object_type: Optional[str], object_id: Optional[str]
    ) -> list[SettingEntity]:
        """Return every row stored for one object."""
        ...

    def get_all_object_settings_by_types_and_ids(
        self,
        object_types: Optional[Sequence[str]],
        object_ids: Optional[Sequence[str]],
    ) -> list[SettingEntity]:
        """Return rows across several object types and ids."""
        ...

    def get_settings_by_names(self, names: Iterable[str]) -> list[SettingEntity]:
        """Return rows whose name is one of ``names`` for any object."""
        ...

    def find_setting(
        self, name: str, object_type: Optional[str], object_id: Optional[str]
    ) -> Optional[SettingEntity]:
        """Return the row with this exact identity, if any."""
        ...

    def add(self, setting: SettingEntity) -> None:
        ...

    def remove(self, setting: SettingEntity) -> None:
        ...

    def commit(self) -> None:
        """Commit the pending unit of work."""
        ...


SettingsRepositoryFactory = Callable[[], SettingsRepository]
