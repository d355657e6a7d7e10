"""SQLModel implementation of the settings repository."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.setting import SettingEntity


class SQLModelSettingsRepository:
    """Settings repository bound to a single session.

    Use as a context manager; the session is rolled back on error and
    always closed on exit. Nothing is committed unless ``commit`` is called.
    """

    def __init__(self, session: Session):
        self.session = session
        self._tracking = True

    def __enter__(self) -> "SQLModelSettingsRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.session.rollback()
        finally:
            self.session.close()

    def disable_changes_tracking(self) -> None:
        self._tracking = False

    def _fetch(self, statement) -> list[SettingEntity]:
        rows = list(self.session.exec(statement).all())
        if not self._tracking:
            self.session.expunge_all()
        return rows

    def get_object_settings(
        self, object_type: Optional[str], object_id: Optional[str]
    ) -> list[SettingEntity]:
        statement = select(SettingEntity).where(
            SettingEntity.object_type == object_type,
            SettingEntity.object_id == object_id,
        )
        return self._fetch(statement)

    def get_all_object_settings_by_types_and_ids(
        self,
        object_types: Optional[Sequence[str]],
        object_ids: Optional[Sequence[str]],
    ) -> list[SettingEntity]:
        statement = select(SettingEntity)
        if object_types is not None:
            statement = statement.where(SettingEntity.object_type.in_(list(object_types)))  # type: ignore[union-attr]
        if object_ids is not None:
            statement = statement.where(SettingEntity.object_id.in_(list(object_ids)))  # type: ignore[union-attr]
        return self._fetch(statement.order_by(SettingEntity.object_type, SettingEntity.object_id))

    def get_settings_by_names(self, names: Iterable[str]) -> list[SettingEntity]:
        lowered = sorted({name.lower() for name in names})
        if not lowered:
            return []
        statement = select(SettingEntity).where(func.lower(SettingEntity.name).in_(lowered))
        return self._fetch(statement)

    def find_setting(
        self, name: str, object_type: Optional[str], object_id: Optional[str]
    ) -> Optional[SettingEntity]:
        statement = select(SettingEntity).where(
            func.lower(SettingEntity.name) == name.lower(),
            SettingEntity.object_type == object_type,
            SettingEntity.object_id == object_id,
        )
        rows = self._fetch(statement)
        return rows[0] if rows else None

    def add(self, setting: SettingEntity) -> None:
        self.session.add(setting)

    def remove(self, setting: SettingEntity) -> None:
        self.session.delete(setting)

    def commit(self) -> None:
        self.session.commit()


def create_settings_repository_factory(
    session_factory: Callable[[], Session],
) -> Callable[[], SQLModelSettingsRepository]:
    """Return a zero-argument callable producing fresh scoped repositories."""

    def factory() -> SQLModelSettingsRepository:
        return SQLModelSettingsRepository(session_factory())

    return factory


__all__ = ["SQLModelSettingsRepository", "create_settings_repository_factory"]
