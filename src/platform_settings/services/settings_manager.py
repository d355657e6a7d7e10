"""Object-scoped settings backed by the database and an in-memory cache.

Reads are cache-aside: results are cached per (operation, names, objects)
and tagged with one token per returned setting; reads across objects also
carry one token per requested name. Saves and removals go to the
database in a single transaction and then expire the tokens of every setting
they touched.

Storage calls are synchronous SQLModel work and run in worker threads so the
event loop is not blocked while waiting on the database.
"""

from __future__ import annotations

import asyncio
from typing import Hashable, Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..caching.memory_cache import CacheEntryOptions, TaggedMemoryCache
from ..caching.settings_region import SettingsCacheRegion
from ..domain.repositories.settings import SettingsRepositoryFactory
from ..logging_config import get_logger
from ..models.descriptor import SettingDescriptor
from ..models.entry import ObjectSettingEntry
from ..models.setting import SettingEntity
from .manifest import SettingsManifest
from .registry import SettingsRegistry

logger = get_logger("settings_manager")


class SettingsManager:
    """Reads and writes setting values for (object_type, object_id) pairs."""

    def __init__(
        self,
        repository_factory: SettingsRepositoryFactory,
        cache: TaggedMemoryCache,
        registry: Optional[SettingsRegistry] = None,
    ):
        self._repository_factory = repository_factory
        self.cache_region = SettingsCacheRegion(cache)
        self.registry = registry if registry is not None else SettingsRegistry()

    # Registration ---------------------------------------------------------

    def register_settings(
        self, descriptors: Iterable[SettingDescriptor], module_id: Optional[str] = None
    ) -> None:
        self.registry.register_settings(descriptors, module_id)

    def register_settings_for_type(
        self, descriptors: Iterable[SettingDescriptor], type_name: str
    ) -> None:
        self.registry.register_settings_for_type(descriptors, type_name)

    def register_manifest(self, manifest: SettingsManifest) -> None:
        self.registry.register_manifest(manifest)

    def get_settings_for_type(self, type_name: str) -> tuple[SettingDescriptor, ...]:
        return self.registry.get_settings_for_type(type_name)

    def get_settings_for_types(self, type_names: Iterable[str]) -> tuple[SettingDescriptor, ...]:
        return self.registry.get_settings_for_types(type_names)

    @property
    def all_registered_settings(self) -> tuple[SettingDescriptor, ...]:
        return self.registry.all_registered_settings

    # Reads ----------------------------------------------------------------

    async def get_object_setting(
        self, name: str, object_type: Optional[str] = None, object_id: Optional[str] = None
    ) -> Optional[ObjectSettingEntry]:
        if name is None:
            raise ValueError("name is required")
        entries = await self.get_object_settings([name], object_type, object_id)
        return entries[0] if entries else None

    async def get_object_settings(
        self,
        names: Iterable[str],
        object_type: Optional[str] = None,
        object_id: Optional[str] = None,
    ) -> list[ObjectSettingEntry]:
        """Return one entry per requested name, defaults where nothing is stored."""

        if names is None:
            raise ValueError("names is required")
        names = list(names)
        descriptors = self._resolve(names)
        if not descriptors:
            return []
        cache_key = self._cache_key(
            "get_object_settings", tuple(descriptors), object_type, object_id
        )

        async def load(options: CacheEntryOptions) -> dict[str, ObjectSettingEntry]:
            rows = await asyncio.to_thread(self._load_object_rows, object_type, object_id)
            rows_by_name: dict[str, SettingEntity] = {}
            for row in rows:
                rows_by_name.setdefault(row.name.lower(), row)

            entries: dict[str, ObjectSettingEntry] = {}
            for key, descriptor in descriptors.items():
                entry = ObjectSettingEntry.from_descriptor(descriptor, object_type, object_id)
                row = rows_by_name.get(key)
                if row is not None:
                    entry = row.to_model(entry)
                entries[key] = entry
                options.add_expiration_token(SettingsCacheRegion.create_change_token(entry))
            return entries

        cached = await self.cache_region.cache.get_or_create_exclusive(cache_key, load)
        return [cached[name.lower()] for name in names]

    async def get_all_object_settings_by_types_and_ids(
        self,
        names: Iterable[str],
        object_types: Optional[Sequence[str]] = None,
        object_ids: Optional[Sequence[str]] = None,
    ) -> list[ObjectSettingEntry]:
        """Return every stored entry for ``names`` across the given objects.

        Only persisted values are returned; names with nothing stored for the
        requested objects contribute no entries.
        """

        if names is None:
            raise ValueError("names is required")
        names = list(names)
        descriptors = self._resolve(names)
        if not descriptors:
            return []
        types_key = tuple(object_types) if object_types is not None else None
        ids_key = tuple(object_ids) if object_ids is not None else None
        cache_key = self._cache_key(
            "get_all_object_settings_by_types_and_ids", tuple(descriptors), types_key, ids_key
        )

        async def load(options: CacheEntryOptions) -> dict[str, list[ObjectSettingEntry]]:
            rows = await asyncio.to_thread(self._load_rows_for_objects, object_types, object_ids)
            entries: dict[str, list[ObjectSettingEntry]] = {}
            for key, descriptor in descriptors.items():
                # Rows stored later for these objects must evict this result too.
                options.add_expiration_token(SettingsCacheRegion.create_name_token(key))
                matched = []
                for row in rows:
                    if row.name.lower() != key:
                        continue
                    entry = row.to_model(ObjectSettingEntry.from_descriptor(descriptor))
                    options.add_expiration_token(SettingsCacheRegion.create_change_token(entry))
                    matched.append(entry)
                entries[key] = matched
            return entries

        cached = await self.cache_region.cache.get_or_create_exclusive(cache_key, load)
        result: list[ObjectSettingEntry] = []
        seen: set[str] = set()
        for name in names:
            key = name.lower()
            if key in seen:
                continue
            seen.add(key)
            result.extend(cached[key])
        return result

    # Writes ---------------------------------------------------------------

    async def save_object_settings(self, entries: Iterable[ObjectSettingEntry]) -> None:
        """Insert or update the stored values of ``entries``.

        Entries without values are skipped; use ``remove_object_settings``
        to delete.
        """

        if entries is None:
            raise ValueError("entries is required")
        entries = list(entries)
        await asyncio.to_thread(self._save_entries, entries)
        self.clear_cache(entries)

    async def remove_object_settings(self, entries: Iterable[ObjectSettingEntry]) -> None:
        """Delete the stored rows for ``entries``; missing rows are ignored."""

        if entries is None:
            raise ValueError("entries is required")
        entries = list(entries)
        await asyncio.to_thread(self._remove_entries, entries)
        self.clear_cache(entries)

    def clear_cache(self, entries: Iterable[ObjectSettingEntry]) -> None:
        for entry in entries:
            self.cache_region.expire_setting(entry)

    # Internals ------------------------------------------------------------

    def _resolve(self, names: list[str]) -> dict[str, SettingDescriptor]:
        """Map each distinct lower-cased name to its descriptor, sorted by name."""

        descriptors: dict[str, SettingDescriptor] = {}
        for name in names:
            if name is None:
                raise ValueError("names must not contain None")
            descriptors[name.lower()] = self.registry.require(name)
        return dict(sorted(descriptors.items()))

    def _cache_key(self, operation: str, *parts: Hashable) -> Hashable:
        return (type(self).__name__, operation, *parts)

    def _load_object_rows(
        self, object_type: Optional[str], object_id: Optional[str]
    ) -> list[SettingEntity]:
        with self._repository_factory() as repository:
            repository.disable_changes_tracking()
            return repository.get_object_settings(object_type, object_id)

    def _load_rows_for_objects(
        self, object_types: Optional[Sequence[str]], object_ids: Optional[Sequence[str]]
    ) -> list[SettingEntity]:
        with self._repository_factory() as repository:
            repository.disable_changes_tracking()
            return repository.get_all_object_settings_by_types_and_ids(object_types, object_ids)

    def _save_entries(self, entries: list[ObjectSettingEntry]) -> None:
        names = {entry.name for entry in entries}
        try:
            with self._repository_factory() as repository:
                existing = repository.get_settings_by_names(names)
                for entry in entries:
                    if not entry.has_values:
                        continue
                    modified = SettingEntity.from_model(entry)
                    original = next((row for row in existing if row.matches(entry)), None)
                    if original is not None:
                        modified.patch(original)
                    else:
                        repository.add(modified)
                        existing.append(modified)
                repository.commit()
        except SQLAlchemyError:
            logger.exception("Saving settings failed", extra={"names": sorted(names)})
            raise

    def _remove_entries(self, entries: list[ObjectSettingEntry]) -> None:
        try:
            with self._repository_factory() as repository:
                for entry in entries:
                    row = repository.find_setting(entry.name, entry.object_type, entry.object_id)
                    if row is not None:
                        repository.remove(row)
                repository.commit()
        except SQLAlchemyError:
            logger.exception(
                "Removing settings failed",
                extra={"names": sorted({entry.name for entry in entries})},
            )
            raise


__all__ = ["SettingsManager"]
