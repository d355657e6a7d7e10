"""Cache region for object-scoped settings."""

from __future__ import annotations

from ..models.entry import ObjectSettingEntry
from .memory_cache import TaggedMemoryCache


class SettingsCacheRegion:
    """Maps setting identities to cache expiration tokens.

    Object type and id are rendered with ``repr`` so ``None`` and ``""``
    stay distinct, matching how cache keys treat them.
    """

    TOKEN_PREFIX = "setting"
    NAME_TOKEN_PREFIX = "setting-name"

    def __init__(self, cache: TaggedMemoryCache):
        self.cache = cache

    @classmethod
    def create_change_token(cls, entry: ObjectSettingEntry) -> str:
        """Token shared by every cached response that includes ``entry``."""

        name, object_type, object_id = entry.identity
        return f"{cls.TOKEN_PREFIX}:{object_type!r}:{object_id!r}:{name}"

    @classmethod
    def create_name_token(cls, name: str) -> str:
        """Token for cached responses that depend on every row named ``name``."""

        return f"{cls.NAME_TOKEN_PREFIX}:{name.lower()}"

    def expire_setting(self, entry: ObjectSettingEntry) -> int:
        removed = self.cache.expire_token(self.create_change_token(entry))
        return removed + self.cache.expire_token(self.create_name_token(entry.name))

    def expire_region(self) -> None:
        self.cache.clear()
