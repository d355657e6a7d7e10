"""In-memory cache with single-flight population and tag-based expiration.

Entries are created through ``get_or_create_exclusive``: concurrent callers
asking for the same key while it is being computed share one in-flight
computation. The factory attaches expiration tokens (tags) to the entry it
produces; ``expire_token`` later evicts every entry carrying a tag.

A tag expired while a computation that ends up carrying it is still running
keeps that result out of the cache. The value is still handed to the callers
that were waiting for it.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, Set, TypeVar

from ..logging_config import get_logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = get_logger("caching")


@dataclass
class CacheEntryOptions:
    """Handed to cache factories so they can tag the entry they produce."""

    ttl_seconds: Optional[float] = None
    tokens: Set[str] = field(default_factory=set)

    def add_expiration_token(self, token: str) -> None:
        self.tokens.add(token)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0


@dataclass
class _CachedItem(Generic[V]):
    value: V
    tokens: frozenset[str]
    expires_at: Optional[float] = None

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


def _consume_exception(task: asyncio.Future) -> None:
    # Mark a failure as retrieved when every caller has gone away.
    if not task.cancelled():
        task.exception()


class TaggedMemoryCache(Generic[K, V]):
    """Process-local cache keyed by ``K`` holding values of type ``V``."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        ttl_seconds: Optional[float] = None,
        max_entries: int = 10_000,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.stats = CacheStats()
        self._entries: "OrderedDict[K, _CachedItem[V]]" = OrderedDict()
        self._tag_index: Dict[str, Set[K]] = {}
        self._inflight: Dict[K, asyncio.Future] = {}
        # Tag -> expiration sequence number, kept only while computations run.
        self._expired_tags: Dict[str, int] = {}
        self._sequence = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        item = self._entries.get(key)  # type: ignore[arg-type]
        return item is not None and not item.is_expired

    def get(self, key: K) -> Optional[V]:
        """Return the cached value for ``key`` or None."""

        item = self._entries.get(key)
        if item is None:
            return None
        if item.is_expired:
            self._discard(key)
            return None
        return item.value

    async def get_or_create_exclusive(
        self, key: K, factory: Callable[[CacheEntryOptions], Awaitable[V]]
    ) -> V:
        """Return the cached value, computing it at most once per key at a time."""

        if not self.enabled:
            return await factory(CacheEntryOptions(ttl_seconds=self.ttl_seconds))

        item = self._entries.get(key)
        if item is not None and not item.is_expired:
            self.stats.hits += 1
            return item.value
        if item is not None:
            self._discard(key)

        pending = self._inflight.get(key)
        if pending is not None:
            self.stats.hits += 1
            return await asyncio.shield(pending)

        self.stats.misses += 1
        logger.debug("Cache miss", extra={"cache_key": repr(key)})
        # The computation runs in its own task so that cancelling one caller
        # leaves the others waiting on it untouched.
        task = asyncio.ensure_future(self._populate(key, factory, self._sequence))
        task.add_done_callback(_consume_exception)
        self._inflight[key] = task
        return await asyncio.shield(task)

    async def _populate(
        self, key: K, factory: Callable[[CacheEntryOptions], Awaitable[V]], started_at: int
    ) -> V:
        options = CacheEntryOptions(ttl_seconds=self.ttl_seconds)
        try:
            value = await factory(options)
            if not self._expired_since(options.tokens, started_at):
                self._store(key, value, options)
            return value
        finally:
            self._inflight.pop(key, None)
            if not self._inflight:
                self._expired_tags.clear()

    def set(self, key: K, value: V, tokens: Optional[Set[str]] = None) -> None:
        """Store ``value`` directly under ``key``."""

        self._store(key, value, CacheEntryOptions(ttl_seconds=self.ttl_seconds, tokens=set(tokens or ())))

    def remove(self, key: K) -> bool:
        return self._discard(key)

    def expire_token(self, token: str) -> int:
        """Evict every entry tagged with ``token``; return how many were evicted."""

        if self._inflight:
            self._sequence += 1
            self._expired_tags[token] = self._sequence
        keys = self._tag_index.pop(token, set())
        removed = 0
        for key in list(keys):
            if self._discard(key):
                removed += 1
        if removed:
            self.stats.expirations += removed
            logger.debug("Expired cache entries", extra={"token": token, "count": removed})
        return removed

    def clear(self) -> None:
        self._entries.clear()
        self._tag_index.clear()

    def _expired_since(self, tokens: Set[str], started_at: int) -> bool:
        return any(self._expired_tags.get(token, -1) > started_at for token in tokens)

    def _store(self, key: K, value: V, options: CacheEntryOptions) -> None:
        self._discard(key)
        ttl = options.ttl_seconds
        item = _CachedItem(
            value=value,
            tokens=frozenset(options.tokens),
            expires_at=time.monotonic() + ttl if ttl else None,
        )
        self._entries[key] = item
        for token in item.tokens:
            self._tag_index.setdefault(token, set()).add(key)
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            self._discard(oldest)
            self.stats.evictions += 1
            logger.debug("Evicted cache entry", extra={"cache_key": repr(oldest)})

    def _discard(self, key: K) -> bool:
        item = self._entries.pop(key, None)
        if item is None:
            return False
        for token in item.tokens:
            keys = self._tag_index.get(token)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[token]
        return True


__all__ = ["CacheEntryOptions", "CacheStats", "TaggedMemoryCache"]
