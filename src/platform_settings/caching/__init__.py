"""Cache primitives used by the settings manager."""

from .memory_cache import CacheEntryOptions, CacheStats, TaggedMemoryCache
from .settings_region import SettingsCacheRegion

__all__ = ["CacheEntryOptions", "CacheStats", "SettingsCacheRegion", "TaggedMemoryCache"]
