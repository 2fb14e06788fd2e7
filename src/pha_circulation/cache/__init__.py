from __future__ import annotations

from typing import TYPE_CHECKING

from .base import CacheStore
from .keys import CacheKeys, figure_field, record_field_names
from .memory import MemoryCache
from .redis_store import RedisCache

if TYPE_CHECKING:
    from ..settings import CirculationSettings


def create_cache(settings: CirculationSettings) -> CacheStore:
    """Build the cache store selected by ``cache_backend``."""
    from ..settings import CacheBackend

    if settings.cache_backend is CacheBackend.MEMORY:
        return MemoryCache()
    return RedisCache.from_url(settings.redis_url_required)


__all__ = [
    "CacheKeys",
    "CacheStore",
    "MemoryCache",
    "RedisCache",
    "create_cache",
    "figure_field",
    "record_field_names",
]
