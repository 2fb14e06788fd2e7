from __future__ import annotations

from collections.abc import Mapping, Sequence

from .base import CacheStore


class MemoryCache(CacheStore):
    """Process-local store for single-process deployments and dry runs.

    Each method completes without awaiting, so within one event loop a write
    is never interleaved with a read.
    """

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    @property
    def backend_name(self) -> str:
        return "memory"

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        return [self._data.get(key) for key in keys]

    async def mset(self, mapping: Mapping[str, str]) -> None:
        self._data.update(mapping)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)
