from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence


class CacheStore(ABC):
    """Key-value store shared by the refresh job (writer) and the API (readers).

    ``mset`` must be atomic as observed by ``mget``: a reader sees either all
    keys of a write or none of them.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None when it was never written."""
        ...

    @abstractmethod
    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        """Return values positionally aligned with ``keys``."""
        ...

    @abstractmethod
    async def mset(self, mapping: Mapping[str, str]) -> None:
        """Write every key of ``mapping`` in one atomic operation."""
        ...

    async def close(self) -> None:
        return None
