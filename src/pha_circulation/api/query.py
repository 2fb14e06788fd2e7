"""Read path: serves whatever the last successful cycle committed."""

from __future__ import annotations

from collections.abc import Sequence

from ..cache import CacheKeys, CacheStore
from ..chains import ChainConfig
from ..constants import LAST_UPDATE_KEY
from ..errors import NotFound


class QueryService:
    """Pure cache lookups; never recomputes and never writes."""

    def __init__(
        self, cache: CacheStore, keys: CacheKeys, chains: Sequence[ChainConfig]
    ):
        self.cache = cache
        self.keys = keys
        self._fields = keys.record_fields(chains)

    async def get_circulation(self) -> str:
        """Return the persisted total circulation.

        Raises:
            NotFound: If no refresh cycle has committed yet.
        """
        key = self.keys.total_circulation
        value = await self.cache.get(key)
        if value is None:
            raise NotFound(key)
        return value

    async def get_all(self) -> dict[str, str | int | None]:
        """Return every persisted figure in one multi-key read.

        Keys that were never written come back as None.
        """
        values = await self.cache.mget([key for _, key in self._fields])
        record: dict[str, str | int | None] = {
            field: value for (field, _), value in zip(self._fields, values)
        }
        last_update = record.get(LAST_UPDATE_KEY)
        if isinstance(last_update, str):
            record[LAST_UPDATE_KEY] = int(last_update)
        return record
