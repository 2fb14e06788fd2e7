from __future__ import annotations

from collections.abc import Mapping, Sequence

import redis.asyncio as aioredis

from ..logger import get_logger
from .base import CacheStore

logger = get_logger(__name__)


class RedisCache(CacheStore):
    """Redis-backed store. ``MSET`` is atomic on the server."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_keepalive=True,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    @property
    def backend_name(self) -> str:
        return "redis"

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def mget(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []
        return await self._client.mget(list(keys))

    async def mset(self, mapping: Mapping[str, str]) -> None:
        if not mapping:
            return
        await self._client.mset(dict(mapping))
        logger.debug("Wrote %d keys to redis", len(mapping))

    async def close(self) -> None:
        await self._client.aclose()
