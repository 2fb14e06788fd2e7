"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .cache import CacheKeys, CacheStore, create_cache
from .chains import ChainConfig
from .settings import CirculationSettings
from .sources import SourceClient


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Built once at startup and passed through the pipeline and the API to
    avoid global state and enable testing.
    """

    settings: CirculationSettings
    logger: logging.Logger
    cache: CacheStore
    client: SourceClient
    chains: list[ChainConfig] = field(default_factory=list)
    keys: CacheKeys = field(default_factory=CacheKeys)

    @classmethod
    def from_settings(
        cls, settings: CirculationSettings, logger: logging.Logger
    ) -> "AppState":
        return cls(
            settings=settings,
            logger=logger,
            cache=create_cache(settings),
            client=SourceClient(settings),
            chains=settings.chain_table,
            keys=CacheKeys(settings.cache_key_prefix),
        )

    async def close(self) -> None:
        await self.client.close()
        await self.cache.close()
