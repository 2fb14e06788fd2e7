from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import requests
from substrateinterface import SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from ..errors import SourceMalformed, SourceUnavailable
from ..logger import get_logger
from .base import (
    BaseSource,
    SubstrateFreeBalanceDescriptor,
    SubstrateTotalIssuanceDescriptor,
)

if TYPE_CHECKING:
    from ..settings import CirculationSettings

logger = get_logger(__name__)

TRANSPORT_ERRORS = (
    SubstrateRequestException,
    WebSocketException,
    requests.exceptions.RequestException,
    OSError,
)


class SubstrateSource(BaseSource):
    """Reads free balances and total issuance from substrate node RPC.

    One connection is kept per node endpoint and shared by every chain that
    points at it. Queries on one connection run one at a time since the
    underlying websocket is not safe for concurrent requests. A connection
    that fails with a transport error is dropped so that the next call
    reconnects.
    """

    kinds = ("substrate_free_balance", "substrate_total_issuance")

    def __init__(self, config: CirculationSettings):
        super().__init__(config)
        self._connections: dict[str, SubstrateInterface] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def source_name(self) -> str:
        return "substrate"

    def _connect(self, rpc_url: str) -> SubstrateInterface:
        return SubstrateInterface(url=rpc_url)

    async def _connection(self, rpc_url: str) -> SubstrateInterface:
        substrate = self._connections.get(rpc_url)
        if substrate is None:
            logger.debug("Connecting to substrate node %s", rpc_url)
            substrate = await asyncio.to_thread(self._connect, rpc_url)
            self._connections[rpc_url] = substrate
        return substrate

    def _drop(self, rpc_url: str) -> None:
        substrate = self._connections.pop(rpc_url, None)
        if substrate is not None:
            substrate.close()

    async def _query(
        self,
        rpc_url: str,
        module: str,
        storage: str,
        params: list[Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Run one storage query. ``timeout`` starts once this call holds the connection."""
        lock = self._locks.setdefault(rpc_url, asyncio.Lock())
        async with lock, asyncio.timeout(timeout):
            substrate = await self._connection(rpc_url)
            try:
                result = await asyncio.to_thread(
                    substrate.query, module, storage, params
                )
            except asyncio.CancelledError:
                # the worker thread may still be reading from this socket
                self._drop(rpc_url)
                raise
        return result.value

    async def fetch(
        self,
        descriptor: SubstrateFreeBalanceDescriptor | SubstrateTotalIssuanceDescriptor,
        timeout: float,
    ) -> int:
        return await self._read(descriptor, timeout)

    async def fetch_raw(
        self,
        descriptor: SubstrateFreeBalanceDescriptor | SubstrateTotalIssuanceDescriptor,
    ) -> int:
        return await self._read(descriptor, None)

    async def _read(
        self,
        descriptor: SubstrateFreeBalanceDescriptor | SubstrateTotalIssuanceDescriptor,
        timeout: float | None,
    ) -> int:
        try:
            if isinstance(descriptor, SubstrateFreeBalanceDescriptor):
                value = await self._query(
                    descriptor.rpc_url,
                    "System",
                    "Account",
                    [descriptor.account],
                    timeout=timeout,
                )
            else:
                value = await self._query(
                    descriptor.rpc_url, "Balances", "TotalIssuance", timeout=timeout
                )
        except TimeoutError as exc:
            self._drop(descriptor.rpc_url)
            cause = f"timed out after {timeout}s" if timeout is not None else exc
            raise SourceUnavailable(descriptor.label, cause) from exc
        except TRANSPORT_ERRORS as exc:
            self._drop(descriptor.rpc_url)
            raise SourceUnavailable(descriptor.label, exc) from exc

        if isinstance(descriptor, SubstrateFreeBalanceDescriptor):
            try:
                value = value["data"]["free"]
            except (KeyError, TypeError) as exc:
                raise SourceMalformed(
                    descriptor.label, f"account info has no free balance: {value!r}"
                ) from exc

        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise SourceMalformed(descriptor.label, f"expected a u128, got {value!r}")

        logger.debug("%s -> %d", descriptor.label, value)
        return value

    async def close(self) -> None:
        for rpc_url in list(self._connections):
            self._drop(rpc_url)
