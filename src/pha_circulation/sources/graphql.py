from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import requests

from ..errors import SourceMalformed, SourceUnavailable
from ..logger import get_logger
from .base import BaseSource, GraphQLDescriptor

if TYPE_CHECKING:
    from ..settings import CirculationSettings

logger = get_logger(__name__)


class GraphQLSource(BaseSource):
    """Reads figures from a GraphQL indexer (``POST {"query": ...}``).

    Within one refresh cycle each distinct (url, query) pair is posted once
    and every figure that names it is read from that single response, so a
    chain's supply and deductions always come from the same indexer state.
    A failed request is forgotten so that a retry posts again.
    """

    kinds = ("graphql",)

    def __init__(self, config: CirculationSettings):
        super().__init__(config)
        self._documents: dict[tuple[str, str], asyncio.Future] = {}

    @property
    def source_name(self) -> str:
        return "graphql"

    def start_cycle(self) -> None:
        self._documents.clear()

    async def _http_post(self, url: str, document: str) -> requests.Response:
        return await asyncio.to_thread(
            lambda: requests.post(
                url,
                json={"query": document},
                headers={"Content-Type": "application/json"},
                timeout=self.config.source_timeout_seconds,
            )
        )

    async def _post(self, url: str, document: str) -> Any:
        label = f"graphql@{url}"
        try:
            response = await self._http_post(url, document)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise SourceUnavailable(label, exc) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise SourceMalformed(label, "response is not JSON") from exc

        if not isinstance(body, dict):
            raise SourceMalformed(label, "response body is not an object")
        data = body.get("data")
        if data is None:
            errors = body.get("errors")
            if errors:
                raise SourceUnavailable(label, f"GraphQL errors: {errors}")
            raise SourceMalformed(label, "response has no 'data' field")
        return data

    async def _data(self, url: str, document: str) -> Any:
        key = (url, document)
        pending = self._documents.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._post(url, document))
            self._documents[key] = pending
        try:
            # shielded: one caller timing out must not cancel the shared request
            return await asyncio.shield(pending)
        except Exception:
            if self._documents.get(key) is pending:
                del self._documents[key]
            raise

    def _extract(self, descriptor: GraphQLDescriptor, data: Any) -> Any:
        node: Any = data
        for depth, field in enumerate(descriptor.field_path):
            if not isinstance(node, dict) or field not in node:
                path = ".".join(descriptor.field_path[: depth + 1])
                raise SourceMalformed(descriptor.label, f"missing field '{path}'")
            node = node[field]

        if isinstance(node, bool) or not isinstance(node, (str, int)):
            raise SourceMalformed(
                descriptor.label, f"expected a numeric string, got {node!r}"
            )
        return node

    async def fetch_raw(self, descriptor: GraphQLDescriptor) -> int | str:
        data = await self._data(descriptor.url, descriptor.query)
        value = self._extract(descriptor, data)
        logger.debug("%s -> %s", descriptor.label, value)
        return value
