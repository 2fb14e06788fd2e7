"""Single entry point for reading a figure from any configured source."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..decimals import from_base_units, to_plain_string
from ..errors import SourceMalformed, SourceUnavailable
from ..logger import get_logger
from .base import BaseSource, SourceDescriptor
from .evm import EvmSource
from .fixed import FixedSource
from .graphql import GraphQLSource
from .substrate import SubstrateSource

if TYPE_CHECKING:
    from ..settings import CirculationSettings

logger = get_logger(__name__)

SOURCE_TYPES: list[type[BaseSource]] = [
    GraphQLSource,
    EvmSource,
    SubstrateSource,
    FixedSource,
]


class SourceClient:
    """Routes each descriptor to the source for its kind and normalizes the result.

    Sources are constructed once and shared across refresh cycles. The client
    hands each source the per-call timeout; it does not retry.
    """

    def __init__(
        self,
        config: CirculationSettings,
        sources: list[BaseSource] | None = None,
    ):
        self.config = config
        self.timeout = config.source_timeout_seconds
        self._sources = (
            sources if sources is not None else [cls(config) for cls in SOURCE_TYPES]
        )
        self._routes: dict[str, BaseSource] = {
            kind: source for source in self._sources for kind in source.kinds
        }

    async def fetch_figure(self, descriptor: SourceDescriptor) -> str:
        """Fetch one figure, normalized to whole tokens.

        Returns:
            The figure as a full-precision decimal string.

        Raises:
            SourceUnavailable: Transport failure or timeout.
            SourceMalformed: The response could not be read as an amount.
        """
        source = self._routes.get(descriptor.kind)
        if source is None:
            raise ValueError(
                f"No source registered for kind '{descriptor.kind}'. "
                f"Available: {', '.join(sorted(self._routes))}"
            )

        try:
            raw = await source.fetch(descriptor, self.timeout)
        except TimeoutError as exc:
            raise SourceUnavailable(
                descriptor.label, f"timed out after {self.timeout}s"
            ) from exc

        try:
            figure = from_base_units(raw, descriptor.decimals)
        except (TypeError, ValueError) as exc:
            raise SourceMalformed(descriptor.label, str(exc)) from exc
        if figure < 0:
            raise SourceMalformed(descriptor.label, f"negative amount {figure}")

        return to_plain_string(figure)

    def start_cycle(self) -> None:
        """Drop per-cycle state held by the sources, such as shared responses."""
        for source in self._sources:
            source.start_cycle()

    async def close(self) -> None:
        await asyncio.gather(*(source.close() for source in self._sources))
