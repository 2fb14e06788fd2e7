from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal

import backoff

from ..chains import ChainConfig
from ..constants import CIRCULATION_FIGURE
from ..decimals import subtract, to_decimal
from ..errors import ChainAggregationFailed, SourceUnavailable
from ..logger import get_logger
from ..sources import SourceClient, SourceDescriptor

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChainSnapshot:
    """Figures for one chain from a single refresh cycle, at full precision."""

    chain: str
    supply_name: str
    total_supply: Decimal
    deductions: dict[str, Decimal] = field(default_factory=dict)
    informational: dict[str, Decimal] = field(default_factory=dict)

    @property
    def circulation(self) -> Decimal:
        """Total supply minus every deduction. Informational figures are not deducted."""
        return subtract(self.total_supply, *self.deductions.values())

    def figures(self) -> dict[str, Decimal]:
        """All figures keyed by name, circulation last."""
        return {
            self.supply_name: self.total_supply,
            **self.deductions,
            **self.informational,
            CIRCULATION_FIGURE: self.circulation,
        }


async def _fetch_with_retry(
    client: SourceClient, descriptor: SourceDescriptor, max_tries: int
) -> str:
    def _on_backoff(details: dict) -> None:
        logger.warning(
            "Source %s unavailable (attempt %d of %d): %s",
            descriptor.label,
            details["tries"],
            max_tries,
            details.get("exception"),
        )

    @backoff.on_exception(
        backoff.expo,
        SourceUnavailable,
        max_tries=max_tries,
        jitter=backoff.full_jitter,
        on_backoff=_on_backoff,
    )
    async def _fetch() -> str:
        return await client.fetch_figure(descriptor)

    return await _fetch()


async def aggregate_chain(
    chain: ChainConfig,
    client: SourceClient,
    max_tries: int = 1,
) -> ChainSnapshot:
    """Fetch every figure for ``chain`` concurrently and build its snapshot.

    Args:
        chain: Chain configuration
        client: Shared source client
        max_tries: Attempts per figure when the source is unavailable

    Returns:
        The chain's snapshot

    Raises:
        ChainAggregationFailed: If any figure could not be fetched. No partial
            snapshot is ever returned.
    """
    wanted: list[tuple[str, SourceDescriptor]] = [
        (chain.supply_name, chain.supply),
        *chain.deductions.items(),
        *chain.informational.items(),
    ]

    logger.debug("Fetching %d figures for chain %s", len(wanted), chain.name)
    results = await asyncio.gather(
        *[_fetch_with_retry(client, descriptor, max_tries) for _, descriptor in wanted],
        return_exceptions=True,
    )

    failures: list[tuple[str, BaseException]] = []
    values: dict[str, Decimal] = {}
    for (name, descriptor), result in zip(wanted, results):
        if isinstance(result, BaseException):
            logger.error(
                "Figure '%s' for chain %s failed (%s): %s",
                name,
                chain.name,
                descriptor.label,
                result,
            )
            failures.append((name, result))
        else:
            values[name] = to_decimal(result)

    if failures:
        raise ChainAggregationFailed(chain.name, failures[0][1])

    snapshot = ChainSnapshot(
        chain=chain.name,
        supply_name=chain.supply_name,
        total_supply=values[chain.supply_name],
        deductions={name: values[name] for name in chain.deductions},
        informational={name: values[name] for name in chain.informational},
    )
    logger.debug("Chain %s circulation: %s", chain.name, snapshot.circulation)
    return snapshot
