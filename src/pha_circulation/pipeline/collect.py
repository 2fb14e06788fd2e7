"""Fan-out of the chain aggregators for one refresh cycle."""

from __future__ import annotations

import asyncio

from ..errors import ChainAggregationFailed, CycleAborted
from ..processors import ChainSnapshot, aggregate_chain
from .context import RefreshContext


async def collect_snapshots(ctx: RefreshContext) -> None:
    """Aggregate every configured chain concurrently.

    Args:
        ctx: Refresh context containing state

    Raises:
        CycleAborted: If any chain failed. Sibling chains still run to
            completion so that every failure is reported.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    chains = ctx.state.chains

    if not chains:
        raise CycleAborted("no chains configured")

    ctx.state.client.start_cycle()
    log.info("Aggregating %d chains...", len(chains))
    results = await asyncio.gather(
        *[
            aggregate_chain(chain, ctx.state.client, max_tries=s.source_max_tries)
            for chain in chains
        ],
        return_exceptions=True,
    )

    snapshots: list[ChainSnapshot] = []
    failures: list[ChainAggregationFailed] = []
    for chain, result in zip(chains, results):
        if isinstance(result, ChainAggregationFailed):
            log.error("Chain '%s' failed: %s", chain.name, result.cause)
            failures.append(result)
        elif isinstance(result, BaseException):
            log.error("Chain '%s' failed unexpectedly: %s", chain.name, result)
            failures.append(ChainAggregationFailed(chain.name, result))
        else:
            log.debug("Chain '%s' circulation %s", chain.name, result.circulation)
            snapshots.append(result)

    if failures:
        failed = ", ".join(f.chain for f in failures)
        raise CycleAborted(
            f"{len(failures)} of {len(chains)} chain(s) failed: {failed}", failures
        )

    ctx.snapshots = snapshots
