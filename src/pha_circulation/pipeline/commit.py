"""Reduction of snapshots and the single multi-key cache write."""

from __future__ import annotations

import time

from ..processors import AggregateResult, reduce_total
from .context import RefreshContext


def _now_ms() -> int:
    return int(time.time() * 1000)


async def reduce_snapshots(ctx: RefreshContext) -> None:
    """Sum the chains into the grand total and stamp the cycle."""
    snapshots = ctx.snapshots_required
    ctx.result = AggregateResult(
        snapshots=tuple(snapshots),
        total_circulation=reduce_total(snapshots),
        last_update=_now_ms(),
    )


async def commit_result(ctx: RefreshContext) -> None:
    """Write every figure, the total and ``lastUpdate`` in one ``mset``."""
    log = ctx.state.logger
    keys = ctx.state.keys
    result = ctx.result_required

    mapping = {keys.key(field): str(value) for field, value in result.to_record().items()}

    if ctx.dry_run:
        log.info("Dry run: skipping cache write of %d keys", len(mapping))
        return

    await ctx.state.cache.mset(mapping)
    log.info(
        "Committed %d keys to %s cache (totalCirculation=%s)",
        len(mapping),
        ctx.state.cache.backend_name,
        result.total_circulation,
    )
