"""High-level refresh cycle orchestration."""

from __future__ import annotations

import asyncio

from ..errors import CycleAborted
from ..processors import AggregateResult
from ..state import AppState
from .collect import collect_snapshots
from .commit import commit_result, reduce_snapshots
from .context import RefreshContext


async def run_refresh(state: AppState, dry_run: bool = False) -> AggregateResult:
    """Execute one refresh cycle.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Collect snapshots from every chain (concurrently)
    2. Reduce them into the grand total
    3. Commit everything to the cache in one write (unless dry run)

    Nothing is written unless every chain succeeded within the cycle timeout.

    Args:
        state: Application state containing settings, cache and source client
        dry_run: Compute the result without writing it

    Raises:
        CycleAborted: If any chain failed or the cycle timed out
    """
    s = state.settings
    log = state.logger

    log.info("Starting refresh cycle", extra={"dry_run": dry_run})

    timeout_s = s.cycle_timeout_seconds
    ctx = RefreshContext(state=state, dry_run=dry_run)

    try:
        async with asyncio.timeout(timeout_s):
            await collect_snapshots(ctx)
            await reduce_snapshots(ctx)
    except TimeoutError as exc:
        log.error(
            "Refresh cycle timed out",
            extra={"timeout_seconds": timeout_s},
        )
        raise CycleAborted(
            f"exceeded cycle timeout of {timeout_s}s. "
            "N.B. This can be changed via `cycle_timeout_seconds`."
        ) from exc

    await commit_result(ctx)

    log.info("Refresh cycle completed")
    return ctx.result_required
