from __future__ import annotations

from collections.abc import Iterable

from ..decimals import FIGURE_PLACES, add, format_figure
from .chain_aggregator import ChainSnapshot


def reduce_total(
    snapshots: Iterable[ChainSnapshot], places: int = FIGURE_PLACES
) -> str:
    """Sum every chain's circulation and serialize it truncated to ``places``.

    The sum is exact, so the result does not depend on snapshot order.
    """
    return format_figure(add(*(s.circulation for s in snapshots)), places)
