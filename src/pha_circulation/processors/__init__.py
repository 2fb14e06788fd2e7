from __future__ import annotations

from .aggregate_result import AggregateResult
from .chain_aggregator import ChainSnapshot, aggregate_chain
from .total_circulation import reduce_total

__all__ = [
    "AggregateResult",
    "ChainSnapshot",
    "aggregate_chain",
    "reduce_total",
]
