from __future__ import annotations

from .base import (
    BaseSource,
    Erc20BalanceDescriptor,
    Erc20TotalSupplyDescriptor,
    FixedDescriptor,
    GraphQLDescriptor,
    SourceDescriptor,
    SubstrateFreeBalanceDescriptor,
    SubstrateTotalIssuanceDescriptor,
)
from .client import SOURCE_TYPES, SourceClient

__all__ = [
    "BaseSource",
    "Erc20BalanceDescriptor",
    "Erc20TotalSupplyDescriptor",
    "FixedDescriptor",
    "GraphQLDescriptor",
    "SOURCE_TYPES",
    "SourceClient",
    "SourceDescriptor",
    "SubstrateFreeBalanceDescriptor",
    "SubstrateTotalIssuanceDescriptor",
]
