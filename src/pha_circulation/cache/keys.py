from __future__ import annotations

from collections.abc import Iterable

from ..chains import ChainConfig
from ..constants import LAST_UPDATE_KEY, TOTAL_CIRCULATION_KEY


def figure_field(chain: str, figure: str) -> str:
    """Flattened record field for a chain figure: ``phala`` + ``crowdloan`` -> ``phalaCrowdloan``."""
    return f"{chain}{figure[:1].upper()}{figure[1:]}"


def record_field_names(chains: Iterable[ChainConfig]) -> list[str]:
    """Every field of the flattened record, in response order.

    Raises:
        ValueError: If two figures flatten to the same field, or a figure
            flattens to ``totalCirculation`` or ``lastUpdate``.
    """
    owners: dict[str, str] = {}
    clashes: list[str] = []
    for chain in chains:
        for figure in chain.figure_names:
            field = figure_field(chain.name, figure)
            if field in owners:
                clashes.append(f"{field} ({owners[field]} and {chain.name}.{figure})")
            owners[field] = f"{chain.name}.{figure}"
    for reserved in (TOTAL_CIRCULATION_KEY, LAST_UPDATE_KEY):
        if reserved in owners:
            clashes.append(f"{reserved} ({owners[reserved]} and the reserved field)")
        owners[reserved] = reserved

    if clashes:
        raise ValueError(f"Cache field collision(s): {'; '.join(clashes)}")
    return list(owners)


class CacheKeys:
    """Cache key constants and helpers, optionally namespaced by a prefix."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def key(self, field: str) -> str:
        return f"{self.prefix}{field}"

    @property
    def total_circulation(self) -> str:
        return self.key(TOTAL_CIRCULATION_KEY)

    @property
    def last_update(self) -> str:
        return self.key(LAST_UPDATE_KEY)

    def figure(self, chain: str, figure: str) -> str:
        return self.key(figure_field(chain, figure))

    def record_fields(self, chains: Iterable[ChainConfig]) -> list[tuple[str, str]]:
        """(record field, cache key) for every persisted value, in response order."""
        return [(field, self.key(field)) for field in record_field_names(chains)]
