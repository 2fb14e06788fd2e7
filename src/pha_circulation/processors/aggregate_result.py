from __future__ import annotations

from dataclasses import dataclass

from ..cache.keys import figure_field
from ..constants import LAST_UPDATE_KEY, TOTAL_CIRCULATION_KEY
from ..decimals import format_figure
from .chain_aggregator import ChainSnapshot


@dataclass(frozen=True)
class AggregateResult:
    """Everything one refresh cycle produced. Written to the cache as a whole."""

    snapshots: tuple[ChainSnapshot, ...]
    total_circulation: str
    last_update: int  # epoch milliseconds, UTC

    def to_record(self) -> dict[str, str | int]:
        """Flattened figures, the grand total and the timestamp.

        Figures are truncated to 12 decimal places only here.
        """
        record: dict[str, str | int] = {
            figure_field(snapshot.chain, name): format_figure(value)
            for snapshot in self.snapshots
            for name, value in snapshot.figures().items()
        }
        record[TOTAL_CIRCULATION_KEY] = self.total_circulation
        record[LAST_UPDATE_KEY] = self.last_update
        return record
