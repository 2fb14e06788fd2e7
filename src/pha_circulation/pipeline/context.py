from __future__ import annotations

from dataclasses import dataclass

from ..processors import AggregateResult, ChainSnapshot
from ..state import AppState


@dataclass
class RefreshContext:
    state: AppState
    dry_run: bool = False
    snapshots: list[ChainSnapshot] | None = None
    result: AggregateResult | None = None

    @property
    def snapshots_required(self) -> list[ChainSnapshot]:
        if self.snapshots is None:
            raise RuntimeError(
                "Snapshots have not been set. Ensure collect_snapshots() is called before accessing this property."
            )
        return self.snapshots

    @property
    def result_required(self) -> AggregateResult:
        if self.result is None:
            raise RuntimeError(
                "Aggregate result has not been set. Ensure reduce_snapshots() is called before accessing this property."
            )
        return self.result
