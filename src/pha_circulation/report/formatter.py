"""Rich console rendering of a refresh result."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..decimals import format_figure
from ..processors import AggregateResult, ChainSnapshot


def _chain_table(snapshot: ChainSnapshot) -> Table:
    table = Table(title=snapshot.chain, title_justify="left", expand=True)
    table.add_column("Figure", style="cyan")
    table.add_column("Role", style="dim")
    table.add_column("Amount (PHA)", justify="right")

    table.add_row(snapshot.supply_name, "supply", format_figure(snapshot.total_supply))
    for name, value in snapshot.deductions.items():
        table.add_row(name, "deducted", f"-{format_figure(value)}")
    for name, value in snapshot.informational.items():
        table.add_row(name, "info", format_figure(value))
    table.add_row(
        Text("circulation", style="bold"),
        "",
        Text(format_figure(snapshot.circulation), style="bold green"),
    )
    return table


def format_result(result: AggregateResult) -> Group:
    updated = datetime.fromtimestamp(result.last_update / 1000, tz=timezone.utc)
    summary = Text.assemble(
        ("Total circulation: ", "bold"),
        (result.total_circulation, "bold green"),
        f"\nComputed at {updated.isoformat()} ({result.last_update})",
    )
    return Group(
        *(_chain_table(snapshot) for snapshot in result.snapshots),
        Panel(summary, title="PHA circulation"),
    )


def print_result(result: AggregateResult, console: Console | None = None) -> None:
    (console or Console()).print(format_result(result))
