from decimal import Decimal

from rich.console import Console

from pha_circulation.processors import AggregateResult, ChainSnapshot
from pha_circulation.report import print_result


def test_print_result_renders_every_figure():
    result = AggregateResult(
        snapshots=(
            ChainSnapshot(
                chain="ethereum",
                supply_name="totalSupply",
                total_supply=Decimal("1000000000"),
                deductions={"sygmaBridge": Decimal("1000")},
                informational={"miningRewards": Decimal("7")},
            ),
        ),
        total_circulation="999999000.000000000000",
        last_update=0,
    )
    console = Console(record=True, width=160)

    print_result(result, console=console)
    text = console.export_text()

    assert "ethereum" in text
    assert "-1000.000000000000" in text
    assert "miningRewards" in text
    assert "info" in text
    assert "Total circulation: 999999000.000000000000" in text
    assert "1970-01-01T00:00:00+00:00" in text
