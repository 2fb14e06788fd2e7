from decimal import Decimal

from pha_circulation.processors import AggregateResult, ChainSnapshot


def test_record_flattens_figures_per_chain():
    snapshot = ChainSnapshot(
        chain="ethereum",
        supply_name="totalSupply",
        total_supply=Decimal("1000000000"),
        deductions={"sygmaBridge": Decimal("12.3456789012345678")},
        informational={"miningRewards": Decimal("5")},
    )
    result = AggregateResult(
        snapshots=(snapshot,),
        total_circulation="999999987.654321098765",
        last_update=1700000000000,
    )

    assert result.to_record() == {
        "ethereumTotalSupply": "1000000000.000000000000",
        "ethereumSygmaBridge": "12.345678901234",
        "ethereumMiningRewards": "5.000000000000",
        "ethereumCirculation": "999999987.654321098765",
        "totalCirculation": "999999987.654321098765",
        "lastUpdate": 1700000000000,
    }
