from decimal import Decimal

import pytest

from pha_circulation.chains import ChainConfig
from pha_circulation.errors import (
    ChainAggregationFailed,
    SourceMalformed,
    SourceUnavailable,
)
from pha_circulation.processors import aggregate_chain
from pha_circulation.processors.chain_aggregator import ChainSnapshot
from pha_circulation.settings import CirculationSettings
from pha_circulation.sources import BaseSource, GraphQLDescriptor, SourceClient
from pha_circulation.sources.fixed import FixedSource


class FigureSource(BaseSource):
    """Looks figures up by the descriptor's query; exceptions are raised."""

    kinds = ("graphql",)

    def __init__(self, config, figures):
        super().__init__(config)
        self.figures = figures
        self.calls: dict[str, int] = {}

    @property
    def source_name(self) -> str:
        return "figures"

    async def fetch_raw(self, descriptor):
        self.calls[descriptor.query] = self.calls.get(descriptor.query, 0) + 1
        outcome = self.figures[descriptor.query]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _figure(name: str) -> GraphQLDescriptor:
    return GraphQLDescriptor(
        url="https://indexer.example/graphql", query=name, field_path="value"
    )


def _client(figures):
    settings = CirculationSettings()
    source = FigureSource(settings, figures)
    return SourceClient(settings, sources=[source, FixedSource(settings)]), source


def _chain(**informational) -> ChainConfig:
    return ChainConfig(
        name="phala",
        supply_name="totalIssuance",
        supply=_figure("supply"),
        deductions={"crowdloan": _figure("crowdloan"), "miningRewards": _figure("rewards")},
        informational={name: _figure(query) for name, query in informational.items()},
    )


@pytest.mark.asyncio
async def test_circulation_is_supply_minus_deductions():
    client, _ = _client(
        {"supply": "1000.5", "crowdloan": "200.25", "rewards": "0.000000000000000001"}
    )

    snapshot = await aggregate_chain(_chain(), client)

    assert snapshot.total_supply == Decimal("1000.5")
    assert snapshot.deductions == {
        "crowdloan": Decimal("200.25"),
        "miningRewards": Decimal("0.000000000000000001"),
    }
    assert snapshot.circulation == Decimal("800.249999999999999999")


@pytest.mark.asyncio
async def test_informational_figures_are_not_deducted():
    client, _ = _client(
        {"supply": "1000", "crowdloan": "100", "rewards": "50", "pool": "400"}
    )

    snapshot = await aggregate_chain(_chain(reward="pool"), client)

    assert snapshot.informational == {"reward": Decimal("400")}
    assert snapshot.circulation == Decimal("850")
    assert list(snapshot.figures()) == [
        "totalIssuance",
        "crowdloan",
        "miningRewards",
        "reward",
        "circulation",
    ]


@pytest.mark.asyncio
async def test_any_failed_figure_fails_the_chain():
    client, source = _client(
        {
            "supply": "1000",
            "crowdloan": SourceMalformed("crowdloan", "missing field 'value'"),
            "rewards": "5",
        }
    )

    with pytest.raises(ChainAggregationFailed) as exc_info:
        await aggregate_chain(_chain(), client)

    assert exc_info.value.chain == "phala"
    assert isinstance(exc_info.value.cause, SourceMalformed)
    # siblings still ran
    assert source.calls == {"supply": 1, "crowdloan": 1, "rewards": 1}


@pytest.mark.asyncio
async def test_unavailable_source_is_retried():
    client, source = _client(
        {
            "supply": [SourceUnavailable("supply", "connection reset"), "1000"],
            "crowdloan": "1",
            "rewards": "2",
        }
    )

    snapshot = await aggregate_chain(_chain(), client, max_tries=2)

    assert source.calls["supply"] == 2
    assert snapshot.circulation == Decimal("997")


@pytest.mark.asyncio
async def test_malformed_source_is_not_retried():
    client, source = _client(
        {
            "supply": SourceMalformed("supply", "expected a numeric string"),
            "crowdloan": "1",
            "rewards": "2",
        }
    )

    with pytest.raises(ChainAggregationFailed):
        await aggregate_chain(_chain(), client, max_tries=3)

    assert source.calls["supply"] == 1


@pytest.mark.asyncio
async def test_retries_exhausted_fails_the_chain():
    client, source = _client(
        {
            "supply": SourceUnavailable("supply", "timed out after 30s"),
            "crowdloan": "1",
            "rewards": "2",
        }
    )

    with pytest.raises(ChainAggregationFailed, match="phala"):
        await aggregate_chain(_chain(), client, max_tries=1)

    assert source.calls["supply"] == 1


def test_snapshot_allows_negative_circulation():
    snapshot = ChainSnapshot(
        chain="khala",
        supply_name="totalIssuance",
        total_supply=Decimal("10"),
        deductions={"crowdloan": Decimal("12.5")},
    )

    assert snapshot.circulation == Decimal("-2.5")
