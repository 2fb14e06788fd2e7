import asyncio
from decimal import Decimal

import pytest

from pha_circulation.errors import SourceMalformed, SourceUnavailable
from pha_circulation.settings import CirculationSettings
from pha_circulation.sources import (
    SOURCE_TYPES,
    BaseSource,
    FixedDescriptor,
    GraphQLDescriptor,
    SourceClient,
)
from pha_circulation.sources.base import _Descriptor
from pha_circulation.sources.fixed import FixedSource


class ScriptedSource(BaseSource):
    """Answers graphql descriptors with a canned value after an optional delay."""

    kinds = ("graphql",)

    def __init__(self, config, value, delay=0.0):
        super().__init__(config)
        self.value = value
        self.delay = delay
        self.closed = False

    @property
    def source_name(self) -> str:
        return "scripted"

    async def fetch_raw(self, descriptor):
        await asyncio.sleep(self.delay)
        return self.value

    async def close(self) -> None:
        self.closed = True


def _graphql(decimals=0):
    return GraphQLDescriptor(
        url="https://indexer.example/graphql",
        query="{ x }",
        field_path="x",
        decimals=decimals,
    )


def test_default_client_routes_every_kind():
    client = SourceClient(CirculationSettings())

    assert set(client._routes) == {
        "graphql",
        "erc20_balance",
        "erc20_total_supply",
        "substrate_free_balance",
        "substrate_total_issuance",
        "fixed",
    }
    assert len(SOURCE_TYPES) == 4


@pytest.mark.asyncio
async def test_fixed_figure_passes_through():
    settings = CirculationSettings()
    client = SourceClient(settings, sources=[FixedSource(settings)])

    figure = await client.fetch_figure(FixedDescriptor(value="1000000000"))

    assert figure == "1000000000"


@pytest.mark.asyncio
async def test_decimals_applied_to_indexer_values():
    settings = CirculationSettings()
    client = SourceClient(settings, sources=[ScriptedSource(settings, "123456789")])

    figure = await client.fetch_figure(_graphql(decimals=6))

    assert Decimal(figure) == Decimal("123.456789")


@pytest.mark.asyncio
async def test_timeout_is_unavailable():
    settings = CirculationSettings(source_timeout_seconds=0.05)
    client = SourceClient(settings, sources=[ScriptedSource(settings, "1", delay=1.0)])

    with pytest.raises(SourceUnavailable, match="timed out"):
        await client.fetch_figure(_graphql())


@pytest.mark.asyncio
async def test_non_numeric_value_is_malformed():
    settings = CirculationSettings()
    client = SourceClient(settings, sources=[ScriptedSource(settings, "lots")])

    with pytest.raises(SourceMalformed, match="Not a decimal number"):
        await client.fetch_figure(_graphql())


@pytest.mark.asyncio
async def test_negative_value_is_malformed():
    settings = CirculationSettings()
    client = SourceClient(settings, sources=[ScriptedSource(settings, "-5")])

    with pytest.raises(SourceMalformed, match="negative amount"):
        await client.fetch_figure(_graphql())


@pytest.mark.asyncio
async def test_unrouted_kind_raises():
    settings = CirculationSettings()
    client = SourceClient(settings, sources=[FixedSource(settings)])

    with pytest.raises(ValueError, match="No source registered for kind 'graphql'"):
        await client.fetch_figure(_graphql())


@pytest.mark.asyncio
async def test_close_closes_every_source():
    settings = CirculationSettings()
    scripted = ScriptedSource(settings, "1")
    client = SourceClient(settings, sources=[scripted, FixedSource(settings)])

    await client.close()

    assert scripted.closed is True


def test_descriptor_without_label_cannot_be_built():
    class Unlabelled(_Descriptor):
        kind: str = "unlabelled"

    with pytest.raises(TypeError, match="abstract"):
        Unlabelled()
