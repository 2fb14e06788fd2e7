import asyncio
import time
from types import SimpleNamespace

import pytest
from substrateinterface.exceptions import SubstrateRequestException

from pha_circulation.constants import SUBSTRATE_CROWDLOAN_ADDRESS
from pha_circulation.errors import SourceMalformed, SourceUnavailable
from pha_circulation.settings import CirculationSettings
from pha_circulation.sources import (
    SourceClient,
    SubstrateFreeBalanceDescriptor,
    SubstrateTotalIssuanceDescriptor,
)
from pha_circulation.sources.substrate import SubstrateSource

RPC = "https://phala.example"


class FakeSubstrate:
    def __init__(self, storage, delay=0.0):
        self.storage = storage
        self.delay = delay
        self.queries = []
        self.closed = False

    def query(self, module, storage_function, params=None):
        time.sleep(self.delay)
        self.queries.append((module, storage_function, params))
        value = self.storage[(module, storage_function)]
        if isinstance(value, Exception):
            raise value
        return SimpleNamespace(value=value)

    def close(self):
        self.closed = True


@pytest.fixture
def source():
    return SubstrateSource(CirculationSettings())


def _install(monkeypatch, source, storage, delay=0.0):
    connections = []

    def fake_connect(rpc_url):
        fake = FakeSubstrate(storage, delay)
        connections.append((rpc_url, fake))
        return fake

    monkeypatch.setattr(source, "_connect", fake_connect)
    return connections


@pytest.mark.asyncio
async def test_free_balance(monkeypatch, source):
    connections = _install(
        monkeypatch,
        source,
        {("System", "Account"): {"nonce": 0, "data": {"free": 7 * 10**12, "reserved": 1}}},
    )
    descriptor = SubstrateFreeBalanceDescriptor(
        rpc_url=RPC, account=SUBSTRATE_CROWDLOAN_ADDRESS
    )

    value = await source.fetch_raw(descriptor)

    assert value == 7 * 10**12
    [(url, fake)] = connections
    assert url == RPC
    assert fake.queries == [("System", "Account", [SUBSTRATE_CROWDLOAN_ADDRESS])]


@pytest.mark.asyncio
async def test_total_issuance(monkeypatch, source):
    _install(monkeypatch, source, {("Balances", "TotalIssuance"): 10**21})

    value = await source.fetch_raw(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))

    assert value == 10**21


@pytest.mark.asyncio
async def test_connection_shared_between_calls(monkeypatch, source):
    connections = _install(
        monkeypatch,
        source,
        {
            ("Balances", "TotalIssuance"): 10**21,
            ("System", "Account"): {"data": {"free": 1}},
        },
    )

    await source.fetch_raw(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))
    await source.fetch_raw(
        SubstrateFreeBalanceDescriptor(rpc_url=RPC, account=SUBSTRATE_CROWDLOAN_ADDRESS)
    )

    assert len(connections) == 1


@pytest.mark.asyncio
async def test_missing_free_balance_is_malformed(monkeypatch, source):
    _install(monkeypatch, source, {("System", "Account"): {"nonce": 3}})
    descriptor = SubstrateFreeBalanceDescriptor(
        rpc_url=RPC, account=SUBSTRATE_CROWDLOAN_ADDRESS
    )

    with pytest.raises(SourceMalformed, match="no free balance"):
        await source.fetch_raw(descriptor)


@pytest.mark.asyncio
async def test_request_error_is_unavailable_and_drops_connection(monkeypatch, source):
    connections = _install(
        monkeypatch,
        source,
        {("Balances", "TotalIssuance"): SubstrateRequestException("node is syncing")},
    )

    with pytest.raises(SourceUnavailable, match="node is syncing"):
        await source.fetch_raw(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))

    [(_, fake)] = connections
    assert fake.closed is True
    assert source._connections == {}


@pytest.mark.asyncio
async def test_client_normalizes_twelve_decimals(monkeypatch, source):
    _install(monkeypatch, source, {("Balances", "TotalIssuance"): 1_234_567_890_123})
    client = SourceClient(CirculationSettings(), sources=[source])

    figure = await client.fetch_figure(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))

    assert figure == "1.234567890123"


@pytest.mark.asyncio
async def test_close_releases_connections(monkeypatch, source):
    connections = _install(monkeypatch, source, {("Balances", "TotalIssuance"): 1})
    await source.fetch_raw(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))

    await source.close()

    assert connections[0][1].closed is True
    assert source._connections == {}


@pytest.mark.asyncio
async def test_queued_queries_do_not_count_against_timeout(monkeypatch):
    settings = CirculationSettings(source_timeout_seconds=1.0)
    source = SubstrateSource(settings)
    _install(
        monkeypatch, source, {("System", "Account"): {"data": {"free": 10**12}}}, delay=0.3
    )
    client = SourceClient(settings, sources=[source])
    descriptors = [
        SubstrateFreeBalanceDescriptor(rpc_url=RPC, account=f"account-{i}")
        for i in range(5)
    ]

    figures = await asyncio.gather(*(client.fetch_figure(d) for d in descriptors))

    assert figures == ["1.000000000000"] * 5


@pytest.mark.asyncio
async def test_slow_query_times_out_and_drops_connection(monkeypatch):
    settings = CirculationSettings(source_timeout_seconds=0.1)
    source = SubstrateSource(settings)
    connections = _install(
        monkeypatch, source, {("Balances", "TotalIssuance"): 1}, delay=0.5
    )
    client = SourceClient(settings, sources=[source])

    with pytest.raises(SourceUnavailable, match="timed out after 0.1s"):
        await client.fetch_figure(SubstrateTotalIssuanceDescriptor(rpc_url=RPC))

    assert connections[0][1].closed is True
    assert source._connections == {}
