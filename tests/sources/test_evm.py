from unittest.mock import MagicMock

import pytest
from web3 import Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    ProviderConnectionError,
    Web3RPCError,
)

from pha_circulation.constants import ETHEREUM_PHA_TOKEN, ETHEREUM_SYGMA_BRIDGE_ADDRESS
from pha_circulation.errors import SourceMalformed, SourceUnavailable
from pha_circulation.settings import CirculationSettings
from pha_circulation.sources import (
    Erc20BalanceDescriptor,
    Erc20TotalSupplyDescriptor,
    SourceClient,
)
from pha_circulation.sources.evm import EvmSource

RPC = "https://eth.example"


@pytest.fixture
def source():
    return EvmSource(CirculationSettings())


@pytest.fixture
def contract(monkeypatch, source):
    contract = MagicMock()
    monkeypatch.setattr(source, "_contract", lambda rpc_url, token: contract)
    return contract


@pytest.fixture
def balance_descriptor():
    return Erc20BalanceDescriptor(
        rpc_url=RPC, token=ETHEREUM_PHA_TOKEN, account=ETHEREUM_SYGMA_BRIDGE_ADDRESS
    )


def test_descriptor_checksums_addresses():
    descriptor = Erc20BalanceDescriptor(
        rpc_url=RPC,
        token=ETHEREUM_PHA_TOKEN.lower(),
        account=ETHEREUM_SYGMA_BRIDGE_ADDRESS.lower(),
    )

    assert descriptor.token == Web3.to_checksum_address(ETHEREUM_PHA_TOKEN)
    assert descriptor.account == Web3.to_checksum_address(ETHEREUM_SYGMA_BRIDGE_ADDRESS)
    assert Web3.is_checksum_address(descriptor.account)
    assert descriptor.decimals == 18


def test_descriptor_rejects_invalid_address():
    with pytest.raises(ValueError, match="Invalid EVM address"):
        Erc20BalanceDescriptor(rpc_url=RPC, token="0x1234", account="0xdead")


@pytest.mark.asyncio
async def test_balance_of(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.return_value = 42 * 10**18

    value = await source.fetch_raw(balance_descriptor)

    assert value == 42 * 10**18
    contract.functions.balanceOf.assert_called_once_with(
        Web3.to_checksum_address(ETHEREUM_SYGMA_BRIDGE_ADDRESS)
    )


@pytest.mark.asyncio
async def test_total_supply(source, contract):
    contract.functions.totalSupply.return_value.call.return_value = 10**27
    descriptor = Erc20TotalSupplyDescriptor(rpc_url=RPC, token=ETHEREUM_PHA_TOKEN)

    value = await source.fetch_raw(descriptor)

    assert value == 10**27


@pytest.mark.asyncio
async def test_provider_error_is_unavailable(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.side_effect = (
        ProviderConnectionError("connection refused")
    )

    with pytest.raises(SourceUnavailable):
        await source.fetch_raw(balance_descriptor)


@pytest.mark.asyncio
async def test_rpc_error_response_is_unavailable(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.side_effect = Web3RPCError(
        "{'code': -32005, 'message': 'rate limit exceeded'}"
    )

    with pytest.raises(SourceUnavailable, match="rate limit exceeded"):
        await source.fetch_raw(balance_descriptor)


@pytest.mark.asyncio
async def test_revert_is_malformed(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.side_effect = ContractLogicError(
        "execution reverted"
    )

    with pytest.raises(SourceMalformed, match="execution reverted"):
        await source.fetch_raw(balance_descriptor)


@pytest.mark.asyncio
async def test_bad_call_output_is_malformed(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.side_effect = BadFunctionCallOutput(
        "Could not decode contract function call"
    )

    with pytest.raises(SourceMalformed):
        await source.fetch_raw(balance_descriptor)


@pytest.mark.asyncio
async def test_non_integer_result_is_malformed(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.return_value = "42"

    with pytest.raises(SourceMalformed, match="expected a uint256"):
        await source.fetch_raw(balance_descriptor)


@pytest.mark.asyncio
async def test_client_normalizes_to_whole_tokens(source, contract, balance_descriptor):
    contract.functions.balanceOf.return_value.call.return_value = 1_500_000_000_000_000_001
    client = SourceClient(CirculationSettings(), sources=[source])

    figure = await client.fetch_figure(balance_descriptor)

    assert figure == "1.500000000000000001"


def test_web3_instances_shared_per_endpoint(source):
    assert source._web3(RPC) is source._web3(RPC)
    assert source._web3(RPC) is not source._web3("https://other.example")
