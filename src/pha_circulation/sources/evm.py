from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import requests
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    ProviderConnectionError,
    Web3RPCError,
)

from ..abi import load_erc20_abi
from ..errors import SourceMalformed, SourceUnavailable
from ..logger import get_logger
from .base import BaseSource, Erc20BalanceDescriptor, Erc20TotalSupplyDescriptor

if TYPE_CHECKING:
    from ..settings import CirculationSettings

logger = get_logger(__name__)


class EvmSource(BaseSource):
    """Reads ERC-20 balances and total supply over EVM JSON-RPC."""

    kinds = ("erc20_balance", "erc20_total_supply")

    def __init__(self, config: CirculationSettings):
        super().__init__(config)
        self._providers: dict[str, Web3] = {}

    @property
    def source_name(self) -> str:
        return "evm"

    def _web3(self, rpc_url: str) -> Web3:
        w3 = self._providers.get(rpc_url)
        if w3 is None:
            w3 = Web3(
                Web3.HTTPProvider(
                    rpc_url,
                    request_kwargs={"timeout": self.config.source_timeout_seconds},
                )
            )
            self._providers[rpc_url] = w3
        return w3

    def _contract(self, rpc_url: str, token: str) -> Contract:
        return self._web3(rpc_url).eth.contract(address=token, abi=load_erc20_abi())

    async def fetch_raw(
        self, descriptor: Erc20BalanceDescriptor | Erc20TotalSupplyDescriptor
    ) -> int:
        contract = self._contract(descriptor.rpc_url, descriptor.token)
        if isinstance(descriptor, Erc20BalanceDescriptor):
            call = contract.functions.balanceOf(descriptor.account).call
        else:
            call = contract.functions.totalSupply().call

        try:
            result = await asyncio.to_thread(call)
        except (BadFunctionCallOutput, ContractLogicError) as exc:
            raise SourceMalformed(descriptor.label, str(exc)) from exc
        except (
            ProviderConnectionError,
            Web3RPCError,
            requests.exceptions.RequestException,
            OSError,
        ) as exc:
            raise SourceUnavailable(descriptor.label, exc) from exc

        if isinstance(result, bool) or not isinstance(result, int) or result < 0:
            raise SourceMalformed(
                descriptor.label, f"expected a uint256, got {result!r}"
            )

        logger.debug("%s -> %d", descriptor.label, result)
        return result
