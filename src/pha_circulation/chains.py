"""Chain configuration table.

Each chain is pure data: one supply source, named deduction sources, and
optionally informational figures that are persisted but not deducted. The
reduction formula is the same for every chain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import (
    CIRCULATION_FIGURE,
    ETHEREUM_INDEXER_DOCUMENT,
    ETHEREUM_KHALA_CHAINBRIDGE_ADDRESS,
    ETHEREUM_PHA_TOKEN,
    ETHEREUM_PHALA_CHAINBRIDGE_ADDRESS,
    ETHEREUM_REWARD_ADDRESS,
    ETHEREUM_SYGMA_BRIDGE_ADDRESS,
    INDEXER_ROOT_FIELD,
    SUBSTRATE_CHAINBRIDGE_ADDRESS,
    SUBSTRATE_CROWDLOAN_ADDRESS,
    SUBSTRATE_INDEXER_DOCUMENT,
    SUBSTRATE_REWARD_ADDRESS,
    SUBSTRATE_SYGMA_BRIDGE_ADDRESS,
)
from .sources.base import (
    Erc20BalanceDescriptor,
    FixedDescriptor,
    GraphQLDescriptor,
    SourceDescriptor,
    SubstrateFreeBalanceDescriptor,
    SubstrateTotalIssuanceDescriptor,
)

if TYPE_CHECKING:
    from .settings import CirculationSettings


class ChainConfig(BaseModel):
    """Sources and figure names for one chain."""

    name: str = Field(min_length=1)
    supply_name: str = "totalSupply"
    supply: SourceDescriptor
    deductions: dict[str, SourceDescriptor] = Field(default_factory=dict)
    informational: dict[str, SourceDescriptor] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_figure_names(self) -> "ChainConfig":
        names = [self.supply_name, *self.deductions, *self.informational]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(
                f"Chain '{self.name}' declares figure(s) more than once: {', '.join(duplicates)}"
            )
        if CIRCULATION_FIGURE in names:
            raise ValueError(
                f"Chain '{self.name}' may not name a source '{CIRCULATION_FIGURE}'; it is derived"
            )
        return self

    @property
    def figure_names(self) -> list[str]:
        """Every figure this chain persists, circulation last."""
        return [
            self.supply_name,
            *self.deductions,
            *self.informational,
            CIRCULATION_FIGURE,
        ]


def rpc_chains(settings: CirculationSettings) -> list[ChainConfig]:
    """Chain table that reads every figure directly from chain RPC."""

    def erc20_balance(account: str) -> Erc20BalanceDescriptor:
        return Erc20BalanceDescriptor(
            rpc_url=settings.ethereum_rpc, token=ETHEREUM_PHA_TOKEN, account=account
        )

    def substrate_chain(name: str, rpc_url: str) -> ChainConfig:
        def free_balance(account: str) -> SubstrateFreeBalanceDescriptor:
            return SubstrateFreeBalanceDescriptor(rpc_url=rpc_url, account=account)

        return ChainConfig(
            name=name,
            supply_name="totalIssuance",
            supply=SubstrateTotalIssuanceDescriptor(rpc_url=rpc_url),
            deductions={
                "miningRewards": free_balance(SUBSTRATE_REWARD_ADDRESS),
                "crowdloan": free_balance(SUBSTRATE_CROWDLOAN_ADDRESS),
                "chainbridge": free_balance(SUBSTRATE_CHAINBRIDGE_ADDRESS),
                "sygmaBridge": free_balance(SUBSTRATE_SYGMA_BRIDGE_ADDRESS),
            },
        )

    ethereum = ChainConfig(
        name="ethereum",
        supply_name="totalSupply",
        supply=FixedDescriptor(value=settings.ethereum_total_supply),
        deductions={
            "phalaChainbridge": erc20_balance(ETHEREUM_PHALA_CHAINBRIDGE_ADDRESS),
            "khalaChainbridge": erc20_balance(ETHEREUM_KHALA_CHAINBRIDGE_ADDRESS),
            "sygmaBridge": erc20_balance(ETHEREUM_SYGMA_BRIDGE_ADDRESS),
        },
        # Reward pool on Ethereum is reported but still counts as circulating.
        informational={"miningRewards": erc20_balance(ETHEREUM_REWARD_ADDRESS)},
    )

    return [
        ethereum,
        substrate_chain("phala", settings.phala_rpc),
        substrate_chain("khala", settings.khala_rpc),
    ]


def indexer_chains(settings: CirculationSettings) -> list[ChainConfig]:
    """Chain table that reads pre-computed figures from the GraphQL indexer."""
    base = settings.indexer_base_url.rstrip("/")

    def field(url: str, document: str, name: str) -> GraphQLDescriptor:
        return GraphQLDescriptor(
            url=url, query=document, field_path=(INDEXER_ROOT_FIELD, name)
        )

    def substrate_chain(name: str) -> ChainConfig:
        url = f"{base}/{name}-circulation/graphql"
        return ChainConfig(
            name=name,
            supply_name="totalIssuance",
            supply=field(url, SUBSTRATE_INDEXER_DOCUMENT, "totalIssuance"),
            deductions={
                figure: field(url, SUBSTRATE_INDEXER_DOCUMENT, figure)
                for figure in ("reward", "crowdloan", "sygmaBridge")
            },
        )

    ethereum_url = f"{base}/ethereum-pha-circulation/graphql"
    ethereum = ChainConfig(
        name="ethereum",
        supply_name="totalSupply",
        supply=field(ethereum_url, ETHEREUM_INDEXER_DOCUMENT, "totalSupply"),
        deductions={
            figure: field(ethereum_url, ETHEREUM_INDEXER_DOCUMENT, figure)
            for figure in ("phalaChainBridge", "khalaChainBridge", "sygmaBridge")
        },
        informational={
            "reward": field(ethereum_url, ETHEREUM_INDEXER_DOCUMENT, "reward")
        },
    )

    return [ethereum, substrate_chain("phala"), substrate_chain("khala")]
