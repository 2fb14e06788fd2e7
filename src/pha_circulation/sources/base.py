from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from web3 import Web3

from ..constants import ETHEREUM_PHA_DECIMALS, SUBSTRATE_PHA_DECIMALS

if TYPE_CHECKING:
    from ..settings import CirculationSettings


def _checksum(value: str) -> str:
    if not Web3.is_address(value):
        raise ValueError(f"Invalid EVM address: {value}")
    return Web3.to_checksum_address(value)


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    decimals: int = Field(default=0, ge=0, le=77)

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable identity used in logs and errors."""
        ...


class GraphQLDescriptor(_Descriptor):
    """A figure read from a GraphQL indexer response."""

    kind: Literal["graphql"] = "graphql"
    url: str
    query: str
    field_path: tuple[str, ...]

    @field_validator("field_path", mode="before")
    @classmethod
    def split_dotted_path(cls, v: object) -> object:
        if isinstance(v, str):
            return tuple(part for part in v.split(".") if part)
        return v

    @property
    def label(self) -> str:
        return f"graphql:{'.'.join(self.field_path)}@{self.url}"


class Erc20BalanceDescriptor(_Descriptor):
    """``balanceOf(account)`` on an ERC-20 token contract."""

    kind: Literal["erc20_balance"] = "erc20_balance"
    rpc_url: str
    token: str
    account: str
    decimals: int = Field(default=ETHEREUM_PHA_DECIMALS, ge=0, le=77)

    @field_validator("token", "account")
    @classmethod
    def checksum_addresses(cls, v: str) -> str:
        return _checksum(v)

    @property
    def label(self) -> str:
        return f"erc20_balance:{self.account}@{self.rpc_url}"


class Erc20TotalSupplyDescriptor(_Descriptor):
    """``totalSupply()`` on an ERC-20 token contract."""

    kind: Literal["erc20_total_supply"] = "erc20_total_supply"
    rpc_url: str
    token: str
    decimals: int = Field(default=ETHEREUM_PHA_DECIMALS, ge=0, le=77)

    @field_validator("token")
    @classmethod
    def checksum_token(cls, v: str) -> str:
        return _checksum(v)

    @property
    def label(self) -> str:
        return f"erc20_total_supply:{self.token}@{self.rpc_url}"


class SubstrateFreeBalanceDescriptor(_Descriptor):
    """Free balance of a substrate account (``System.Account``)."""

    kind: Literal["substrate_free_balance"] = "substrate_free_balance"
    rpc_url: str
    account: str
    decimals: int = Field(default=SUBSTRATE_PHA_DECIMALS, ge=0, le=77)

    @property
    def label(self) -> str:
        return f"substrate_free_balance:{self.account}@{self.rpc_url}"


class SubstrateTotalIssuanceDescriptor(_Descriptor):
    """Total issuance of a substrate chain (``Balances.TotalIssuance``)."""

    kind: Literal["substrate_total_issuance"] = "substrate_total_issuance"
    rpc_url: str
    decimals: int = Field(default=SUBSTRATE_PHA_DECIMALS, ge=0, le=77)

    @property
    def label(self) -> str:
        return f"substrate_total_issuance@{self.rpc_url}"


class FixedDescriptor(_Descriptor):
    """A known constant, e.g. a non-mintable token's total supply."""

    kind: Literal["fixed"] = "fixed"
    value: str

    @property
    def label(self) -> str:
        return f"fixed:{self.value}"


SourceDescriptor = Annotated[
    Union[
        GraphQLDescriptor,
        Erc20BalanceDescriptor,
        Erc20TotalSupplyDescriptor,
        SubstrateFreeBalanceDescriptor,
        SubstrateTotalIssuanceDescriptor,
        FixedDescriptor,
    ],
    Field(discriminator="kind"),
]


class BaseSource(ABC):
    """Abstract base class for one kind of data source transport."""

    kinds: ClassVar[tuple[str, ...]] = ()

    def __init__(self, config: CirculationSettings):
        """Initialize the source with configuration.

        Args:
            config: Service configuration
        """
        self.config = config

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the name of this source."""
        ...

    @abstractmethod
    async def fetch_raw(self, descriptor: _Descriptor) -> int | str | Decimal:
        """Fetch the figure named by ``descriptor`` in the source's own unit.

        Raises:
            SourceUnavailable: On transport failure.
            SourceMalformed: When the response has an unexpected shape.
        """
        ...

    async def fetch(
        self, descriptor: _Descriptor, timeout: float
    ) -> int | str | Decimal:
        """Fetch a figure, giving up after ``timeout`` seconds.

        Sources that queue calls internally override this so that only time
        spent talking to the remote end counts.

        Raises:
            TimeoutError: If the call did not complete in time.
        """
        async with asyncio.timeout(timeout):
            return await self.fetch_raw(descriptor)

    def start_cycle(self) -> None:
        """Forget anything remembered during the previous refresh cycle."""
        return None

    async def close(self) -> None:
        """Release any connections held by the source."""
        return None
