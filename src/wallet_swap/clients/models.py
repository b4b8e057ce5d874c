"""Response schemas for the 0x swap API.

Every payload is validated against these models before it enters the system.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import NATIVE_TOKEN_ADDRESS
from ..domain import Asset

HEX_PATTERN = r"^0x[0-9a-fA-F]*$"


class ZrxModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ZrxAsset(ZrxModel):
    symbol: str
    name: str
    decimals: int = Field(ge=0)
    address: str

    def to_asset(self) -> Asset:
        """Convert to a domain asset; the native placeholder maps to no contract."""
        is_native = self.address.lower() == NATIVE_TOKEN_ADDRESS.lower()
        return Asset(
            symbol=self.symbol,
            decimals=self.decimals,
            contract_address=None if is_native else self.address,
            name=self.name,
        )


def _decimal_string(v: str) -> str:
    try:
        parsed = Decimal(v)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal string: {v!r}") from e
    if not parsed.is_finite():
        raise ValueError(f"not a finite decimal: {v!r}")
    return v


class ZrxPrice(ZrxModel):
    symbol: str
    price: str

    @field_validator("price")
    @classmethod
    def check_price(cls, v: str) -> str:
        return _decimal_string(v)


class ZrxSource(ZrxModel):
    name: str
    proportion: str

    @field_validator("proportion")
    @classmethod
    def check_proportion(cls, v: str) -> str:
        return _decimal_string(v)


class ZrxOrder(ZrxModel):
    maker_amount: str
    maker_token: str
    source: str
    source_path_id: str | None = None
    taker_amount: str
    taker_token: str
    type: int


class ZrxQuote(ZrxModel):
    """Priced execution plan for one (sell token, buy token, sell amount) triple.

    Integer fields are in native units (wei / token base units).
    """

    chain_id: int
    price: str
    guaranteed_price: str | None = None
    to: str = Field(pattern=HEX_PATTERN)
    data: str = Field(pattern=HEX_PATTERN)
    value: int = Field(ge=0)
    gas: int | None = Field(default=None, ge=0)
    estimated_gas: int | None = Field(default=None, ge=0)
    gas_price: int = Field(ge=0)
    protocol_fee: int | None = Field(default=None, ge=0)
    minimum_protocol_fee: int | None = Field(default=None, ge=0)
    buy_token_address: str = Field(pattern=HEX_PATTERN)
    sell_token_address: str = Field(pattern=HEX_PATTERN)
    buy_amount: int = Field(ge=0)
    sell_amount: int = Field(ge=0)
    allowance_target: str = Field(pattern=HEX_PATTERN)
    sell_token_to_eth_rate: str | None = None
    buy_token_to_eth_rate: str | None = None
    sources: list[ZrxSource] = Field(default_factory=list)
    orders: list[ZrxOrder] = Field(default_factory=list)

    @property
    def active_sources(self) -> list[ZrxSource]:
        """Liquidity sources that carry part of the fill."""
        return [s for s in self.sources if Decimal(s.proportion) > 0]


class ZrxAssetsResponse(ZrxModel):
    records: list[ZrxAsset]


class ZrxPricesResponse(ZrxModel):
    records: list[ZrxPrice]
