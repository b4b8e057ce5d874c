"""Domain models for the swap core."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """A fungible asset held by the wallet or listed by the aggregator.

    ``contract_address`` is None for the chain's native asset.
    """

    symbol: str
    decimals: int
    contract_address: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")

    @property
    def is_smart_contract(self) -> bool:
        """True for contract-based (ERC-20 style) fungible assets."""
        return bool(self.contract_address)

    def same_symbol(self, symbol: str) -> bool:
        return self.symbol.lower() == symbol.lower()


@dataclass(frozen=True)
class TradeSelection:
    """User-editable trade parameters.

    Amounts are human-readable decimal strings; they are only scaled to
    native units when a quote is requested.
    """

    sell_asset: Asset | None = None
    buy_asset: Asset | None = None
    sell_amount: str = ""
    buy_amount: str = ""
