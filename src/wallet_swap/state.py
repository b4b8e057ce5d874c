"""Trade state container.

``SwapState`` is immutable; ``SwapStore`` replaces it wholesale on every
transition so no field is ever observed half-written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from .clients.models import ZrxAsset, ZrxPrice, ZrxQuote
from .domain import Asset, TradeSelection
from .processors import current_trade_price, swappable_assets

logger = logging.getLogger(__name__)


class FetchKind(str, Enum):
    ASSETS = "assets"
    PRICES = "prices"
    QUOTE = "quote"


@dataclass(frozen=True)
class FetchToken:
    """Identifies the state generation a fetch was issued against."""

    kind: FetchKind
    generation: int


@dataclass(frozen=True)
class SwapState:
    selection: TradeSelection = field(default_factory=TradeSelection)
    zrx_assets: tuple[ZrxAsset, ...] = ()
    zrx_prices: tuple[ZrxPrice, ...] = ()
    quote: ZrxQuote | None = None

    @property
    def sell_asset(self) -> Asset | None:
        return self.selection.sell_asset

    @property
    def buy_asset(self) -> Asset | None:
        return self.selection.buy_asset

    @property
    def sell_amount(self) -> str:
        return self.selection.sell_amount

    @property
    def buy_amount(self) -> str:
        return self.selection.buy_amount


class SwapStore:
    """Holds the current ``SwapState`` and applies user actions and fetch results.

    Each fetch kind has its own generation counter. Prices depend on the sell
    asset and quotes on the whole selection, so a change only invalidates the
    fetches that depend on it. The catalog depends on no selection.
    A result carrying a token from an older generation is dropped instead of
    overwriting newer state.
    """

    def __init__(self, verbose_diagnostics: bool = False):
        self.verbose_diagnostics = verbose_diagnostics
        self._state = SwapState()
        self._generations: dict[FetchKind, int] = {kind: 0 for kind in FetchKind}

    @property
    def state(self) -> SwapState:
        return self._state

    def _bump(self, *kinds: FetchKind) -> None:
        for kind in kinds:
            self._generations[kind] += 1

    def _select(self, selection: TradeSelection, drop_quote: bool = False) -> None:
        if not drop_quote:
            self._state = replace(self._state, selection=selection)
            return
        self._state = replace(self._state, selection=selection, quote=None)
        self._bump(FetchKind.QUOTE)

    # --- user actions ---

    def set_amounts(self, sell_amount: str, buy_amount: str) -> None:
        """Replace both amounts; asset selection is untouched.

        A quote is only valid for the sell amount it was fetched with, so a
        new sell amount drops it. Changing only ``buy_amount`` keeps it.
        """
        self._select(
            replace(
                self._state.selection, sell_amount=sell_amount, buy_amount=buy_amount
            ),
            drop_quote=sell_amount != self._state.sell_amount,
        )

    def set_assets(
        self, sell_asset: Asset | None = None, buy_asset: Asset | None = None
    ) -> None:
        """Update the asset selection.

        A new sell asset invalidates the buy asset and both amounts, even when
        ``buy_asset`` is passed in the same call. Any asset change drops the
        current quote.
        """
        if sell_asset is not None:
            self._select(TradeSelection(sell_asset=sell_asset), drop_quote=True)
            self._bump(FetchKind.PRICES)
            return

        if buy_asset is not None:
            self._select(
                replace(self._state.selection, buy_asset=buy_asset), drop_quote=True
            )

    def clear_quote(self) -> None:
        """Drop the current quote, keeping assets and amounts."""
        self._state = replace(self._state, quote=None)

    def reset(self) -> None:
        """Abandon the trade: clear selection and quote, keep the catalog."""
        self._state = replace(
            self._state, selection=TradeSelection(), zrx_prices=(), quote=None
        )
        self._bump(FetchKind.PRICES, FetchKind.QUOTE)

    # --- fetch bookkeeping ---

    def begin_fetch(self, kind: FetchKind) -> FetchToken:
        if kind is FetchKind.ASSETS:
            # Catalog fetches only race each other; the latest issued one wins
            self._bump(FetchKind.ASSETS)
        return FetchToken(kind=kind, generation=self._generations[kind])

    def is_current(self, token: FetchToken) -> bool:
        return self._generations[token.kind] == token.generation

    def _accept(self, kind: FetchKind, token: FetchToken | None) -> bool:
        if token is None:
            return True
        if token.kind is not kind:
            raise ValueError(f"Token for {token.kind.value} used to apply {kind.value}")
        if not self.is_current(token):
            logger.debug(
                "Dropping stale %s result (generation %d, current %d)",
                kind.value,
                token.generation,
                self._generations[kind],
            )
            return False
        return True

    def apply_assets(
        self, assets: Sequence[ZrxAsset], token: FetchToken | None = None
    ) -> bool:
        """Replace the catalog. Returns False if the result was stale."""
        if not self._accept(FetchKind.ASSETS, token):
            return False
        self._state = replace(self._state, zrx_assets=tuple(assets))
        return True

    def apply_prices(
        self, prices: Sequence[ZrxPrice], token: FetchToken | None = None
    ) -> bool:
        """Replace the price list. Returns False if the result was stale."""
        if not self._accept(FetchKind.PRICES, token):
            return False
        self._state = replace(self._state, zrx_prices=tuple(prices))
        return True

    def apply_quote(
        self, quote: ZrxQuote | None, token: FetchToken | None = None
    ) -> bool:
        """Replace the quote, None included. Returns False if the result was stale."""
        if not self._accept(FetchKind.QUOTE, token):
            return False
        self._state = replace(self._state, quote=quote)
        return True

    # --- selectors ---

    def swappable_assets(self, wallet_assets: Iterable[Asset]) -> list[Asset]:
        return swappable_assets(
            wallet_assets,
            self._state.zrx_assets,
            self._state.zrx_prices,
            verbose_diagnostics=self.verbose_diagnostics,
        )

    def swap_price(self) -> str:
        return current_trade_price(self._state.buy_asset, self._state.zrx_prices)
