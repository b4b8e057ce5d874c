"""Drives a trade from user input to settlement."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .clients.models import ZrxQuote
from .clients.zrx import ZrxClient
from .domain import Asset
from .settlement.orchestrator import SettlementOrchestrator, SettlementResult
from .state import FetchKind, SwapStore
from .units import format_units

logger = logging.getLogger(__name__)


class SwapSession:
    """Wires user actions to aggregator fetches and the trade store.

    Every fetch carries a token from the store, so a response that arrives
    after the user changed the relevant selection is discarded.
    """

    def __init__(
        self,
        client: ZrxClient,
        store: SwapStore,
        orchestrator: SettlementOrchestrator | None = None,
    ):
        self.client = client
        self.store = store
        self.orchestrator = orchestrator

    async def refresh_catalog(self) -> None:
        token = self.store.begin_fetch(FetchKind.ASSETS)
        assets = await self.client.fetch_asset_catalog()
        self.store.apply_assets(assets, token)

    async def select_sell_asset(self, asset: Asset) -> None:
        """Select what to sell and load prices quoted against it."""
        self.store.set_assets(sell_asset=asset)
        token = self.store.begin_fetch(FetchKind.PRICES)
        prices = await self.client.fetch_prices(asset)
        self.store.apply_prices(prices, token)

    async def select_buy_asset(self, asset: Asset) -> ZrxQuote | None:
        """Select what to buy, re-quoting if a sell amount is already entered."""
        self.store.set_assets(buy_asset=asset)
        if self.store.state.sell_amount:
            return await self.set_sell_amount(self.store.state.sell_amount)
        return None

    async def set_sell_amount(self, sell_amount: str) -> ZrxQuote | None:
        """Record the sell amount and fetch a quote once both assets are chosen.

        Returns the quote applied to the store, or None if validation failed,
        the selection is incomplete or the response was stale.

        Raises:
            AmountScalingError: If ``sell_amount`` is not a valid amount for
                the sell asset. Trade state keeps the entered text.
        """
        state = self.store.state
        self.store.set_amounts(sell_amount, "")

        if state.sell_asset is None or state.buy_asset is None or not sell_amount:
            return None

        sell_asset = state.sell_asset
        buy_asset = state.buy_asset
        token = self.store.begin_fetch(FetchKind.QUOTE)
        quote = await self.client.fetch_quote(sell_asset, buy_asset, sell_amount)
        if not self.store.apply_quote(quote, token):
            return None

        if quote is not None:
            self.store.set_amounts(
                sell_amount, format_units(quote.buy_amount, buy_asset.decimals)
            )
        return quote

    def swappable_assets(self, wallet_assets: Iterable[Asset]) -> list[Asset]:
        return self.store.swappable_assets(wallet_assets)

    def swap_price(self) -> str:
        return self.store.swap_price()

    async def accept_quote(self) -> SettlementResult:
        """Settle the current quote and clear it from the store."""
        if self.orchestrator is None:
            raise RuntimeError("No settlement orchestrator configured for this session")
        quote = self.store.state.quote
        if quote is None:
            raise RuntimeError("No quote to accept; fetch a quote first")

        result = await self.orchestrator.approve_and_settle(quote)
        self.store.clear_quote()
        return result

    def back_out(self) -> None:
        """Leave the confirmation step, keeping the selection."""
        self.store.clear_quote()

    def abandon(self) -> None:
        self.store.reset()
