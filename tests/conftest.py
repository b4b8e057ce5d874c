from __future__ import annotations

from typing import Any

import pytest

from wallet_swap.clients.models import ZrxQuote

SELL_TOKEN = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
BUY_TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
EXCHANGE_PROXY = "0xDef1C0ded9bec7F1a1670819833240f027b25EfF"


@pytest.fixture
def make_quote():
    """Build a ZrxQuote with sensible mainnet USDC -> DAI defaults."""

    def _make(**overrides: Any) -> ZrxQuote:
        fields: dict[str, Any] = {
            "chain_id": 1,
            "price": "0.9991",
            "to": EXCHANGE_PROXY,
            "data": "0xd9627aa4",
            "value": 0,
            "gas": 136000,
            "gas_price": 30_000_000_000,
            "buy_token_address": BUY_TOKEN,
            "sell_token_address": SELL_TOKEN,
            "buy_amount": 999,
            "sell_amount": 1000,
            "allowance_target": EXCHANGE_PROXY,
        }
        fields.update(overrides)
        return ZrxQuote(**fields)

    return _make
