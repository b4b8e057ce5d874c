from __future__ import annotations

import pytest

from wallet_swap.clients.models import ZrxAsset, ZrxPrice
from wallet_swap.domain import Asset
from wallet_swap.state import FetchKind, SwapState, SwapStore

USDC = Asset(symbol="USDC", contract_address="0xAAA", decimals=6)
DAI = Asset(symbol="DAI", contract_address="0xDDD", decimals=18)
WETH = Asset(symbol="WETH", contract_address="0xEEE", decimals=18)


@pytest.fixture
def store() -> SwapStore:
    return SwapStore()


def test_initial_state(store):
    state = store.state

    assert state == SwapState()
    assert state.sell_asset is None
    assert state.buy_asset is None
    assert state.sell_amount == ""
    assert state.buy_amount == ""
    assert state.zrx_assets == ()
    assert state.zrx_prices == ()
    assert state.quote is None


def test_set_amounts_keeps_assets(store):
    store.set_assets(sell_asset=USDC)
    store.set_assets(buy_asset=DAI)

    store.set_amounts("10", "9.99")

    assert store.state.sell_asset == USDC
    assert store.state.buy_asset == DAI
    assert (store.state.sell_amount, store.state.buy_amount) == ("10", "9.99")


def test_new_sell_asset_clears_buy_asset_and_amounts(store):
    store.set_assets(sell_asset=USDC)
    store.set_assets(buy_asset=DAI)
    store.set_amounts("10", "9.99")

    store.set_assets(sell_asset=WETH)

    assert store.state.sell_asset == WETH
    assert store.state.buy_asset is None
    assert store.state.sell_amount == ""
    assert store.state.buy_amount == ""


def test_new_sell_asset_wins_over_buy_asset_in_same_call(store):
    store.set_amounts("10", "9.99")

    store.set_assets(sell_asset=USDC, buy_asset=DAI)

    assert store.state.sell_asset == USDC
    assert store.state.buy_asset is None
    assert store.state.sell_amount == ""


def test_buy_asset_only_merges(store):
    store.set_assets(sell_asset=USDC)
    store.set_amounts("5", "")

    store.set_assets(buy_asset=DAI)

    assert store.state.sell_asset == USDC
    assert store.state.buy_asset == DAI
    assert store.state.sell_amount == "5"


def test_transitions_replace_state_object(store):
    before = store.state

    store.set_assets(sell_asset=USDC)

    assert store.state is not before
    assert before.sell_asset is None


def test_clear_quote_keeps_selection(store, make_quote):
    store.set_assets(sell_asset=USDC)
    store.set_assets(buy_asset=DAI)
    store.set_amounts("1", "1")
    store.apply_quote(make_quote())

    store.clear_quote()

    assert store.state.quote is None
    assert store.state.sell_asset == USDC
    assert store.state.buy_asset == DAI
    assert store.state.sell_amount == "1"


def test_fetch_results_overwrite_wholesale_including_empty(store, make_quote):
    store.apply_prices([ZrxPrice(symbol="DAI", price="1")])
    store.apply_prices([])
    store.apply_quote(make_quote())
    store.apply_quote(None)

    assert store.state.zrx_prices == ()
    assert store.state.quote is None


def test_stale_price_result_is_dropped(store):
    store.set_assets(sell_asset=USDC)
    token = store.begin_fetch(FetchKind.PRICES)

    store.set_assets(sell_asset=WETH)
    applied = store.apply_prices([ZrxPrice(symbol="DAI", price="1")], token)

    assert applied is False
    assert store.state.zrx_prices == ()


def test_amount_change_does_not_invalidate_price_fetch(store):
    store.set_assets(sell_asset=USDC)
    token = store.begin_fetch(FetchKind.PRICES)

    store.set_amounts("3", "")

    assert store.apply_prices([ZrxPrice(symbol="DAI", price="1")], token) is True


def test_stale_quote_result_is_dropped(store, make_quote):
    store.set_assets(sell_asset=USDC)
    store.set_assets(buy_asset=DAI)
    store.set_amounts("1", "")
    token = store.begin_fetch(FetchKind.QUOTE)

    store.set_amounts("2", "")

    assert store.apply_quote(make_quote(), token) is False
    assert store.state.quote is None


def test_latest_catalog_fetch_wins(store):
    first = store.begin_fetch(FetchKind.ASSETS)
    second = store.begin_fetch(FetchKind.ASSETS)
    newer = [ZrxAsset(symbol="DAI", name="Dai", decimals=18, address="0xDDD")]

    assert store.apply_assets(newer, second) is True
    assert store.apply_assets([], first) is False
    assert store.state.zrx_assets == tuple(newer)


def test_token_kind_mismatch_raises(store):
    token = store.begin_fetch(FetchKind.PRICES)

    with pytest.raises(ValueError):
        store.apply_quote(None, token)


def test_reset_clears_trade_but_keeps_catalog(store, make_quote):
    catalog = [ZrxAsset(symbol="DAI", name="Dai", decimals=18, address="0xDDD")]
    store.apply_assets(catalog)
    store.set_assets(sell_asset=USDC)
    store.apply_prices([ZrxPrice(symbol="DAI", price="1")])
    store.apply_quote(make_quote())

    store.reset()

    assert store.state.selection.sell_asset is None
    assert store.state.quote is None
    assert store.state.zrx_prices == ()
    assert store.state.zrx_assets == tuple(catalog)


def test_selectors_use_current_snapshot(store):
    store.apply_assets(
        [ZrxAsset(symbol="USDC", name="USD Coin", decimals=6, address="0xaaa")]
    )
    store.set_assets(sell_asset=WETH)
    store.apply_prices([ZrxPrice(symbol="USDC", price="0.00055")])
    store.set_assets(buy_asset=USDC)

    assert store.swappable_assets([USDC, DAI]) == [USDC]
    assert store.swap_price() == "0.00055"


@pytest.fixture
def quoted_store(store, make_quote) -> SwapStore:
    store.set_assets(sell_asset=USDC)
    store.set_assets(buy_asset=DAI)
    store.set_amounts("1", "")
    store.apply_quote(make_quote())
    return store


def test_new_sell_asset_drops_quote(quoted_store):
    quoted_store.set_assets(sell_asset=WETH)

    assert quoted_store.state.quote is None


def test_new_buy_asset_drops_quote(quoted_store):
    quoted_store.set_assets(buy_asset=WETH)

    assert quoted_store.state.quote is None
    assert quoted_store.state.sell_amount == "1"


def test_new_sell_amount_drops_quote(quoted_store):
    quoted_store.set_amounts("2", "")

    assert quoted_store.state.quote is None


def test_buy_amount_update_keeps_quote(quoted_store):
    quote = quoted_store.state.quote
    token = quoted_store.begin_fetch(FetchKind.QUOTE)

    quoted_store.set_amounts("1", "0.999")

    assert quoted_store.state.quote is quote
    assert quoted_store.state.buy_amount == "0.999"
    assert quoted_store.is_current(token)
