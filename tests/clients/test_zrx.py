from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
import requests

from wallet_swap.clients.models import ZrxQuote
from wallet_swap.clients.zrx import ZrxClient
from wallet_swap.domain import Asset
from wallet_swap.exceptions import AmountScalingError
from wallet_swap.settings import SwapSettings

USDC = Asset(
    symbol="USDC",
    decimals=6,
    contract_address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
)
DAI = Asset(
    symbol="DAI",
    decimals=18,
    contract_address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
)

QUOTE_PAYLOAD = {
    "chainId": 1,
    "price": "0.9991",
    "guaranteedPrice": "0.9891",
    "to": "0xdef1c0ded9bec7f1a1670819833240f027b25eff",
    "data": "0xd9627aa4",
    "value": "0",
    "gas": "136000",
    "estimatedGas": "136000",
    "gasPrice": "30000000000",
    "protocolFee": "0",
    "minimumProtocolFee": "0",
    "buyTokenAddress": "0x6b175474e89094c44da98b954eedeac495271d0f",
    "sellTokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
    "buyAmount": "999100000000000000000",
    "sellAmount": "1000000000",
    "allowanceTarget": "0xdef1c0ded9bec7f1a1670819833240f027b25eff",
    "sellTokenToEthRate": "1800",
    "buyTokenToEthRate": "1799",
    "sources": [
        {"name": "Uniswap_V3", "proportion": "1"},
        {"name": "Curve", "proportion": "0"},
    ],
    "orders": [],
}


@pytest.fixture
def config():
    return SwapSettings(http_max_tries=2)


def _response(payload=None, json_error: Exception | None = None, status: int = 200):
    response = Mock()
    response.status_code = status
    if status >= 400:
        error = requests.exceptions.HTTPError(f"{status} error")
        error.response = response
        response.raise_for_status = Mock(side_effect=error)
    else:
        response.raise_for_status = Mock()
    if json_error is not None:
        response.json = Mock(side_effect=json_error)
    else:
        response.json = Mock(return_value=payload)
    return response


@pytest.fixture
def fake_http(monkeypatch):
    """Route asyncio.to_thread(requests.get, ...) to queued fake responses."""
    calls: list[tuple[str, dict]] = []
    responses: list[Mock] = []

    async def fake_to_thread(fn, url, **kwargs):
        calls.append((url, kwargs))
        return responses.pop(0)

    monkeypatch.setattr("asyncio.to_thread", fake_to_thread)
    return calls, responses


@pytest.mark.asyncio
async def test_fetch_asset_catalog_returns_records(config, fake_http):
    calls, responses = fake_http
    responses.append(
        _response(
            {
                "records": [
                    {
                        "symbol": "USDC",
                        "name": "USD Coin",
                        "decimals": 6,
                        "address": USDC.contract_address,
                    }
                ]
            }
        )
    )

    assets = await ZrxClient(config).fetch_asset_catalog()

    assert [a.symbol for a in assets] == ["USDC"]
    assert assets[0].decimals == 6
    assert calls[0][0] == "https://api.0x.org/swap/v1/tokens"


@pytest.mark.asyncio
async def test_fetch_asset_catalog_degrades_to_empty_on_bad_shape(
    config, fake_http, caplog
):
    _, responses = fake_http
    responses.append(_response({"records": [{"symbol": "USDC"}]}))

    with caplog.at_level("WARNING"):
        assets = await ZrxClient(config).fetch_asset_catalog()

    assert assets == []
    assert "didn't validate" in caplog.text


@pytest.mark.asyncio
async def test_fetch_asset_catalog_degrades_to_empty_on_invalid_json(config, fake_http):
    _, responses = fake_http
    responses.append(
        _response(json_error=requests.exceptions.JSONDecodeError("bad", "doc", 0))
    )

    assert await ZrxClient(config).fetch_asset_catalog() == []


@pytest.mark.asyncio
async def test_fetch_prices_sends_sell_token_and_page_size(config, fake_http):
    calls, responses = fake_http
    responses.append(
        _response({"records": [{"symbol": "DAI", "price": "0.0005"}]})
    )

    prices = await ZrxClient(config).fetch_prices(USDC)

    assert [(p.symbol, p.price) for p in prices] == [("DAI", "0.0005")]
    url, kwargs = calls[0]
    assert url == "https://api.0x.org/swap/v1/prices"
    assert kwargs["params"] == {"sellToken": "USDC", "perPage": "1000"}


@pytest.mark.asyncio
async def test_fetch_prices_rejects_non_decimal_price(config, fake_http):
    _, responses = fake_http
    responses.append(_response({"records": [{"symbol": "DAI", "price": "cheap"}]}))

    assert await ZrxClient(config).fetch_prices(USDC) == []


@pytest.mark.asyncio
async def test_fetch_quote_scales_sell_amount(config, fake_http):
    calls, responses = fake_http
    responses.append(_response(QUOTE_PAYLOAD))

    quote = await ZrxClient(config).fetch_quote(USDC, DAI, "1000")

    assert isinstance(quote, ZrxQuote)
    assert quote.sell_amount == 1_000_000_000
    assert quote.buy_amount == 999_100_000_000_000_000_000
    assert quote.gas_price == 30_000_000_000
    assert [s.name for s in quote.active_sources] == ["Uniswap_V3"]
    _, kwargs = calls[0]
    assert kwargs["params"] == {
        "sellToken": "USDC",
        "buyToken": "DAI",
        "sellAmount": "1000000000",
    }


@pytest.mark.asyncio
async def test_fetch_quote_sends_taker_and_api_key(fake_http):
    calls, responses = fake_http
    responses.append(_response(QUOTE_PAYLOAD))
    config = SwapSettings(
        taker_address="0x1234567890123456789012345678901234567890",
        zrx_api_key="secret",
    )

    await ZrxClient(config).fetch_quote(USDC, DAI, "1")

    _, kwargs = calls[0]
    assert kwargs["params"]["takerAddress"] == config.taker_address
    assert kwargs["headers"] == {"0x-api-key": "secret"}


@pytest.mark.asyncio
async def test_fetch_quote_returns_none_on_bad_shape(config, fake_http):
    _, responses = fake_http
    payload = dict(QUOTE_PAYLOAD, sellAmount="1.5")
    responses.append(_response(payload))

    assert await ZrxClient(config).fetch_quote(USDC, DAI, "1") is None


@pytest.mark.asyncio
async def test_fetch_quote_rejects_bad_amount_before_request(config, fake_http):
    calls, _ = fake_http

    with pytest.raises(AmountScalingError):
        await ZrxClient(config).fetch_quote(USDC, DAI, "1.0000001")

    assert calls == []


@pytest.mark.asyncio
async def test_client_error_is_not_retried(config, fake_http):
    calls, responses = fake_http
    responses.append(_response(status=400))

    with pytest.raises(requests.exceptions.HTTPError):
        await ZrxClient(config).fetch_asset_catalog()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_error_is_retried(config, fake_http, monkeypatch):
    monkeypatch.setattr("asyncio.sleep", AsyncMock())
    calls, responses = fake_http
    responses.append(_response(status=503))
    responses.append(_response({"records": []}))

    assets = await ZrxClient(config).fetch_asset_catalog()

    assert assets == []
    assert len(calls) == 2
