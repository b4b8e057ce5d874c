from __future__ import annotations

import asyncio
from typing import Any

import backoff
import requests
from pydantic import BaseModel, ValidationError

from ..constants import PRICES_PER_PAGE, RETRYABLE_STATUS_CODES
from ..domain import Asset
from ..logger import get_logger
from ..settings import SwapSettings
from ..units import parse_units
from .models import ZrxAsset, ZrxAssetsResponse, ZrxPrice, ZrxPricesResponse, ZrxQuote

logger = get_logger(__name__)


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS_CODES
    )


class ZrxClient:
    """Client for the 0x swap API: token catalog, prices and quotes.

    Malformed payloads are logged and reported as "no data" (empty list or
    None). Transport errors are retried and then propagate.
    """

    def __init__(self, config: SwapSettings):
        self.config = config
        self.api_base_url = config.zrx_api_url_resolved
        self.timeout = config.http_timeout
        self.headers: dict[str, str] = {}
        if config.zrx_api_key is not None:
            self.headers["0x-api-key"] = config.zrx_api_key.get_secret_value()

        self._get_with_retry = backoff.on_exception(
            backoff.expo,
            requests.exceptions.RequestException,
            max_tries=config.http_max_tries,
            giveup=_giveup,
            jitter=backoff.full_jitter,
        )(self._get)

    async def _get(self, path: str, params: dict[str, str] | None = None):
        url = f"{self.api_base_url}{path}"
        logger.debug("Calling %s params=%s", url, params)
        response = await asyncio.to_thread(
            requests.get,
            url,
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def _fetch_validated(
        self,
        path: str,
        params: dict[str, str] | None,
        schema: type[BaseModel],
        what: str,
    ) -> Any | None:
        """GET ``path`` and validate the body against ``schema``.

        Returns the validated model, or None when the body fails validation.
        """
        response = await self._get_with_retry(path, params)

        try:
            data = response.json()
        except requests.exceptions.JSONDecodeError as e:
            logger.warning(
                "Swap %s API call returned invalid JSON, did the 0x API change? %s",
                what,
                e,
            )
            return None

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "Swap %s API call didn't validate, did the 0x API change? %s",
                what,
                e.errors(include_url=False),
            )
            logger.debug("Rejected %s payload: %s", what, data)
            return None

    async def fetch_asset_catalog(self) -> list[ZrxAsset]:
        """Fetch every token the aggregator can trade."""
        payload = await self._fetch_validated(
            "/swap/v1/tokens", None, ZrxAssetsResponse, "asset"
        )
        if payload is None:
            return []
        logger.debug("Aggregator lists %d assets", len(payload.records))
        return list(payload.records)

    async def fetch_prices(self, asset: Asset) -> list[ZrxPrice]:
        """Fetch prices of all tokens quoted in units of ``asset``."""
        payload = await self._fetch_validated(
            "/swap/v1/prices",
            {"sellToken": asset.symbol, "perPage": str(PRICES_PER_PAGE)},
            ZrxPricesResponse,
            "price",
        )
        if payload is None:
            return []
        logger.debug(
            "Aggregator returned %d prices against %s", len(payload.records), asset.symbol
        )
        return list(payload.records)

    async def fetch_quote(
        self, sell_asset: Asset, buy_asset: Asset, sell_amount: str
    ) -> ZrxQuote | None:
        """Fetch a firm quote for selling ``sell_amount`` of ``sell_asset``.

        Args:
            sell_asset: Asset being sold
            buy_asset: Asset being bought
            sell_amount: Human-readable amount of ``sell_asset``

        Returns:
            The validated quote, or None if the response failed validation

        Raises:
            AmountScalingError: If ``sell_amount`` cannot be scaled exactly
            requests.exceptions.RequestException: If the request fails after retries
        """
        native_amount = parse_units(sell_amount, sell_asset.decimals)

        params = {
            "sellToken": sell_asset.symbol,
            "buyToken": buy_asset.symbol,
            "sellAmount": str(native_amount),
        }
        if self.config.taker_address:
            params["takerAddress"] = self.config.taker_address

        return await self._fetch_validated("/swap/v1/quote", params, ZrxQuote, "quote")
