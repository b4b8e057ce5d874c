"""Match wallet holdings against the aggregator's catalog and price list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..clients.models import ZrxAsset, ZrxPrice
from ..constants import ZERO_PRICE
from ..domain import Asset
from ..logger import get_logger

logger = get_logger(__name__)


def _find_price(symbol: str, catalog_prices: Iterable[ZrxPrice]) -> ZrxPrice | None:
    needle = symbol.lower()
    return next((p for p in catalog_prices if p.symbol.lower() == needle), None)


def _match_catalog_asset(
    wallet_asset: Asset,
    catalog_assets: Sequence[ZrxAsset],
    verbose_diagnostics: bool,
) -> ZrxAsset | None:
    """Return the catalog entry matching both symbol and contract address.

    Entries that match on only one of the two are reported as discrepancies
    when ``verbose_diagnostics`` is set and never returned.
    """
    assert wallet_asset.contract_address is not None
    symbol = wallet_asset.symbol.lower()
    address = wallet_asset.contract_address.lower()

    for catalog_asset in catalog_assets:
        symbol_matches = catalog_asset.symbol.lower() == symbol
        address_matches = catalog_asset.address.lower() == address

        if symbol_matches and address_matches:
            return catalog_asset

        if not verbose_diagnostics:
            continue
        if symbol_matches:
            logger.warning(
                "Swap asset discrepancy: symbol matches but contract address doesn't "
                "(wallet %s at %s, aggregator %s at %s)",
                wallet_asset.symbol,
                wallet_asset.contract_address,
                catalog_asset.symbol,
                catalog_asset.address,
            )
        elif address_matches:
            logger.warning(
                "Swap asset discrepancy: contract address matches but symbol doesn't "
                "(wallet %s at %s, aggregator %s at %s)",
                wallet_asset.symbol,
                wallet_asset.contract_address,
                catalog_asset.symbol,
                catalog_asset.address,
            )

    return None


def swappable_assets(
    wallet_assets: Iterable[Asset],
    catalog_assets: Sequence[ZrxAsset],
    catalog_prices: Sequence[ZrxPrice],
    verbose_diagnostics: bool = False,
) -> list[Asset]:
    """Filter wallet assets down to the ones the aggregator can trade.

    Args:
        wallet_assets: Assets held by the wallet, in display order
        catalog_assets: Aggregator token catalog
        catalog_prices: Aggregator price list
        verbose_diagnostics: Log symbol-only and address-only matches

    Returns:
        Contract-based wallet assets with an exact (symbol, address) catalog
        match and a price entry, in wallet order and without duplicates.
        Native assets are not matched here and never included.
    """
    result: list[Asset] = []
    seen: set[tuple[str, str]] = set()

    for wallet_asset in wallet_assets:
        if not wallet_asset.is_smart_contract:
            continue

        assert wallet_asset.contract_address is not None
        key = (wallet_asset.symbol.lower(), wallet_asset.contract_address.lower())
        if key in seen:
            continue

        matching = _match_catalog_asset(
            wallet_asset, catalog_assets, verbose_diagnostics
        )
        if matching is None:
            continue

        if _find_price(matching.symbol, catalog_prices) is None:
            logger.debug("No aggregator price for %s, not swappable", matching.symbol)
            continue

        seen.add(key)
        result.append(wallet_asset)

    return result


def current_trade_price(
    buy_asset: Asset | None, catalog_prices: Iterable[ZrxPrice]
) -> str:
    """Price of ``buy_asset`` in the current price list, or "0" if unlisted."""
    if buy_asset is None:
        return ZERO_PRICE
    price = _find_price(buy_asset.symbol, catalog_prices)
    return price.price if price is not None else ZERO_PRICE
