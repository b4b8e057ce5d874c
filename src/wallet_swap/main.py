"""CLI entrypoint for wallet-swap."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import typer
from eth_typing import URI
from web3 import Web3

from .clients.zrx import ZrxClient
from .domain import Asset
from .exceptions import SwapError
from .formatter import (
    format_catalog_table,
    format_quote,
    format_settlement_plan,
    format_settlement_result,
    format_swappable_table,
)
from .logger import setup_logging
from .session import SwapSession
from .settings import BroadcastMode, Network, SwapSettings
from .settlement.orchestrator import SettlementOrchestrator
from .signing.local import LocalAccountSigner
from .state import SwapStore

logger = logging.getLogger("wallet_swap")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Swap wallet assets through the 0x aggregator.",
)


def _settings(ctx: typer.Context) -> SwapSettings:
    settings = ctx.obj
    assert isinstance(settings, SwapSettings)
    return settings


def _build_session(settings: SwapSettings) -> SwapSession:
    w3 = Web3(Web3.HTTPProvider(URI(settings.rpc_url_resolved)))
    signer = None
    if settings.private_key is not None:
        signer = LocalAccountSigner(
            settings.private_key.get_secret_value(),
            settings.rpc_url_resolved,
            settings.chain_id,
            w3=w3,
        )
    orchestrator = SettlementOrchestrator(
        signer, w3, broadcast_mode=settings.broadcast_mode
    )
    return SwapSession(
        ZrxClient(settings),
        SwapStore(verbose_diagnostics=settings.verbose_diagnostics),
        orchestrator,
    )


def _find_by_symbol(assets: list[Asset], symbol: str) -> Asset | None:
    return next((a for a in assets if a.same_symbol(symbol)), None)


def _is_listed(session: SwapSession, asset: Asset) -> bool:
    """Whether the catalog lists ``asset`` under the same symbol and contract."""
    address = (asset.contract_address or "").lower()
    return any(
        a.same_symbol(asset.symbol) and (a.contract_address or "").lower() == address
        for a in (z.to_asset() for z in session.store.state.zrx_assets)
    )


def _resolve_buy_asset(session: SwapSession, symbol: str) -> Asset:
    catalog = [a.to_asset() for a in session.store.state.zrx_assets]
    asset = _find_by_symbol(catalog, symbol)
    if asset is None:
        raise typer.BadParameter(f"{symbol} is not listed by the aggregator")
    return asset


async def _prepare_trade(
    settings: SwapSettings, sell: str, buy: str, amount: str
) -> tuple[SwapSession, Asset, Asset]:
    """Load the catalog, select both assets and fetch a quote into the session."""
    session = _build_session(settings)
    await session.refresh_catalog()

    wallet_assets = settings.wallet_asset_list
    sell_asset = _find_by_symbol(wallet_assets, sell)
    if sell_asset is None:
        raise typer.BadParameter(
            f"{sell} is not in the wallet asset registry", param_hint="SELL"
        )

    if not _is_listed(session, sell_asset):
        raise typer.BadParameter(
            f"{sell} is not listed by the aggregator under the same contract",
            param_hint="SELL",
        )
    await session.select_sell_asset(sell_asset)

    buy_asset = _resolve_buy_asset(session, buy)
    await session.select_buy_asset(buy_asset)
    quote = await session.set_sell_amount(amount)
    if quote is None:
        raise SwapError(f"No quote available for {amount} {sell} -> {buy}")

    return session, sell_asset, buy_asset


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except SwapError as e:
        logger.error("❌ Error: %s", e)
        raise typer.Exit(code=1) from e


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [wallet_swap] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to trade on."),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint; overrides the network default."),
    ] = None,
    broadcast_mode: Annotated[
        BroadcastMode | None,
        typer.Option(
            "--broadcast-mode",
            help="Submit approval and swap concurrently or one after another.",
        ),
    ] = None,
    verbose_diagnostics: Annotated[
        bool | None,
        typer.Option(
            "--verbose-diagnostics/--quiet-diagnostics",
            help="Log wallet/aggregator asset discrepancies.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration shared by every command."""
    if config_path:
        os.environ["WALLET_SWAP_CONFIG"] = str(config_path)

    init_kwargs: dict[str, object] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if broadcast_mode is not None:
        init_kwargs["broadcast_mode"] = broadcast_mode
    if verbose_diagnostics is not None:
        init_kwargs["verbose_diagnostics"] = verbose_diagnostics
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = SwapSettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    ctx.obj = settings


@app.command()
def tokens(ctx: typer.Context):
    """List the tokens the aggregator can trade."""
    settings = _settings(ctx)

    async def _tokens() -> None:
        assets = await ZrxClient(settings).fetch_asset_catalog()
        format_catalog_table(assets)

    _run(_tokens())


@app.command()
def swappable(
    ctx: typer.Context,
    base: Annotated[
        str, typer.Option("--base", help="Symbol prices are quoted against.")
    ] = "ETH",
):
    """List configured wallet assets that can be traded."""
    settings = _settings(ctx)

    async def _swappable() -> None:
        session = _build_session(settings)
        await session.refresh_catalog()
        base_asset = _resolve_buy_asset(session, base)
        await session.select_sell_asset(base_asset)
        assets = session.swappable_assets(settings.wallet_asset_list)
        format_swappable_table(assets, session.store.state.zrx_prices)

    _run(_swappable())


@app.command()
def quote(
    ctx: typer.Context,
    sell: Annotated[str, typer.Argument(help="Symbol to sell.")],
    buy: Annotated[str, typer.Argument(help="Symbol to buy.")],
    amount: Annotated[str, typer.Argument(help="Amount to sell, e.g. 1.5.")],
):
    """Fetch a quote without settling it."""
    settings = _settings(ctx)

    async def _quote() -> None:
        session, sell_asset, buy_asset = await _prepare_trade(
            settings, sell, buy, amount
        )
        current = session.store.state.quote
        assert current is not None
        format_quote(current, sell_asset, buy_asset)
        if Decimal(session.swap_price()) > 0:
            typer.echo(f"Indicative {buy_asset.symbol} price: {session.swap_price()}")

    _run(_quote())


@app.command()
def swap(
    ctx: typer.Context,
    sell: Annotated[str, typer.Argument(help="Symbol to sell.")],
    buy: Annotated[str, typer.Argument(help="Symbol to buy.")],
    amount: Annotated[str, typer.Argument(help="Amount to sell, e.g. 1.5.")],
    dry_run: Annotated[
        bool | None,
        typer.Option("--dry-run/--no-dry-run", help="Do not sign or broadcast."),
    ] = None,
):
    """Quote and settle a swap (approval first when the allowance is short)."""
    settings = _settings(ctx)
    if dry_run is not None:
        settings.dry_run = dry_run

    if not settings.dry_run and settings.private_key is None:
        raise typer.BadParameter(
            "private_key is required when running with --no-dry-run.",
            param_hint=["--no-dry-run", "WALLET_SWAP_PRIVATE_KEY"],
        )

    async def _swap() -> None:
        session, sell_asset, buy_asset = await _prepare_trade(
            settings, sell, buy, amount
        )
        current = session.store.state.quote
        assert current is not None
        format_quote(current, sell_asset, buy_asset)

        if not settings.is_broadcast:
            owner = settings.taker_address
            orchestrator = session.orchestrator
            assert orchestrator is not None
            if owner is None and orchestrator.signer is None:
                raise typer.BadParameter(
                    "taker_address or private_key is required to check the allowance.",
                    param_hint=["WALLET_SWAP_TAKER_ADDRESS", "WALLET_SWAP_PRIVATE_KEY"],
                )
            plan = await orchestrator.plan_settlement(current, owner=owner)
            format_settlement_plan(plan, sell_asset)
            return

        result = await session.accept_quote()
        format_settlement_result(result)

    _run(_swap())


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
