"""Rich console output for the CLI."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .clients.models import ZrxAsset, ZrxPrice, ZrxQuote
from .constants import MAX_UINT256
from .domain import Asset
from .processors import current_trade_price
from .settlement.orchestrator import SettlementPlan, SettlementResult
from .units import format_units


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _format_allowance(allowance: int | None, decimals: int) -> str:
    if allowance is None:
        return "n/a (native asset)"
    if allowance == MAX_UINT256:
        return "unlimited"
    return format_units(allowance, decimals)


def format_catalog_table(assets: Sequence[ZrxAsset], console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title="Aggregator Tokens")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Decimals", justify="right")
    table.add_column("Address", style="dim")
    for asset in assets:
        table.add_row(asset.symbol, asset.name, str(asset.decimals), asset.address)
    console.print(table)


def format_swappable_table(
    assets: Sequence[Asset],
    prices: Sequence[ZrxPrice],
    console: Console | None = None,
) -> None:
    console = console or Console()
    table = Table(title="Swappable Wallet Assets")
    table.add_column("Symbol", style="cyan")
    table.add_column("Contract", style="dim")
    table.add_column("Price", justify="right", style="green")
    for asset in assets:
        table.add_row(
            asset.symbol,
            asset.contract_address or "",
            current_trade_price(asset, prices),
        )
    console.print(table)


def format_quote(
    quote: ZrxQuote,
    sell_asset: Asset,
    buy_asset: Asset,
    console: Console | None = None,
) -> None:
    """Print a quote summary panel."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row(
        "Sell", f"{format_units(quote.sell_amount, sell_asset.decimals)} {sell_asset.symbol}"
    )
    table.add_row(
        "Buy", f"{format_units(quote.buy_amount, buy_asset.decimals)} {buy_asset.symbol}"
    )
    table.add_row("Price", quote.price)
    if quote.guaranteed_price is not None:
        table.add_row("Guaranteed Price", quote.guaranteed_price)
    table.add_row("Gas Price", f"{quote.gas_price:,} wei")
    if quote.gas is not None:
        table.add_row("Gas", f"{quote.gas:,}")
    table.add_row("Settlement Contract", _truncate_address(quote.to))
    table.add_row("Allowance Target", _truncate_address(quote.allowance_target))

    sources = ", ".join(
        f"{s.name} ({s.proportion})" for s in quote.active_sources
    ) or "-"

    console.print(
        Panel(
            Group(table, Text(f"Sources: {sources}", style="dim")),
            title="[bold]Swap Quote[/]",
            border_style="blue",
        )
    )


def format_settlement_plan(
    plan: SettlementPlan, sell_asset: Asset, console: Console | None = None
) -> None:
    """Print the unsigned transactions of a dry run."""
    console = console or Console()

    table = Table(title="Settlement Plan (dry run)")
    table.add_column("#", justify="right")
    table.add_column("Kind", style="cyan")
    table.add_column("To")
    table.add_column("Value", justify="right")
    table.add_column("Calldata", style="dim")

    kinds = ["approve", "swap"] if plan.approval_required else ["swap"]
    for index, (kind, request) in enumerate(zip(kinds, plan.requests), start=1):
        data = str(request.get("data", ""))
        table.add_row(
            str(index),
            kind,
            _truncate_address(str(request["to"])),
            str(request.get("value", 0)),
            data if len(data) <= 42 else f"{data[:42]}...",
        )

    console.print(
        f"Owner: [cyan]{plan.owner}[/]  Allowance: "
        f"[green]{_format_allowance(plan.allowance, sell_asset.decimals)}[/]"
    )
    console.print(table)


def format_settlement_result(
    result: SettlementResult, console: Console | None = None
) -> None:
    console = console or Console()
    for tx_hash in result.tx_hashes:
        console.print(f"Submitted [bold green]{tx_hash}[/]")
