"""Typer-based CLI for querying the Independent Reserve API."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .api.client import IndependentReserveClient
from .api.result import Failure, Result


# Import with local function so tests can patch it
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)


def _configure_logging(settings):
    from .logging import configure_logging
    return configure_logging(settings.logging, secrets=settings.client.secrets())


app = typer.Typer(help="Independent Reserve API client CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def create_client(config_path: Optional[Path] = None) -> IndependentReserveClient:
    """Build a client from settings, configuring logging on the way."""
    settings = _load_settings(config_path)
    _configure_logging(settings)
    return IndependentReserveClient.from_settings(settings.client)


async def _call(
    config: Optional[Path],
    call: Callable[[IndependentReserveClient], Awaitable[Result]],
) -> Result:
    async with create_client(config) as client:
        return await call(client)


def _run(config: Optional[Path], call: Callable[[IndependentReserveClient], Awaitable[Result]]) -> Any:
    """Execute one API call and return its data, exiting 1 on failure."""
    try:
        result = asyncio.run(_call(config, call))
    except Exception as e:
        logger.error("Command failed: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if isinstance(result, Failure):
        console.print(Panel.fit(
            f"[red]{result.kind.value}[/red]\n{escape(result.message)}",
            title="Request Failed",
        ))
        raise typer.Exit(1)

    return result.data


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


@app.command()
def currencies(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List valid primary and secondary currency codes."""
    primary = _run(config, lambda c: c.get_valid_primary_currency_codes())
    secondary = _run(config, lambda c: c.get_valid_secondary_currency_codes())

    table = Table(title="Currency Codes")
    table.add_column("Primary", style="cyan")
    table.add_column("Secondary", style="green")
    for i in range(max(len(primary), len(secondary))):
        table.add_row(
            primary[i] if i < len(primary) else "",
            secondary[i] if i < len(secondary) else "",
        )
    console.print(table)


@app.command()
def market_summary(
    primary: str = typer.Argument(..., help="Primary currency code, e.g. Xbt"),
    secondary: str = typer.Argument(..., help="Secondary currency code, e.g. Aud"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the market summary for a currency pair."""
    _print_json(_run(config, lambda c: c.get_market_summary(primary, secondary)))


@app.command()
def order_book(
    primary: str = typer.Argument(..., help="Primary currency code"),
    secondary: str = typer.Argument(..., help="Secondary currency code"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the order book for a currency pair."""
    _print_json(_run(config, lambda c: c.get_order_book(primary, secondary)))


@app.command()
def recent_trades(
    primary: str = typer.Argument(..., help="Primary currency code"),
    secondary: str = typer.Argument(..., help="Secondary currency code"),
    count: int = typer.Option(10, help="Number of trades to retrieve"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show recent trades for a currency pair."""
    _print_json(_run(config, lambda c: c.get_recent_trades(primary, secondary, count)))


@app.command()
def accounts(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List account balances (requires credentials)."""
    data = _run(config, lambda c: c.get_accounts())

    table = Table(title="Accounts")
    table.add_column("Currency", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Available", style="green")
    table.add_column("Total", style="blue")
    for account in data:
        table.add_row(
            str(account.get("CurrencyCode", "")),
            str(account.get("AccountStatus", "")),
            str(account.get("AvailableBalance", "")),
            str(account.get("TotalBalance", "")),
        )
    console.print(table)


@app.command()
def open_orders(
    primary: str = typer.Argument(..., help="Primary currency code"),
    secondary: str = typer.Argument(..., help="Secondary currency code"),
    page_index: int = typer.Option(1, help="Page index (1-based)"),
    page_size: int = typer.Option(25, help="Page size (1-50)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List open orders (requires credentials)."""
    _print_json(_run(config, lambda c: c.get_open_orders(primary, secondary, page_index, page_size)))


@app.command()
def brokerage_fees(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show brokerage fees (requires credentials)."""
    _print_json(_run(config, lambda c: c.get_brokerage_fees()))


def main():
    """CLI main entry point."""
    app()


if __name__ == "__main__":
    main()
