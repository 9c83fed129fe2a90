#!/usr/bin/env python3
"""CLI interface for Solana Honeypot Scanner."""

import asyncio
import csv
import json
import sys
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .core.exceptions import InvalidTokenAddressError
from .scanner import HoneypotScanner
from .utils.config import get_config, load_config
from .utils.logger import setup_logger


console = Console()

SEVERITY_STYLES = {
    "pass": ("✅", "green"),
    "warning": ("⚠️", "yellow"),
    "fatal": ("❌", "red"),
}

EXIT_HONEYPOT = 1
EXIT_INVALID_INPUT = 2


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level",
)
def cli(config: Optional[str], log_level: Optional[str]):
    """Solana Honeypot Scanner - Check whether a token can be sold."""
    load_config(config)
    setup_logger(log_level=log_level)


@cli.command()
@click.argument("token_address")
@click.option("--base", "-b", "base_token", help="Reference token to swap from (default: USDC)")
@click.option("--trial-amount", type=int, help="Trial amount in base-token smallest units")
@click.option("--slippage", type=float, help="Slippage tolerance in percent")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path (JSON)",
)
def check(
    token_address: str,
    base_token: Optional[str],
    trial_amount: Optional[int],
    slippage: Optional[float],
    output: Optional[str],
):
    """Check whether a token is a honeypot."""
    console.print(f"[cyan]Checking token: {escape(token_address)}[/cyan]")

    try:
        scanner = HoneypotScanner(trial_amount=trial_amount, slippage_pct=slippage)
    except ValueError as e:
        console.print(f"[red]Invalid parameters: {escape(str(e))}[/red]")
        sys.exit(EXIT_INVALID_INPUT)

    async def _check() -> Dict:
        try:
            return await scanner.scan_token(token_address, base_token)
        finally:
            await scanner.stop()

    try:
        result = asyncio.run(_check())
    except InvalidTokenAddressError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(EXIT_INVALID_INPUT)
    except ValueError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(EXIT_INVALID_INPUT)

    _display_verdict(result)

    if output:
        with open(output, "w") as f:
            json.dump(result, f, indent=2)
        console.print(f"[green]Results saved to: {output}[/green]")

    if result["is_honeypot"]:
        sys.exit(EXIT_HONEYPOT)


@cli.command()
@click.argument("token_file", type=click.File("r"))
@click.option("--base", "-b", "base_token", help="Reference token to swap from (default: USDC)")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path (CSV)",
)
def batch(token_file, base_token: Optional[str], output: Optional[str]):
    """Check every token address listed in TOKEN_FILE (one per line)."""
    addresses = [
        line.strip()
        for line in token_file
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if not addresses:
        console.print("[yellow]No token addresses found[/yellow]")
        return

    console.print(f"[cyan]Checking {len(addresses)} tokens...[/cyan]")
    scanner = HoneypotScanner()

    async def _batch() -> List[Dict]:
        try:
            return await scanner.scan_tokens(addresses, base_token)
        finally:
            await scanner.stop()

    try:
        results = asyncio.run(_batch())
    except ValueError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(EXIT_INVALID_INPUT)

    table = Table(title="Batch Results", show_header=True, header_style="bold cyan")
    table.add_column("Token", style="white")
    table.add_column("Verdict")
    table.add_column("Red Flags", style="yellow")

    for result in results:
        if "error" in result:
            table.add_row(result["token_address"], "[red]INVALID[/red]", escape(result["error"]))
            continue
        flags = [e["message"] for e in result["evidence"] if e["severity"] != "pass"]
        verdict = "[red]HONEYPOT[/red]" if result["is_honeypot"] else "[green]OK[/green]"
        table.add_row(result["token_address"], verdict, str(len(flags)))

    console.print(table)

    if output:
        _write_csv(output, results)
        console.print(f"[green]Results saved to: {output}[/green]")


@cli.command()
def config():
    """Display current configuration."""
    cfg = get_config()

    table = Table(title="Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="yellow")
    table.add_column("Value", style="green")

    # RPC settings
    rpc_url = cfg.get_rpc_url()
    table.add_section()
    table.add_row("RPC Provider", cfg.primary_rpc_provider.upper())
    table.add_row("RPC URL", rpc_url[:50] + "..." if len(rpc_url) > 50 else rpc_url)
    table.add_row("Backup RPC", "Configured" if cfg.get_backup_rpc_url() else "None")

    # Swap provider settings
    table.add_section()
    table.add_row("Quote URL", cfg.jupiter_quote_url)
    table.add_row("Price URL", cfg.jupiter_price_url)

    # Detection parameters
    table.add_section()
    table.add_row("Base Token", cfg.base_token_address)
    table.add_row("Trial Amount", f"{cfg.trial_amount} smallest units")
    table.add_row("Slippage", f"{cfg.slippage_pct}%")
    table.add_row(
        "Call Timeout",
        f"{cfg.check_timeout_seconds} seconds" if cfg.check_timeout_seconds > 0 else "Disabled",
    )
    table.add_row("Standard Programs", ", ".join(cfg.get_standard_token_programs()))

    console.print(table)


@cli.command()
def version():
    """Display version information."""
    from . import __version__, __author__, __description__

    console.print(Panel.fit(
        f"[bold cyan]Solana Honeypot Scanner[/bold cyan]\n\n"
        f"[yellow]Version:[/yellow] {__version__}\n"
        f"[yellow]Author:[/yellow] {__author__}\n"
        f"[yellow]Description:[/yellow] {__description__}",
        border_style="cyan"
    ))


def _display_verdict(result: Dict) -> None:
    """Display a verdict with its evidence trail."""
    console.print()

    evidence_table = Table(title="Evidence", show_header=True)
    evidence_table.add_column("", width=2)
    evidence_table.add_column("Check", style="cyan")
    evidence_table.add_column("Finding")

    for item in result["evidence"]:
        icon, style = SEVERITY_STYLES[item["severity"]]
        evidence_table.add_row(icon, item["check"], f"[{style}]{escape(item['message'])}[/{style}]")

    console.print(evidence_table)

    is_honeypot = result["is_honeypot"]
    console.print(Panel.fit(
        f"[bold yellow]Token:[/bold yellow] {result['token_address']}\n"
        f"[bold yellow]Base:[/bold yellow] {result['base_token_address']}\n"
        f"[bold yellow]Verdict:[/bold yellow] "
        + ("[bold red]LIKELY HONEYPOT[/bold red]" if is_honeypot else "[bold green]NO RED FLAGS[/bold green]"),
        title="🍯 Honeypot Check",
        border_style="red" if is_honeypot else "green",
    ))
    console.print()


def _write_csv(path: str, results: List[Dict]) -> None:
    """Write batch results to CSV."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["token_address", "is_honeypot", "reasons", "error"])
        for result in results:
            writer.writerow([
                result["token_address"],
                result.get("is_honeypot", ""),
                " | ".join(result.get("reasons", [])),
                result.get("error", ""),
            ])


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
