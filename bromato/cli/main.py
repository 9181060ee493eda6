"""
Bromato CLI - Run instruction chains from the command line.
"""

import asyncio
import json
import logging
import sys

import click
from playwright.async_api import Error as PlaywrightError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bromato.core.config import BromatoConfig
from bromato.core.errors import BromatoError
from bromato.core.grammar import (
    Action,
    GetBy,
    Getter,
    NodeKind,
    accepted_values,
    is_batch,
    parse_input,
)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_chain(chain_file):
    try:
        return json.load(chain_file)
    except json.JSONDecodeError as e:
        console.print(f"[red]❌ {escape(chain_file.name)} is not valid JSON: {escape(str(e))}[/red]")
        sys.exit(1)


def _truncate(value, limit: int = 40) -> str:
    text = "" if value is None else json.dumps(value, default=str)
    return text[:limit] + "..." if len(text) > limit else text


@click.group()
@click.version_option(version="0.1.0", prog_name="bromato")
def cli():
    """🍅 Bromato - Remote browser control from JSON instruction chains."""
    pass


@cli.command()
@click.argument('url')
@click.argument('chain_file', type=click.File('r'))
@click.option('--upload-dir', default=None, help='Where inline setInputFiles payloads are staged')
@click.option('--user-data-dir', default=None, help='Persistent browser profile directory')
@click.option('--headless/--headed', default=None, help='Run browser in headless mode')
@click.option('--timeout', 'wait_for_timeout_ms', default=None, type=int,
              help='Timeout for waitFor actions in milliseconds (default: 5000)')
@click.option('--record', 'record_path', default=None, type=click.Path(dir_okay=False),
              help='Write a step-by-step JSON record of the run')
@click.option('--verbose', '-v', is_flag=True, help='Log every narrowing step')
def run(url, chain_file, upload_dir, user_data_dir, headless, wait_for_timeout_ms, record_path, verbose):
    """
    Open URL and run the chain (or batch of chains) in CHAIN_FILE.

    \b
    Examples:

        bromato run "https://example.com" chain.json --headless

        cat chain.json | bromato run "https://example.com/upload" - --record run.json
    """
    _setup_logging(verbose)
    items = _load_chain(chain_file)
    config = BromatoConfig.from_env(
        upload_dir=upload_dir,
        user_data_dir=user_data_dir,
        headless=headless,
        wait_for_timeout_ms=wait_for_timeout_ms,
    )

    from bromato.reporters.chain_recorder import ChainRecorder
    recorder = ChainRecorder() if record_path else None

    console.print(f"[bold]Target:[/bold] {url}")
    console.print(f"[bold]Uploads:[/bold] {config.upload_dir}")
    console.print()

    try:
        result = asyncio.run(_run_chain(url, items, config, recorder))
    except BromatoError as e:
        console.print(f"[red]❌ Invalid chain: {escape(str(e))}[/red]")
        sys.exit(1)
    except PlaywrightError as e:
        console.print(f"[red]❌ Browser error: {escape(e.message)}[/red]")
        sys.exit(1)
    finally:
        if recorder:
            console.print(f"[dim]Record: {recorder.save(record_path)}[/dim]")

    if result is None:
        console.print("[bold green]✅ Chain completed[/bold green]")
    else:
        console.print(Panel(json.dumps(result, indent=2, default=str), title="Result", border_style="green"))


async def _run_chain(url, items, config, recorder):
    from bromato.core.browser import open_page
    from bromato.core.dispatcher import execute_locator_chain
    from bromato.layers.middleware.file_upload import FileUploadStager

    async with open_page(config) as page:
        await page.goto(url)
        return await execute_locator_chain(
            page,
            items,
            middlewares=[FileUploadStager(config.upload_dir)],
            config=config,
            recorder=recorder,
        )


@cli.command()
@click.argument('chain_file', type=click.File('r'))
def validate(chain_file):
    """
    Check CHAIN_FILE against the instruction grammar without a browser.
    """
    items = _load_chain(chain_file)
    try:
        parsed = parse_input(items)
    except BromatoError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)

    chains = parsed if is_batch(parsed) else [parsed]

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Chain", style="dim", width=6)
    table.add_column("Step", style="dim", width=5)
    table.add_column("Type", style="green")
    table.add_column("Operation", style="yellow")
    table.add_column("Value", max_width=40)

    for chain_index, chain in enumerate(chains):
        for step, node in enumerate(chain, 1):
            table.add_row(
                str(chain_index),
                str(step),
                node.kind.value,
                node.operation.value if node.operation is not None else "",
                _truncate(node.value),
            )

    console.print(table)
    console.print(f"[bold green]✅ {len(chains)} chain(s) valid[/bold green]")


@cli.command()
def grammar():
    """List the accepted instruction types and operations."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="green")
    table.add_column("Accepted values", style="yellow")

    table.add_row("type", ", ".join(accepted_values(NodeKind)))
    table.add_row("getBy", ", ".join(accepted_values(GetBy)))
    table.add_row("action", ", ".join(accepted_values(Action)))
    table.add_row("getter", ", ".join(accepted_values(Getter)))

    console.print(table)


@cli.command()
def version():
    """Show version information."""
    from bromato import __version__
    console.print(f"Bromato v{__version__}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
