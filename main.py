#!/usr/bin/env python3
"""
ComicFeed - Web Comic Feed Reader Core
======================================

Diagnostic CLI for loading and inspecting comic feeds.

Usage:
    python main.py --help                         # Show all commands
    python main.py check-config                   # Validate configuration
    python main.py fetch-feed URL                 # Load a feed end to end
    python main.py list-feeds                     # Load the feed source list
    python main.py sanitize FILE --base URL       # Sanitize an HTML fragment
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from comicfeed.config.settings import get_settings
from comicfeed.delivery.entry_formatter import format_entry_date
from comicfeed.ingestion.content_sanitizer import ContentSanitizer
from comicfeed.services.feed_loader import FeedLoader
from comicfeed.utils.logging import configure_application_logging
from comicfeed.utils.exceptions import ComicFeedError

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """ComicFeed - load and inspect web comic feeds."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate environment configuration."""
    console.print("[bold blue]🔧 Checking ComicFeed Configuration[/bold blue]")

    try:
        settings = get_settings()
        settings.validate_configuration()

        table = Table(title="Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Version", settings.version)
        table.add_row("Log level", settings.get_effective_log_level())
        table.add_row("Max entries", str(settings.feeds.max_entries))
        table.add_row("Feed list", settings.feeds.feed_list_url)
        table.add_row(
            "Request timeout",
            f"{settings.transport.request_timeout}s" if settings.transport.request_timeout else "aiohttp default",
        )
        for index, template in enumerate(settings.transport.relay_templates, 1):
            table.add_row(f"Relay {index}", template)

        console.print(table)
        console.print("[bold green]✅ Configuration is valid[/bold green]")

    except ComicFeedError as e:
        console.print(f"[bold red]❌ Configuration error: {e.user_message}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--show-content', is_flag=True, help='Print sanitized entry bodies')
@click.pass_context
def fetch_feed(ctx, url, show_content):
    """Load a feed through the transport chain and show its entries."""
    _configure_logging(ctx.obj.get('debug', False))
    console.print(f"[bold blue]📡 Loading {url}[/bold blue]")

    loader = FeedLoader()
    try:
        feed = asyncio.run(loader.load_feed(url))
    except ComicFeedError as e:
        console.print(f"[bold red]❌ {FeedLoader.describe_failure(e, url)}[/bold red]")
        sys.exit(1)

    info_table = Table(title="Feed")
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("Title", feed.title or "-")
    info_table.add_row("Description", feed.description or "-")
    info_table.add_row("Link", feed.link or "-")
    info_table.add_row("Base URL", feed.base_url)
    info_table.add_row("Entries", str(len(feed.entries)))
    console.print(info_table)

    if not feed.entries:
        console.print("[yellow]No entries found in this feed[/yellow]")
        return

    entries_table = Table(title="Entries")
    entries_table.add_column("#", style="dim")
    entries_table.add_column("Title", style="cyan")
    entries_table.add_column("Date")
    entries_table.add_column("Image")
    for index, entry in enumerate(feed.entries, 1):
        entries_table.add_row(
            str(index),
            entry.title,
            format_entry_date(entry.published_at) or "-",
            "✅" if entry.media_image_url else "",
        )
    console.print(entries_table)

    if show_content:
        for entry in feed.entries:
            console.print(f"\n[bold]{entry.title}[/bold]")
            console.print(entry.content_html, markup=False, highlight=False)


@cli.command()
@click.option('--list-url', help='Newline-delimited feed list URL')
@click.pass_context
def list_feeds(ctx, list_url: Optional[str]):
    """Load the published feed list."""
    _configure_logging(ctx.obj.get('debug', False))

    loader = FeedLoader()
    try:
        sources = asyncio.run(loader.load_sources(list_url))
    except ComicFeedError as e:
        console.print(f"[bold red]❌ Failed to load comics: {e.user_message}[/bold red]")
        sys.exit(1)

    if not sources:
        console.print("[yellow]No comics found[/yellow]")
        return

    table = Table(title=f"Comics ({len(sources)})")
    table.add_column("Name", style="cyan")
    table.add_column("Site", style="green")
    table.add_column("Feed URL")
    for source in sources:
        table.add_row(source.display_name, source.origin_url, source.url)
    console.print(table)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--base', 'base_url', required=True, help='Base URL for relative references')
def sanitize(file: Path, base_url: str):
    """Sanitize an HTML fragment file and print the result."""
    html = file.read_text(encoding='utf-8')
    click.echo(ContentSanitizer().sanitize(html, base_url))


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 ComicFeed interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
