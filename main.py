#!/usr/bin/env python3
"""
Conversa Query Engine - natural-language questions over business data sources
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from conversa.client import ConversaClient
from conversa.errors import ConversaError
from conversa.models import QueryResponse

logger = logging.getLogger(__name__)


def load_env_file(env_path: str = ".env"):
    """Load environment variables from .env file if it exists."""
    env_file = Path(env_path)
    if env_file.exists():
        with open(env_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    os.environ[key] = value


def load_config(config_path: str = "config/config.yaml") -> dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        return config
    except FileNotFoundError:
        click.echo(f"Configuration file not found: {config_path}", err=True)
        sys.exit(1)
    except yaml.YAMLError as e:
        click.echo(f"Error parsing configuration file: {e}", err=True)
        sys.exit(1)


def setup_logging(config: dict):
    """Setup logging configuration."""
    log_config = config.get("logging", {})
    log_level = getattr(logging, log_config.get("level", "INFO"))
    log_format = log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handlers = [logging.StreamHandler()]
    log_file = log_config.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=log_level, format=log_format, handlers=handlers)


class QueryConsole:
    """Renders query responses and source information with rich."""

    def __init__(self, client: ConversaClient, console: Optional[Console] = None):
        self.client = client
        self.console = console or Console()

    def display_response(self, response: QueryResponse, debug: bool = False):
        metadata = response.metadata

        meta_table = Table(title="Query Information")
        meta_table.add_column("Property", style="cyan")
        meta_table.add_column("Value", style="white")
        meta_table.add_row("Sources", ", ".join(metadata.sources_used) or "none")
        meta_table.add_row("Complexity", metadata.complexity)
        meta_table.add_row("Cache Hit", "Yes" if metadata.cache_hit else "No")
        meta_table.add_row("Processing Time", f"{metadata.processing_time_ms:.1f}ms")
        self.console.print(meta_table)

        self.console.print(Panel(
            Text(response.response_text),
            title="[bold blue]Answer[/bold blue]",
            border_style="blue"
        ))

        if debug and response.data is not None:
            self.console.print(Panel(
                Text(json.dumps(response.data.to_dict(), indent=2, default=str)),
                title="Raw Data",
                border_style="dim"
            ))

    def show_sources(self):
        capabilities = self.client.get_capabilities()
        status = self.client.get_connector_status()

        table = Table(title="Data Sources")
        table.add_column("Source", style="cyan")
        table.add_column("Connected", style="green")
        table.add_column("Data Types", style="white")
        table.add_column("Realtime", style="magenta")
        table.add_column("Errors", style="red")
        table.add_column("Latency (ms)", style="dim")

        for source_id, capability in capabilities.items():
            source_status = status[source_id]
            table.add_row(
                source_id,
                "Yes" if source_status.connected else "No",
                ", ".join(capability.data_types),
                "Yes" if capability.supports_realtime else "No",
                str(source_status.error_count),
                f"{source_status.latency_ms:.2f}"
            )

        self.console.print(table)

    def show_stats(self):
        stats = self.client.get_cache_stats()

        table = Table(title="Response Cache Statistics")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Entries", str(stats.total_entries))
        table.add_row("Expired Entries", str(stats.expired_entries))
        table.add_row("Max Entries", str(stats.max_size))
        table.add_row("Approx. Size (bytes)", str(stats.total_size))
        table.add_row("Hits", str(stats.hits))
        table.add_row("Misses", str(stats.misses))
        table.add_row("Hit Rate", f"{stats.hit_rate:.1%}")

        self.console.print(table)

    async def interactive_mode(self, debug: bool = False):
        """Run the engine in interactive mode."""
        self.console.print(Panel(
            "[bold blue]Conversa Query Engine[/bold blue]\n"
            "Ask questions about your products, payments, traffic and leads.\n"
            "Type 'quit' to exit, 'sources' for data sources, 'stats' for cache statistics.",
            border_style="blue"
        ))

        while True:
            try:
                text = click.prompt("\nQuery")

                if text.lower() in ['quit', 'exit', 'q']:
                    break
                elif text.lower() == 'sources':
                    self.show_sources()
                    continue
                elif text.lower() == 'stats':
                    self.show_stats()
                    continue
                elif not text.strip():
                    continue

                response = await self.client.query(text)
                self.display_response(response, debug=debug)

            except (KeyboardInterrupt, click.Abort):
                self.console.print("\n[yellow]Exiting...[/yellow]")
                break
            except ConversaError as e:
                self.console.print(f"[red]Error: {e}[/red]")


async def _build_console(config: dict) -> QueryConsole:
    client = await ConversaClient.create(config)
    return QueryConsole(client)


@click.group()
@click.option('--config', '-c', default='config/config.yaml', help='Configuration file path')
@click.option('--debug', '-d', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, config, debug):
    """Conversa Query Engine CLI."""
    load_env_file()

    ctx.ensure_object(dict)
    ctx.obj['config'] = load_config(config)
    ctx.obj['debug'] = debug or ctx.obj['config'].get("debug", {}).get("enabled", False)

    setup_logging(ctx.obj['config'])


@cli.command()
@click.argument('text')
@click.pass_context
def query(ctx, text):
    """Ask a single question."""
    async def run_query():
        query_console = await _build_console(ctx.obj['config'])
        try:
            response = await query_console.client.query(text)
            query_console.display_response(response, debug=ctx.obj['debug'])
        finally:
            await query_console.client.close()

    asyncio.run(run_query())


@cli.command()
@click.pass_context
def interactive(ctx):
    """Start interactive query mode."""
    async def run_interactive():
        query_console = await _build_console(ctx.obj['config'])
        try:
            await query_console.interactive_mode(debug=ctx.obj['debug'])
        finally:
            await query_console.client.close()

    asyncio.run(run_interactive())


@cli.command()
@click.pass_context
def sources(ctx):
    """Show configured data sources with capabilities and status."""
    async def run_sources():
        query_console = await _build_console(ctx.obj['config'])
        try:
            query_console.show_sources()
        finally:
            await query_console.client.close()

    asyncio.run(run_sources())


@cli.command()
@click.argument('texts', nargs=-1, required=True)
@click.pass_context
def stats(ctx, texts):
    """Run the given questions and show response cache statistics."""
    async def run_stats():
        query_console = await _build_console(ctx.obj['config'])
        try:
            for text in texts:
                await query_console.client.query(text)
            query_console.show_stats()
        finally:
            await query_console.client.close()

    asyncio.run(run_stats())


if __name__ == "__main__":
    cli()
