"""Command-line interface for PinReel."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from pinreel import __version__
from pinreel.config import Config, load_config
from pinreel.container import DependencyContainer
from pinreel.downloader.file_utils import format_size_mb
from pinreel.downloader.progress import ProgressInfo, format_bytes
from pinreel.errors import PinReelError
from pinreel.observability import configure_logging

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger(__name__)

QUALITY_CHOICES = click.Choice(["high", "medium", "low"], case_sensitive=False)


def _fail(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides configuration)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """PinReel - download videos from Pinterest pins."""
    ctx.ensure_object(dict)
    try:
        loaded = load_config(Path(config) if config else None)
    except Exception as e:
        _fail(f"Invalid configuration: {e}")
        return

    if log_level:
        loaded.monitoring.log_level = log_level
    configure_logging(loaded.monitoring)

    ctx.obj["config"] = loaded
    ctx.obj["config_path"] = Path(config) if config else None


@cli.command()
@click.argument("url")
@click.option(
    "--output",
    "--output-dir",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False),
    help="Directory to save the video in",
)
@click.option("--quality", "-q", type=QUALITY_CHOICES, default=None, help="Video quality")
@click.pass_context
def download(ctx: click.Context, url: str, output_dir: Optional[str], quality: Optional[str]) -> None:
    """Download the video of a Pinterest pin."""
    config: Config = ctx.obj["config"]
    target = Path(output_dir) if output_dir else Path(config.download.output_dir)

    async def run_download() -> None:
        container = DependencyContainer(config)
        async with container.lifecycle():
            service = await container.get_service()

            with Progress(
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                TimeRemainingColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Downloading", total=None)

                def on_progress(info: ProgressInfo) -> None:
                    progress.update(task, completed=info.transferred, total=info.total)

                result = await service.download(url, quality, output_dir=target, on_progress=on_progress)

        status = "already downloaded" if result.cached else "downloaded"
        console.print(
            Panel(
                f"[bold]{escape(result.title)}[/bold]\n"
                f"Duration: {result.duration or 'unknown'}\n"
                f"Quality: {result.quality}\n"
                f"Size: {format_size_mb(result.file_size)}\n"
                f"Saved to: {result.file_path}",
                title=f"Video {status}",
                border_style="green",
            )
        )

    try:
        asyncio.run(run_download())
    except PinReelError as e:
        logger.debug("Download failed", code=e.code, details=e.details)
        _fail(e.message)


@cli.command()
@click.argument("url")
@click.option("--json", "as_json", is_flag=True, help="Print the video info as JSON")
@click.pass_context
def info(ctx: click.Context, url: str, as_json: bool) -> None:
    """Show video information for a pin without downloading."""
    config: Config = ctx.obj["config"]

    async def run_info() -> None:
        container = DependencyContainer(config)
        async with container.lifecycle():
            service = await container.get_service()
            video = await service.extract_video_info(url, config.download.default_quality)

        if as_json:
            click.echo(json.dumps(video.to_dict(), indent=2))
            return

        table = Table(title=escape(video.title))
        table.add_column("Quality", style="cyan")
        table.add_column("URL", style="magenta", overflow="fold")
        for entry in video.formats():
            table.add_row(entry["quality"], entry["url"])

        console.print(table)
        console.print(f"Duration: {video.duration or 'unknown'}")
        if video.author:
            console.print(f"Board: {video.author}")
        console.print(f"Found by: {video.strategy} ({len(video.candidates)} candidates)")

    try:
        asyncio.run(run_info())
    except PinReelError as e:
        _fail(e.message)


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Start the HTTP API and download page."""
    from pinreel.web.main import run_web_server

    config: Config = ctx.obj["config"]
    bind_host = host or config.server.host
    bind_port = port or config.server.port
    console.print(f"[green]Starting PinReel at http://{bind_host}:{bind_port}[/green]")
    run_web_server(config, host=bind_host, port=bind_port)


@cli.command()
@click.option(
    "--output",
    "--output-dir",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False),
    help="Download directory to inspect",
)
@click.pass_context
def stats(ctx: click.Context, output_dir: Optional[str]) -> None:
    """Summarise downloaded videos."""
    from pinreel.downloader.file_utils import directory_stats

    config: Config = ctx.obj["config"]
    directory = Path(output_dir) if output_dir else Path(config.download.output_dir)
    summary = directory_stats(directory)

    table = Table(title=f"Downloads in {directory}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Videos", str(summary.total_files))
    table.add_row("Total size", format_bytes(summary.total_size))
    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
