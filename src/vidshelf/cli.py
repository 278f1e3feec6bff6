"""Command line interface for vidshelf."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from vidshelf.config import AppConfig
from vidshelf.errors import ConfigError, VidshelfError
from vidshelf.library.paths import resolve_path
from vidshelf.web.app import build_services, create_app
from vidshelf.web.rendering import format_duration

console = Console()
app = typer.Typer(help="vidshelf - browse and stream a personal video library")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(videos_dir: Optional[Path]) -> AppConfig:
    config = AppConfig.from_env()
    if videos_dir is not None:
        config.videos_dir = videos_dir
        config.default_videos_dir = False
    return config


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


@app.command()
def browse(
    path: str = typer.Argument("/", help="Directory relative to the videos root"),
    videos_dir: Path = typer.Option(None, "--videos-dir", help="Library root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List one directory of the library."""
    _setup_logging(verbose)
    services = build_services(_load_config(videos_dir))

    try:
        entries = services.lister.list(path)
    except VidshelfError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not entries:
        console.print("[yellow]No videos or directories found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Duration", justify="right")
    for entry in entries:
        if entry.is_directory:
            table.add_row(f"[bold]{entry.name}/[/bold]", entry.kind, "", "")
        else:
            table.add_row(entry.name, entry.kind, _format_size(entry.size), format_duration(entry.duration))
    console.print(table)


@app.command()
def info(
    path: str = typer.Argument(..., help="Video path relative to the videos root"),
    videos_dir: Path = typer.Option(None, "--videos-dir", help="Library root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show probed metadata and subtitle tracks for one video."""
    _setup_logging(verbose)
    services = build_services(_load_config(videos_dir))

    try:
        video = resolve_path(services.root, path)
        metadata = services.metadata.get_metadata(video)
    except VidshelfError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold]{path}[/bold]")
    console.print(
        f"Duration: {format_duration(metadata.duration)}, "
        f"resolution: {metadata.width}x{metadata.height}, "
        f"bitrate: {metadata.bitrate}, format: {metadata.format}"
    )
    if not metadata.subtitles:
        console.print("[yellow]No subtitle tracks.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Stream")
    table.add_column("Language")
    table.add_column("Codec")
    table.add_column("Title")
    for track in metadata.subtitles:
        table.add_row(str(track.stream_index), track.language, track.codec, track.title or "")
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host interface"),
    port: int = typer.Option(None, help="Server port (defaults to $PORT or 9999)"),
    videos_dir: Path = typer.Option(None, "--videos-dir", help="Library root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Start the web server."""
    import uvicorn

    _setup_logging(verbose)
    config = _load_config(videos_dir)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    try:
        config.ensure_directories()
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    web_app = create_app(config)
    console.print(
        f"Starting vidshelf on http://{config.host}:{config.port} "
        f"(videos: {config.resolve_videos_dir()})"
    )
    uvicorn.run(
        web_app,
        host=config.host,
        port=config.port,
        reload=False,
        log_level="debug" if verbose else "info",
    )
