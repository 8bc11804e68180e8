"""CLI for the subscription dashboard."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ytdash.core.config import get_settings_with_yaml
from ytdash.core.exceptions import DashboardError
from ytdash.core.logging_config import setup_logging
from ytdash.core.schemas import ChannelCreate, ChannelFilters, DateRange, HeaderData, VideoFilters
from ytdash.database import DocumentStore, create_document_store
from ytdash.services import (
    ChannelService,
    OffsetPagination,
    QueryCache,
    SettingsService,
    StatsService,
    VideoService,
)

T = TypeVar("T")

app = typer.Typer(help="YouTube subscription dashboard - API server and store inspection")
channel_app = typer.Typer(help="Channel commands")
app.add_typer(channel_app, name="channel")
console = Console()


def _run(operation: Callable[[DocumentStore, QueryCache], Awaitable[T]]) -> T:
    """Run an async operation against the configured store.

    One-shot commands have no process lifetime to amortize a cache over, so
    they use a disabled cache.
    """
    settings = get_settings_with_yaml()
    setup_logging(level="WARNING")

    async def _main() -> T:
        async with create_document_store(settings) as store:
            return await operation(store, QueryCache(enabled=False))

    try:
        return asyncio.run(_main())
    except (DashboardError, ValidationError) as e:
        rprint(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
    log_level: str | None = typer.Option(None, help="Log level (defaults to LOG_LEVEL)"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings_with_yaml()
    level = log_level or settings.log_level
    setup_logging(level=level, log_file=settings.log_file)

    uvicorn.run(
        "ytdash.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=level.lower(),
    )


@app.command()
def stats(as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table")):
    """Show the dashboard header statistics."""

    async def _fetch(store: DocumentStore, cache: QueryCache) -> HeaderData:
        return await StatsService(store, cache).get_header_stats()

    header = _run(_fetch)

    if as_json:
        console.print_json(header.model_dump_json())
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan", width=20)
    table.add_column("Value", style="white")
    table.add_row("Channels", f"{header.stats.enabled_channels}/{header.stats.total_channels} notifying")
    table.add_row("Videos", f"{header.stats.new_videos}/{header.stats.total_videos} new")
    table.add_row("Last sync", header.last_sync_time)

    rprint("\n[bold blue]📊 Dashboard[/bold blue]\n")
    console.print(table)


@app.command()
def videos(
    page: int = typer.Option(1, "-p", "--page", min=1, help="Page number"),
    limit: int = typer.Option(20, "-l", "--limit", min=1, help="Videos per page"),
    search: str = typer.Option("", "-s", "--search", help="Title or channel substring"),
    favorites: bool = typer.Option(False, "--favorites", help="Only favorites"),
    unviewed: bool = typer.Option(False, "--unviewed", help="Only unviewed videos"),
):
    """List videos, newest first."""
    filters = VideoFilters(
        search_term=search,
        date_range=DateRange(),
        show_favorites_only=favorites,
        show_unviewed_only=unviewed,
    )

    async def _fetch(store: DocumentStore, cache: QueryCache) -> Any:
        service = VideoService(store, cache)
        return await service.list_videos(filters, OffsetPagination(page=page, limit=limit))

    result = _run(_fetch)

    if not result.items:
        rprint("\n[yellow]No videos found.[/yellow]\n")
        return

    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Title", style="white", max_width=50)
    table.add_column("Channel", style="cyan", max_width=25)
    table.add_column("Discovered", style="dim", width=10)
    table.add_column("Clicks", style="green", justify="right")
    table.add_column("★", justify="center")

    for video in result.items:
        table.add_row(
            video.video_id,
            video.title,
            video.channel_title,
            video.discovered_at[:10],
            str(video.click_count),
            "★" if video.is_favorite else "",
        )

    console.print(table)
    rprint(f"\n[green]Page {result.page} · {result.total} video(s) total[/green]\n")


@channel_app.command("list")
def channel_list(
    notification_filter: str = typer.Option(
        "all", "-f", "--filter", help="all, notify-on or notify-off"
    ),
    sort_by: str = typer.Option("name", "--sort", help="name, subscribers, last_video, last_upload"),
    sort_order: str = typer.Option("asc", "--order", help="asc or desc"),
    search: str = typer.Option("", "-s", "--search", help="Title substring"),
    limit: int = typer.Option(50, "-l", "--limit", min=1, help="Channels to show"),
):
    """List subscribed channels."""

    async def _fetch(store: DocumentStore, cache: QueryCache) -> Any:
        filters = ChannelFilters(
            search_term=search,
            notification_filter=notification_filter,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return await ChannelService(store, cache).list_channels(
            filters, OffsetPagination(page=1, limit=limit)
        )

    result = _run(_fetch)

    if not result.items:
        rprint("\n[yellow]No channels found.[/yellow]\n")
        return

    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Subscribers", style="green", justify="right")
    table.add_column("Last upload", style="dim", width=10)
    table.add_column("Notify", justify="center")

    for channel in result.items:
        table.add_row(
            channel.channel_id,
            channel.title,
            channel.subscriber_count or "-",
            (channel.last_upload_at or "-")[:10],
            "🔔" if channel.notify else "",
        )

    console.print(table)
    if result.fallback_used:
        rprint("[yellow]Missing index for this sort; results are unsorted.[/yellow]")
    rprint(f"\n[green]Total: {result.total} channel(s)[/green]\n")


@channel_app.command("add")
def channel_add(
    title: str = typer.Argument(..., help="Channel title"),
    channel_id: str | None = typer.Option(None, "--id", help="YouTube channel id"),
    rss_url: str = typer.Option("", "--rss-url", help="Channel RSS feed"),
    notify: bool = typer.Option(False, "--notify", help="Enable notifications"),
):
    """Subscribe to a channel."""
    payload = ChannelCreate(channel_id=channel_id, title=title, rss_url=rss_url, notify=notify)

    async def _create(store: DocumentStore, cache: QueryCache) -> str:
        return await ChannelService(store, cache).create_channel(payload)

    created_id = _run(_create)
    rprint(f"\n[green]✓ Channel added: {escape(title)}[/green] ({created_id})\n")


@channel_app.command("notify")
def channel_notify(channel_id: str = typer.Argument(..., help="Channel id")):
    """Toggle notifications for a channel."""

    async def _toggle(store: DocumentStore, cache: QueryCache) -> bool:
        return await ChannelService(store, cache).toggle_notification(channel_id)

    enabled = _run(_toggle)
    state = "enabled" if enabled else "disabled"
    rprint(f"\n[green]✓ Notifications {state} for {escape(channel_id)}[/green]\n")


@app.command()
def settings(
    set_json: str | None = typer.Option(
        None, "--set", help='Partial JSON update, e.g. \'{"polling": {"video_check_interval_seconds": 120}}\''
    ),
):
    """Show or update the bot settings."""
    changes = None
    if set_json:
        try:
            changes = json.loads(set_json)
        except json.JSONDecodeError as e:
            rprint(f"[red]✗ Invalid JSON: {escape(str(e))}[/red]")
            raise typer.Exit(2) from e

    async def _apply(store: DocumentStore, cache: QueryCache) -> Any:
        service = SettingsService(store, cache)
        if changes:
            return await service.update_bot_settings(changes)
        return await service.get_bot_settings()

    bot_settings = _run(_apply)
    console.print_json(bot_settings.model_dump_json())


if __name__ == "__main__":
    app()
