"""
Functions for formatting and displaying data in the console using Rich.
"""

from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ximalaya_dl.models.stats import DownloadStats

if TYPE_CHECKING:
    from ximalaya_dl.core.album_detail import AlbumDetail

# Number of tracks listed before the remainder is summarised.
PREVIEW_TRACKS = 3


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "MalformedURLError": [
            "• Use an album URL such as https://www.ximalaya.com/xiangsheng/39725061.",
            "• Append a track id to download a single track.",
        ],
        "MetadataFetchError": [
            "• Check that the album exists and is publicly visible.",
            "• The site may be rate-limiting you. Try again in a few minutes.",
        ],
        "EntitlementDeniedError": [
            "• VIP tracks need the cookie of an account that owns them.",
            "• Your cookie may have expired. Run `ximalaya-dl init <COOKIE>` again.",
        ],
        "EntitlementError": [
            "• The provider may have changed its VIP protocol.",
            "• Run the command with -vv for detailed logs.",
        ],
        "TrackNotFoundError": [
            "• The track id in the URL does not belong to this album.",
            "• Run with --display to list the album's tracks.",
        ],
        "DownloadExhaustedError": [
            "• The file server kept failing. Try again later.",
            "• Raise the budget with --retries or add --retry-delay.",
        ],
        "BatchDownloadError": [
            "• Files downloaded before the failure were kept.",
            "• Resume from the failing track with --start.",
        ],
        "FileSystemError": [
            "• Check that the output directory is writable.",
            "• Choose another directory with -o.",
        ],
        "ConfigurationError": [
            "• Fix or delete the configuration file and run `ximalaya-dl init` again.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_album_detail(console: Console, detail: "AlbumDetail") -> None:
    """Displays the album identity, metadata and a preview of its tracks."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Id:", str(detail.album_id))
    table.add_row("TrackId:", str(detail.track_id) if detail.track_id else "-")
    table.add_row("Category:", escape(detail.identity.category))
    table.add_row("Title:", escape(detail.metadata.title))
    table.add_row("Amount:", str(detail.metadata.audio_count))
    table.add_row("Pages:", str(detail.metadata.page_count))

    console.print(Panel(table, title="[bold]Album Info[/bold]", border_style="cyan"))

    tracks = Table(title="Audio List", box=box.SIMPLE)
    tracks.add_column("Track Id", style="dim")
    tracks.add_column("Title", style="cyan")
    tracks.add_column("URL", overflow="fold")
    for audio in detail.audio_list[:PREVIEW_TRACKS]:
        tracks.add_row(
            str(audio.track_id),
            escape(audio.title),
            escape(audio.url) if audio.url else "[yellow]VIP[/yellow]",
        )
    console.print(tracks)

    remaining = len(detail.audio_list) - PREVIEW_TRACKS
    if remaining > 0:
        console.print("...")
        console.print(f"Another {remaining} audios skipped.")


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "cookie":
            value = "[hidden]" if value else "(not set)"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_user_info(user_info: dict[str, Any]):
    """Displays the profile returned for the configured cookie."""
    console = Console()
    if not user_info:
        console.print("[yellow]The configured cookie is not logged in.[/yellow]")
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    for key in ("uid", "nickname", "isVip", "mobile"):
        if key in user_info:
            table.add_row(f"{key}:", escape(str(user_info[key])))

    console.print(
        Panel(table, title="[bold green]✓ Current User[/bold green]", border_style="green")
    )


def print_summary_panel(stats: DownloadStats):
    """Displays the final summary of the download session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Downloaded:", f"[bold green]{stats.tracks_downloaded}[/bold green]"
    )
    if stats.tracks_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.tracks_failed}[/bold red]")

    stats_table.add_row("", "")
    stats_table.add_row(
        "Total Size:", f"[cyan]{decimal(stats.total_size_downloaded)}[/cyan]"
    )
    stats_table.add_row(
        "Time Elapsed:", f"[blue]{timedelta(seconds=int(stats.elapsed))}[/blue]"
    )

    console.print()
    console.print(
        Panel(
            stats_table,
            title="🎧 [bold]Download Complete![/bold]",
            border_style="green" if not stats.tracks_failed else "red",
            box=box.DOUBLE,
            expand=False,
        )
    )
