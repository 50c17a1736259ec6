"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import re
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from ximalaya_dl import __version__
from ximalaya_dl.api.auth import CookieAuthenticator
from ximalaya_dl.api.client import XimalayaAPIClient
from ximalaya_dl.core.album_detail import AlbumDetail
from ximalaya_dl.media.downloader import Downloader
from ximalaya_dl.models.stats import DownloadStats
from ximalaya_dl.storage.config_manager import ConfigManager

from .formatters import print_config, print_summary_panel, print_user_info
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ximalaya_dl")

app = typer.Typer(
    name="ximalaya-dl",
    help=(
        "Download Ximalaya FM albums and tracks. Use 'ximalaya-dl <command> --help'"
        " for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

EXAMPLES = (
    "download album: ximalaya-dl https://www.ximalaya.com/xiangsheng/39725061\n"
    "download audio: ximalaya-dl"
    " https://www.ximalaya.com/xiangsheng/39725061/322739646"
)


COMMANDS = ("download", "init", "whoami")
_GLOBAL_FLAGS_REGEX = re.compile(r"-v+|--verbose|--version|--show-config|--help")


def with_default_command(argv: list[str]) -> list[str]:
    """Treats ``ximalaya-dl URL ...`` as ``ximalaya-dl download URL ...``."""
    positionals = [arg for arg in argv if not arg.startswith("-")]
    if not positionals or positionals[0] in COMMANDS:
        return argv

    index = 0
    while index < len(argv) and _GLOBAL_FLAGS_REGEX.fullmatch(argv[index]):
        index += 1
    return argv[:index] + ["download"] + argv[index:]


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ximalaya-dl"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Ximalaya FM downloader"""
    if version:
        console.print(f"[bold]ximalaya-dl[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("ximalaya_dl").setLevel(log_level)

    if show_config:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_config(CONFIG_FILE, config.model_dump(exclude={"config_path", "start"}))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        console.print(f"\n[dim]Examples:[/dim]\n{EXAMPLES}")


@app.command()
def init(
    cookie: str = typer.Argument(
        ..., help="Cookie string copied from a logged-in browser session."
    ),
    output: str | None = typer.Option(
        None, "-o", "--output", help="Default output directory."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing settings without asking."
    ),
):
    """Save a cookie (and optionally an output directory) to the config file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {"cookie": cookie}
    if output:
        settings["output_dir"] = output

    ConfigManager(CONFIG_FILE).save_new_config(settings)
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command()
def whoami(
    cookie: str | None = typer.Option(
        None, "--cookie", help="Cookie to check instead of the configured one."
    ),
):
    """Show the account that the configured cookie belongs to."""
    cli_options = {"cookie": cookie} if cookie is not None else None
    config = ConfigManager(CONFIG_FILE).load_config(cli_options)

    async def _whoami_async():
        async with XimalayaAPIClient(cookie=config.cookie) as api_client:
            return await CookieAuthenticator(api_client).get_user_info()

    print_user_info(asyncio.run(_whoami_async()))


@app.command(name="download")
def download_command(
    url: str = typer.Argument(
        ..., help="Album URL, optionally followed by a track id."
    ),
    display: bool = typer.Option(
        False, "--display", "-d", help="Just display album info."
    ),
    output: str | None = typer.Option(None, "-o", "--output", help="Output dir."),
    start: int | None = typer.Option(
        None,
        "--start",
        help="1-based position in the album to start downloading from.",
    ),
    cookie: str | None = typer.Option(
        None, "--cookie", help="Cookie for VIP tracks (overrides the config file)."
    ),
    retries: int | None = typer.Option(
        None, "--retries", help="Attempts per file before giving up (default 3)."
    ),
    retry_delay: float | None = typer.Option(
        None, "--retry-delay", help="Seconds to wait between attempts (default 0)."
    ),
):
    """Download an album, or a single track of it."""
    cli_options = {
        key: value
        for key, value in {
            "output_dir": output,
            "start": start,
            "cookie": cookie,
            "max_attempts": retries,
            "retry_delay": retry_delay,
        }.items()
        if value is not None
    }
    config = ConfigManager(CONFIG_FILE).load_config(cli_options)

    async def _download_async() -> DownloadStats | None:
        async with XimalayaAPIClient(cookie=config.cookie) as api_client:
            detail = AlbumDetail(
                url,
                api_client,
                output_dir=config.output_dir,
                downloader=Downloader(
                    api_client,
                    max_attempts=config.max_attempts,
                    retry_delay=config.retry_delay,
                ),
            )
            await detail.fetch()

            if display:
                detail.display(console)
                return None

            console.print("[bold cyan]🎧 Starting download session...[/bold cyan]")
            async with ProgressManager(console) as progress_manager:
                await detail.download(config.start, progress_manager)
            return detail.stats

    stats = asyncio.run(_download_async())
    if stats is not None:
        print_summary_panel(stats)
