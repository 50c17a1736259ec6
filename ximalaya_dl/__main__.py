"""
Entry point for ``ximalaya-dl`` and ``python -m ximalaya_dl``.

Runs the Typer app and turns any escaped error into a Rich panel and exit
status 1.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from ximalaya_dl.cli.app import app, with_default_command
from ximalaya_dl.cli.formatters import format_error_with_suggestions
from ximalaya_dl.exceptions import BatchDownloadError, XimalayaDlError

log = logging.getLogger("ximalaya_dl")


def _error_context(error: XimalayaDlError) -> dict | None:
    if isinstance(error, BatchDownloadError):
        return {"track_id": error.item.track_id, "cause": type(error.cause).__name__}
    return None


def main() -> None:
    # Chinese titles break the legacy Windows console codec.
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    console = Console()

    try:
        app(args=with_default_command(sys.argv[1:]))
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Download cancelled.[/yellow]")
        sys.exit(0)
    except XimalayaDlError as e:
        log.debug("Pipeline aborted", exc_info=True)
        console.print(format_error_with_suggestions(e, _error_context(e)))
        sys.exit(1)
    except Exception as e:
        log.debug("Full traceback:", exc_info=True)
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        sys.exit(1)


if __name__ == "__main__":
    main()
