"""
Manages the Rich progress display shown while an album is downloaded.
"""

from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)


class ProgressManager:
    """
    Shows one bar for the album as a whole and one bar per file being written.
    Downloads run one after another, so at most one file bar is active.
    """

    def __init__(self, console: Console):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )
        self._overall_task_id: TaskID | None = None

    async def __aenter__(self) -> "ProgressManager":
        self.progress.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.progress.stop()

    def start_album(self, title: str, total_tracks: int) -> None:
        self._overall_task_id = self.progress.add_task(
            f"[bold blue]{title}[/bold blue]", total=total_tracks
        )

    def add_download_task(self, description: str) -> TaskID:
        return self.progress.add_task(description, total=None)

    def update_task_total(self, task_id: TaskID, total: int | None) -> None:
        self.progress.update(task_id, total=total)

    def update_task_progress(self, task_id: TaskID, completed: int) -> None:
        self.progress.update(task_id, completed=completed)

    def finish_download_task(self, task_id: TaskID) -> None:
        """Removes a file bar and advances the album bar."""
        self.progress.remove_task(task_id)
        if self._overall_task_id is not None:
            self.progress.advance(self._overall_task_id)
