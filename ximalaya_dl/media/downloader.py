"""
Handles the low-level downloading of files over HTTP with a bounded retry loop.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp
from rich.progress import TaskID

from ximalaya_dl.api.client import XimalayaAPIClient
from ximalaya_dl.cli.progress_manager import ProgressManager
from ximalaya_dl.exceptions import DownloadExhaustedError, FileSystemError
from ximalaya_dl.models.stats import DownloadStats
from ximalaya_dl.utils.path import create_dir

log = logging.getLogger(__name__)


class Downloader:
    """A low-level file downloader with retry logic, sharing the API client's session."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        api_client: XimalayaAPIClient,
        max_attempts: int = 3,
        retry_delay: float = 0.0,
    ):
        self.api_client = api_client
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    async def _open_response(self, url: str) -> aiohttp.ClientResponse:
        """
        Returns the first 200 response within the retry budget, left open for streaming.

        Raises:
            DownloadExhaustedError: If no attempt produced a 200 response.
        """
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            response = None
            try:
                response = await self.api_client.get(url)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
            else:
                if response.status == 200:
                    return response
                last_error = f"status {response.status}"

            # A failed request may not have produced a response at all.
            if response is not None:
                response.release()

            log.debug(
                f"Download attempt {attempt}/{self.max_attempts} for "
                f"'{url}' failed: {last_error}."
            )
            if self.retry_delay and attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay)

        raise DownloadExhaustedError(
            f"Response failed after {self.max_attempts} tries: {last_error}"
        )

    async def download_file(
        self,
        url: str,
        destination_path: Path,
        stats: Optional[DownloadStats] = None,
        progress_manager: Optional[ProgressManager] = None,
        task_id: Optional[TaskID] = None,
    ) -> int:
        """
        Downloads ``url`` to ``destination_path``, creating parent directories.

        Returns:
            The number of bytes written.

        Raises:
            DownloadExhaustedError: If the retry budget ran out; nothing is written.
            FileSystemError: If the directory or file cannot be created or written.
        """
        destination_path = Path(destination_path)
        response = await self._open_response(url)
        try:
            if progress_manager and task_id is not None:
                total = response.headers.get("Content-Length")
                progress_manager.update_task_total(
                    task_id, int(total) if total and total.isdigit() else None
                )

            try:
                create_dir(destination_path.parent)
            except OSError as e:
                raise FileSystemError(f"Make dir failed: {e}") from e

            bytes_downloaded = 0
            try:
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)
                        if progress_manager and task_id is not None:
                            progress_manager.update_task_progress(
                                task_id, completed=bytes_downloaded
                            )
            except OSError as e:
                raise FileSystemError(
                    f"Save file '{os.path.basename(destination_path)}' failed: {e}"
                ) from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise FileSystemError(
                    f"Stream to '{os.path.basename(destination_path)}' broke off: {e}"
                ) from e
        finally:
            response.release()

        if stats:
            stats.record_success(bytes_downloaded)
        log.info(f"[green]Downloaded:[/green] {destination_path}")
        return bytes_downloaded
