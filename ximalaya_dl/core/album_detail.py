"""
The orchestrator that turns an album or track URL into files on disk.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from ximalaya_dl.api.client import XimalayaAPIClient
from ximalaya_dl.api.entitlement import VipEntitlementResolver
from ximalaya_dl.cli.formatters import print_album_detail
from ximalaya_dl.cli.progress_manager import ProgressManager
from ximalaya_dl.exceptions import (
    BatchDownloadError,
    TrackNotFoundError,
    UsageError,
    XimalayaDlError,
)
from ximalaya_dl.media.downloader import Downloader
from ximalaya_dl.models.album import AlbumMetadata, AudioItem
from ximalaya_dl.models.config import DEFAULT_OUTPUT_DIR
from ximalaya_dl.models.stats import DownloadStats
from ximalaya_dl.utils.path import album_page_url, build_file_name, parse_album_url
from ximalaya_dl.web.album_page import AlbumMetadataFetcher

from .track_list import TrackListAggregator

log = logging.getLogger(__name__)


class AlbumState(str, Enum):
    CREATED = "created"
    RESOLVED = "resolved"
    DISPLAYED = "displayed"
    DOWNLOADING = "downloading"
    DONE = "done"


class AlbumDetail:
    """
    Aggregate root for one album (optionally narrowed to one track).

    Lifecycle: construct from a URL, ``fetch()`` the metadata and track list,
    then ``display()`` and/or ``download()``. Any error aborts the pipeline;
    nothing is retried here.
    """

    def __init__(
        self,
        raw_url: str,
        api_client: XimalayaAPIClient,
        output_dir: str = DEFAULT_OUTPUT_DIR,
        downloader: Optional[Downloader] = None,
        entitlement_resolver: Optional[VipEntitlementResolver] = None,
        stats: Optional[DownloadStats] = None,
    ):
        self.raw_url = raw_url
        self.identity = parse_album_url(raw_url)
        self.api_client = api_client
        self.output_dir = Path(output_dir)

        self.metadata_fetcher = AlbumMetadataFetcher(api_client)
        self.track_list = TrackListAggregator(api_client)
        self.downloader = downloader or Downloader(api_client)
        self.entitlement_resolver = entitlement_resolver or VipEntitlementResolver(
            api_client
        )
        self.stats = stats or DownloadStats()

        self.metadata = AlbumMetadata()
        self.audio_list: List[AudioItem] = []
        self.state = AlbumState.CREATED

    @property
    def album_id(self) -> int:
        return self.identity.album_id

    @property
    def track_id(self) -> Optional[int]:
        return self.identity.track_id

    @property
    def album_url(self) -> str:
        return album_page_url(self.raw_url, self.identity)

    def set_output(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)

    def _require_fetched(self, operation: str) -> None:
        if self.state is AlbumState.CREATED:
            raise UsageError(f"Call fetch() before {operation}().")

    async def fetch(self) -> None:
        """Scrapes the album page, then aggregates its track list."""
        self.metadata = await self.metadata_fetcher.fetch(self.album_url)
        self.audio_list = await self.track_list.aggregate(
            self.album_id, self.metadata.audio_count
        )
        if len(self.audio_list) < self.metadata.audio_count:
            log.warning(
                f"[yellow]Only {len(self.audio_list)} of "
                f"{self.metadata.audio_count} tracks could be listed.[/yellow]"
            )
        self.state = AlbumState.RESOLVED

    def display(self, console: Optional[Console] = None) -> None:
        """Prints the album summary and the first few tracks."""
        self._require_fetched("display")
        print_album_detail(console or Console(), self)
        self.state = AlbumState.DISPLAYED

    def destination_for(self, item: AudioItem) -> Path:
        return self.output_dir / build_file_name(item)

    def find_track(self, track_id: int) -> AudioItem:
        target = next((a for a in self.audio_list if a.track_id == track_id), None)
        if target is None or target.track_id == 0:
            raise TrackNotFoundError(
                f"Track {track_id} is not part of album {self.album_id}."
            )
        return target

    async def download(
        self,
        start: Optional[int] = None,
        progress_manager: Optional[ProgressManager] = None,
    ) -> None:
        """
        Downloads the whole album, or only the track named in the URL.

        Args:
            start: 1-based position in the album list to begin from. Ignored when
                the URL names a single track.
            progress_manager: Optional Rich progress display.
        """
        self._require_fetched("download")
        self.state = AlbumState.DOWNLOADING

        if self.track_id is None:
            await self.download_all(start, progress_manager)
        else:
            if start is not None:
                log.warning(
                    "[yellow]--start is ignored when downloading a single "
                    "track.[/yellow]"
                )
            await self.download_track(progress_manager)

        self.state = AlbumState.DONE

    async def download_track(
        self, progress_manager: Optional[ProgressManager] = None
    ) -> None:
        target = self.find_track(self.track_id)
        try:
            await self.download_item(target, progress_manager)
        except XimalayaDlError:
            self.stats.record_failure()
            raise

    async def download_all(
        self,
        start: Optional[int] = None,
        progress_manager: Optional[ProgressManager] = None,
    ) -> None:
        """Downloads items in list order, stopping at the first failure."""
        offset = start - 1 if start else 0
        items = self.audio_list[offset:]
        if offset and not items:
            log.warning(
                f"[yellow]Start index {start} is past the end of the "
                f"{len(self.audio_list)}-track list.[/yellow]"
            )

        if progress_manager:
            progress_manager.start_album(escape(self.metadata.title), len(items))

        for item in items:
            try:
                await self.download_item(item, progress_manager)
            except XimalayaDlError as e:
                self.stats.record_failure()
                raise BatchDownloadError(item, e) from e

        log.info("[bold green]Download finished.[/bold green]")

    async def download_item(
        self, item: AudioItem, progress_manager: Optional[ProgressManager] = None
    ) -> Path:
        """Resolves a VIP item if needed and downloads it to its destination."""
        if item.requires_entitlement:
            resolved = await self.entitlement_resolver.resolve(item.track_id)
            item = AudioItem(
                track_id=item.track_id,
                url=resolved.url,
                title=resolved.title or item.title,
            )

        destination = self.destination_for(item)
        task_id = None
        if progress_manager:
            task_id = progress_manager.add_download_task(escape(item.title))

        await self.downloader.download_file(
            item.url,
            destination,
            stats=self.stats,
            progress_manager=progress_manager,
            task_id=task_id,
        )

        if progress_manager and task_id is not None:
            progress_manager.finish_download_task(task_id)
        return destination
