"""
Builds an album's ordered track list from the paginated JSON listing endpoint.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List

import aiohttp

from ximalaya_dl.api.client import XimalayaAPIClient
from ximalaya_dl.exceptions import TrackListPartialError
from ximalaya_dl.models.album import AudioItem

log = logging.getLogger(__name__)

PAGE_SIZE = 100


def parse_track_page(payload: Dict[str, Any]) -> List[AudioItem]:
    """
    Reads ``data.trackDetailInfos[].trackInfo`` into audio items, keeping their order.

    Raises:
        ValueError: If the page is not shaped like a track listing.
    """
    details = (payload.get("data") or {}).get("trackDetailInfos") or []
    if not isinstance(details, list):
        raise ValueError(f"trackDetailInfos is a {type(details).__name__}, not a list")

    items = []
    for detail in details:
        info = (detail.get("trackInfo") or {}) if isinstance(detail, dict) else None
        if not isinstance(info, dict):
            raise ValueError(f"Malformed track record: {detail!r}")
        items.append(
            AudioItem(
                track_id=info.get("id", 0),
                url=info.get("playPath") or "",
                title=info.get("title") or "",
            )
        )
    return items


class TrackListAggregator:
    """Pages through an album's track records one request at a time."""

    def __init__(self, api_client: XimalayaAPIClient, page_size: int = PAGE_SIZE):
        self.api_client = api_client
        self.page_size = page_size

    def page_total(self, audio_count: int) -> int:
        return math.ceil(audio_count / self.page_size)

    async def fetch_page(self, album_id: int, page: int) -> List[AudioItem]:
        try:
            payload = await self.api_client.fetch_track_page(
                album_id, page, self.page_size
            )
            return parse_track_page(payload)
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            ValueError,
            AttributeError,
        ) as e:
            raise TrackListPartialError(
                f"Track list page {page} of album {album_id} failed: {e}"
            ) from e

    async def aggregate(self, album_id: int, audio_count: int) -> List[AudioItem]:
        """
        Collects every page in order.

        A failing page stops the walk and the items gathered so far are
        returned, so a short list may be a partial result.
        """
        audio_list: List[AudioItem] = []
        pages = self.page_total(audio_count)
        for page in range(1, pages + 1):
            try:
                audio_list.extend(await self.fetch_page(album_id, page))
            except TrackListPartialError as e:
                log.warning(
                    f"[yellow]{e}. Keeping {len(audio_list)} of {audio_count} "
                    "tracks.[/yellow]"
                )
                break
        return audio_list
