"""
Fetches an album's web page and scrapes its title, audio count and page count.
"""

import asyncio
import logging
import re

import aiohttp
from bs4 import BeautifulSoup

from ximalaya_dl.api.client import XimalayaAPIClient
from ximalaya_dl.exceptions import MetadataFetchError
from ximalaya_dl.models.album import AlbumMetadata

log = logging.getLogger(__name__)

_DIGITS_REGEX = re.compile(r"\d+")

# Up to five pages the widget lists every page plus a trailing "next" button.
_FULL_PAGINATION_MAX_CHILDREN = 6


def _parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def parse_page_count(soup: BeautifulSoup) -> int:
    """
    Infers the number of listing pages from the pagination widget.

    Long albums render a truncated page list whose second-to-last child holds
    the last page number; shorter ones render every page and a "next" control.
    """
    pagination = soup.select_one("ul.pagination-page")
    children = pagination.find_all(recursive=False) if pagination else []
    size = len(children)

    if size == 0:
        return 1
    if size <= _FULL_PAGINATION_MAX_CHILDREN:
        return size - 1
    return _parse_int(children[-2].get_text())


def parse_album_page(html: str) -> AlbumMetadata:
    """Extracts album metadata from the page HTML."""
    soup = BeautifulSoup(html, "html.parser")

    title_element = soup.select_one("h1.title")
    title = title_element.get_text().strip() if title_element else ""

    head = soup.select_one("div.head")
    match = _DIGITS_REGEX.search(head.get_text()) if head else None
    audio_count = int(match.group()) if match else 0

    # A malformed widget can yield 0; the model requires at least one page.
    page_count = max(parse_page_count(soup), 1)
    return AlbumMetadata(title=title, audio_count=audio_count, page_count=page_count)


class AlbumMetadataFetcher:
    """Scrapes album metadata from the public album page. No retries at this layer."""

    def __init__(self, api_client: XimalayaAPIClient):
        self.api_client = api_client

    async def fetch(self, album_url: str) -> AlbumMetadata:
        """
        Fetches and parses ``album_url``.

        Raises:
            MetadataFetchError: On a transport error or a non-200 response.
        """
        try:
            response = await self.api_client.get(album_url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MetadataFetchError(f"Get album info failed: {e}") from e

        try:
            if response.status != 200:
                raise MetadataFetchError(
                    f"Get album info failed: {album_url} returned status {response.status}"
                )
            # Stray bytes outside the declared charset must not abort the scrape.
            html = await response.text(errors="replace")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MetadataFetchError(f"Get album info failed: {e}") from e
        finally:
            response.release()

        metadata = parse_album_page(html)
        log.debug(
            f"Album page: title='{metadata.title}' audios={metadata.audio_count} "
            f"pages={metadata.page_count}"
        )
        return metadata
