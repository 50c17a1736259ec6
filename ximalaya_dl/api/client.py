"""
Shared HTTP client for the Ximalaya web pages and mobile JSON APIs.
"""

import logging
import time
from typing import Any, Dict, Optional

import aiohttp

log = logging.getLogger(__name__)

# Servers gate some responses by agent: browser string for pages and files,
# app string for the JSON APIs.
DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko)"
    " Chrome/85.0.4170.0 Safari/537.36 Edg/85.0.552.1"
)
MOBILE_USER_AGENT = "ting_6.3.60(sdk,Android16)"

BASE_HEADERS = {
    "Connection": "keep-alive",
    "Accept-Language": "zh-CN,zh;q=0.9",
}


class XimalayaAPIClient:
    """
    Async client around a single keep-alive ``aiohttp.ClientSession``.

    One instance is shared by every stage of the pipeline. Requests are issued
    one at a time, so the session needs no locking. Pass ``session`` to inject
    a preconfigured or fake transport; the client then leaves closing it to
    the caller.
    """

    TRACK_LIST_URL = (
        "https://m.ximalaya.com/m-revision/common/album/queryAlbumTrackRecordsByPage"
    )
    TRACK_PAY_URL = "https://mpay.ximalaya.com/mobile/track/pay/{track_id}/{ts}"
    CURRENT_USER_URL = "https://www.ximalaya.com/revision/main/getCurrentUser"

    def __init__(
        self, cookie: str = "", session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initializes the API client.

        Args:
            cookie: Opaque cookie string of a logged-in account, used for VIP tracks.
            session: An existing session to reuse instead of creating one.
        """
        self.cookie = cookie
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "XimalayaAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit_per_host=2,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True

    async def close(self) -> None:
        """Gracefully closes the aiohttp session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def build_headers(self, mobile: bool = False, with_cookie: bool = False) -> Dict[str, str]:
        """Returns the fixed header set for a desktop or mobile-app request."""
        headers = dict(BASE_HEADERS)
        headers["User-Agent"] = MOBILE_USER_AGENT if mobile else DESKTOP_USER_AGENT
        if with_cookie and self.cookie:
            headers["Cookie"] = self.cookie
        return headers

    async def get(
        self,
        url: str,
        *,
        mobile: bool = False,
        with_cookie: bool = False,
        params: Optional[Dict[str, Any]] = None,
    ) -> aiohttp.ClientResponse:
        """
        Issues a GET and returns the open response.

        The caller owns the response and must release it.
        """
        await self._initialize_session()
        log.debug(f"GET [yellow]{url}[/yellow] params={params}")
        return await self._session.get(
            url, headers=self.build_headers(mobile, with_cookie), params=params
        )

    async def get_json(
        self,
        url: str,
        *,
        with_cookie: bool = False,
        params: Optional[Dict[str, Any]] = None,
        envelope: bool = False,
    ) -> Dict[str, Any]:
        """
        Fetches a JSON document with the mobile-app header set.

        With ``envelope`` the body is decoded whatever the status, because the
        provider reports refusals as a ``{ret, msg}`` document on error statuses.
        The status is only raised when such a body cannot be decoded.
        """
        response = await self.get(
            url, mobile=True, with_cookie=with_cookie, params=params
        )
        try:
            if not envelope:
                response.raise_for_status()
            try:
                # Some endpoints answer with text/plain, so skip the content-type check.
                return await response.json(content_type=None)
            except ValueError:
                response.raise_for_status()
                raise
        finally:
            response.release()

    # Public API Methods
    async def fetch_track_page(
        self, album_id: int, page: int, page_size: int = 100
    ) -> Dict[str, Any]:
        return await self.get_json(
            self.TRACK_LIST_URL,
            params={
                "albumId": album_id,
                "page": page,
                "pageSize": page_size,
                "asc": "true",
            },
        )

    async def fetch_track_entitlement(self, track_id: int) -> Dict[str, Any]:
        ts = int(time.time())
        return await self.get_json(
            self.TRACK_PAY_URL.format(track_id=track_id, ts=ts),
            with_cookie=True,
            envelope=True,
            params={"device": "pc", "isBackend": "true", "_": ts},
        )

    async def fetch_current_user(self) -> Dict[str, Any]:
        return await self.get_json(self.CURRENT_USER_URL, with_cookie=True)
