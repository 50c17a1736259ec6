"""
Checks the account behind a cookie string against the Ximalaya web API.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from ximalaya_dl.exceptions import EntitlementError

if TYPE_CHECKING:
    from .client import XimalayaAPIClient

log = logging.getLogger(__name__)


class CookieAuthenticator:
    """
    Reads the current user's profile with the configured cookie.

    The cookie is treated as an opaque credential; it is never refreshed or derived.
    """

    def __init__(self, api_client: "XimalayaAPIClient"):
        """
        Initializes the authenticator.

        Args:
            api_client: A reference to the shared XimalayaAPIClient instance.
        """
        self._api_client = api_client

    async def get_user_info(self) -> dict[str, Any]:
        """
        Fetches the profile of the logged-in user.

        Returns:
            The ``data`` object of the response, or an empty dict for anonymous
            sessions.
        """
        if not self._api_client.cookie:
            raise EntitlementError(
                "No cookie configured. Run 'ximalaya-dl init <COOKIE>' first."
            )

        try:
            payload = await self._api_client.fetch_current_user()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise EntitlementError(f"Failed to get current user: {e}") from e

        user_info = payload.get("data") or {}
        if user_info:
            log.info(
                "Cookie belongs to: "
                f"[cyan]{user_info.get('nickname', 'Unknown User')}[/cyan]"
            )
        else:
            log.warning(
                "[yellow]The cookie is not logged in: "
                f"{payload.get('msg', 'no user data')}[/yellow]"
            )
        return user_info
