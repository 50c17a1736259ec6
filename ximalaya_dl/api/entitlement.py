"""
Resolves the signed, time-boxed download URL of an access-controlled (VIP) track.
"""

import asyncio
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError

from ximalaya_dl.exceptions import EntitlementDeniedError, EntitlementError
from ximalaya_dl.models.album import AudioItem, VipEntitlement

from .cipher import EntitlementCipher, XimalayaCipher
from .client import XimalayaAPIClient

log = logging.getLogger(__name__)


class VipEntitlementResolver:
    """
    Calls the pay endpoint with the account cookie and decrypts its envelope.

    The cipher is a strategy object so a new provider scheme only needs a new
    ``EntitlementCipher`` implementation.
    """

    def __init__(
        self, api_client: XimalayaAPIClient, cipher: Optional[EntitlementCipher] = None
    ):
        self.api_client = api_client
        self.cipher = cipher or XimalayaCipher()

    async def fetch_entitlement(self, track_id: int) -> VipEntitlement:
        """Queries the pay endpoint and validates its envelope."""
        if not self.api_client.cookie:
            raise EntitlementDeniedError(
                f"Track {track_id} requires a VIP entitlement but no cookie is configured."
            )

        try:
            payload = await self.api_client.fetch_track_entitlement(track_id)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise EntitlementError(
                f"Failed to get audio info for track {track_id}: {e}"
            ) from e

        try:
            entitlement = VipEntitlement.model_validate(payload)
        except ValidationError as e:
            raise EntitlementError(
                f"Unexpected pay response for track {track_id}: {e}"
            ) from e

        if entitlement.ret != 0:
            raise EntitlementDeniedError(
                f"Failed to get audio info for track {track_id}: {entitlement.msg}"
            )
        return entitlement

    def build_url(self, entitlement: VipEntitlement) -> str:
        """Assembles the final download URL from a successful envelope."""
        file_name = self.cipher.decrypt_file_name(entitlement.seed, entitlement.file_id)
        params = self.cipher.decrypt_url_params(entitlement.ep)
        return (
            f"{entitlement.domain}/download/{entitlement.api_version}{file_name}"
            f"?sign={params.sign}&buy_key={entitlement.buy_key}"
            f"&token={params.token}&timestamp={params.timestamp}"
            f"&duration={entitlement.duration}"
        )

    async def resolve(self, track_id: int) -> AudioItem:
        """
        Returns a playable ``AudioItem`` for a VIP track.

        Raises:
            EntitlementDeniedError: If the provider answers with a non-zero ``ret``.
            EntitlementError: If the envelope cannot be fetched or decrypted.
        """
        entitlement = await self.fetch_entitlement(track_id)
        url = self.build_url(entitlement)
        log.debug(f"Resolved VIP track {track_id} to [dim]{url}[/dim]")
        return AudioItem(track_id=track_id, url=url, title=entitlement.title)
