"""
Pydantic models for albums, tracks and the transient VIP entitlement envelope.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AlbumIdentity(BaseModel):
    """Identity of an album (and optionally one track) parsed from a URL."""

    model_config = ConfigDict(frozen=True)

    category: str
    album_id: int = 0
    track_id: Optional[int] = None


class AlbumMetadata(BaseModel):
    """Album facts scraped from the web page. Derived, not authoritative."""

    title: str = ""
    audio_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=1, ge=1)


class AudioItem(BaseModel):
    """One downloadable audio resource of an album."""

    model_config = ConfigDict(frozen=True)

    track_id: int
    url: str = ""
    title: str = ""

    @property
    def requires_entitlement(self) -> bool:
        """Paid tracks are listed without a playback path."""
        return not self.url


class VipEntitlement(BaseModel):
    """The JSON envelope returned by the pay endpoint for a VIP track."""

    model_config = ConfigDict(populate_by_name=True)

    ret: int
    msg: str = ""
    seed: int = 0
    file_id: str = Field(default="", alias="fileId")
    ep: str = ""
    buy_key: str = Field(default="", alias="buyKey")
    domain: str = ""
    api_version: str = Field(default="", alias="apiVersion")
    duration: int = 0
    title: str = ""


class UrlParams(BaseModel):
    """The signed query parameters decrypted from an entitlement's ``ep`` blob."""

    sign: str
    buy_key: str
    token: int
    timestamp: int
