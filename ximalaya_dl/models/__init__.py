"""
Data Models Layer.

This package contains the Pydantic models that define the core data structures
used throughout the application, such as albums, tracks and configuration.
"""

from .album import AlbumIdentity, AlbumMetadata, AudioItem, UrlParams, VipEntitlement
from .config import DownloadConfig
from .stats import DownloadStats

__all__ = [
    "AlbumIdentity",
    "AlbumMetadata",
    "AudioItem",
    "DownloadConfig",
    "DownloadStats",
    "UrlParams",
    "VipEntitlement",
]
