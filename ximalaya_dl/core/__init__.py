"""
Core application engine for orchestrating the download process.

This package contains the primary logic. `AlbumDetail` drives an album from
URL to files on disk, delegating the paginated track listing to
`TrackListAggregator`.
"""

from .album_detail import AlbumDetail, AlbumState
from .track_list import TrackListAggregator

__all__ = ["AlbumDetail", "AlbumState", "TrackListAggregator"]
