"""
Web Scraping Layer.

This package contains modules for fetching and parsing the public Ximalaya
album pages.
"""

from .album_page import AlbumMetadataFetcher, parse_album_page, parse_page_count

__all__ = ["AlbumMetadataFetcher", "parse_album_page", "parse_page_count"]
