"""
Media Processing Layer.

This package is responsible for media file operations, chiefly downloading
audio resources to disk.
"""

from .downloader import Downloader

__all__ = ["Downloader"]
