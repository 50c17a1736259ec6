"""
Utilities for handling file paths, file names, and URL parsing.
"""

import re
from pathlib import Path
from urllib.parse import urlparse

from pathvalidate import sanitize_filename

from ximalaya_dl.exceptions import MalformedURLError
from ximalaya_dl.models.album import AlbumIdentity, AudioItem


_ID_REGEX = re.compile(r"[+-]?[0-9]+")


def _parse_id(value: str) -> int:
    """Parses a plain ASCII integer id, degrading to 0 for anything else."""
    if not _ID_REGEX.fullmatch(value):
        return 0
    return int(value)


def parse_album_url(url: str) -> AlbumIdentity:
    """
    Parses a Ximalaya URL such as ``https://www.ximalaya.com/xiangsheng/39725061``
    or ``.../xiangsheng/39725061/322739646`` into an album identity.

    Non-numeric ids do not raise: the album id becomes 0 and the track id is
    left unset.
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    if len(segments) < 2:
        raise MalformedURLError(
            f"Read url failed: '{url}' needs at least a category and an album id."
        )

    track_id = None
    if len(segments) > 2:
        track_id = _parse_id(segments[2]) or None

    return AlbumIdentity(
        category=segments[0], album_id=_parse_id(segments[1]), track_id=track_id
    )


def album_page_url(url: str, identity: AlbumIdentity) -> str:
    """Builds the album page URL on the same scheme and host as ``url``."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/{identity.category}/{identity.album_id}"


def file_extension(url: str) -> str:
    """Returns the extension of the URL's last path segment, or "" if it has none."""
    name = urlparse(url).path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1] if "." in name else ""


def build_file_name(item: AudioItem) -> str:
    """Combines a track title with the extension of its resource URL."""
    title = sanitize_filename(item.title, platform="auto") or str(item.track_id)
    extension = file_extension(item.url)
    return f"{title}.{extension}" if extension else title


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)
