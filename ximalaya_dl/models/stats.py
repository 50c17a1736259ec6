"""
Dataclass for tracking download session statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks statistics for a download session."""

    tracks_downloaded: int = 0
    tracks_failed: int = 0
    total_size_downloaded: int = 0
    start_time: float = field(default_factory=time.monotonic, repr=False)

    def record_success(self, size: int) -> None:
        self.tracks_downloaded += 1
        self.total_size_downloaded += size

    def record_failure(self) -> None:
        self.tracks_failed += 1

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time
