"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class XimalayaDlError(Exception):
    """Base exception for all application-specific errors."""


class MalformedURLError(XimalayaDlError):
    """Raised when a URL does not contain at least a category and an album id."""


class MetadataFetchError(XimalayaDlError):
    """Raised when the album page cannot be fetched or returns a non-200 status."""


class TrackListPartialError(XimalayaDlError):
    """
    Describes a track-listing page that failed mid-aggregation.

    Only logged: aggregation stops and keeps the items collected so far.
    """


class EntitlementError(XimalayaDlError):
    """Raised when the pay/entitlement endpoint cannot be queried or decoded."""


class EntitlementDeniedError(EntitlementError):
    """Raised when the provider refuses to issue a playable URL for a VIP track."""


class TrackNotFoundError(XimalayaDlError):
    """Raised when the requested track id is absent from the album's track list."""


class DownloadExhaustedError(XimalayaDlError):
    """Raised when every download attempt failed to produce a 200 response."""


class FileSystemError(XimalayaDlError):
    """Raised when a directory or file cannot be created or written."""


class BatchDownloadError(XimalayaDlError):
    """Raised when an album download stops at the first failing item."""

    def __init__(self, item, cause: Exception):
        self.item = item
        self.cause = cause
        super().__init__(
            f"Download list failed at track {item.track_id} '{item.title}': {cause}"
        )


class UsageError(XimalayaDlError):
    """Raised when the album pipeline is driven out of order."""


class ConfigurationError(XimalayaDlError):
    """Raised for issues related to configuration loading or validation."""
