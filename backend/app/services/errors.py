"""Exceptions raised by the metadata pipeline stages."""


class MetadataServiceError(Exception):
    """Base exception for metadata pipeline errors."""


class InvalidURLError(MetadataServiceError):
    """Raised when a URL cannot be fetched (bad scheme or missing host)."""


class FetchError(MetadataServiceError):
    """Raised when a page fetch fails on the network or times out."""


class VideoAPIError(MetadataServiceError):
    """Raised when the video metadata API cannot be reached."""


__all__ = ["FetchError", "InvalidURLError", "MetadataServiceError", "VideoAPIError"]
