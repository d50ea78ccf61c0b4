"""
Parse Result Models

Pydantic models for the two shapes the parse endpoint can return:

- PlainMetadata: flat Open Graph (or meta-tag fallback) key/value pairs
- EnrichedMetadata: the same pairs under ``og`` plus an optional ``video``
  reference and raw ``magnet`` URI found by the site-specific enricher

Both expose ``to_response()`` which produces the JSON-ready mapping that is
cached and sent to clients verbatim.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Type alias for flat metadata key/value pairs (e.g. "og:title" -> "...")
MetadataValues = dict[str, str]


class VideoRef(BaseModel):
    """
    Downloadable media reference located on a video page.

    ``as`` is a Python keyword so the field is stored as ``as_`` and
    serialized under its alias. The magnet-only fields (``xt``, ``dn``,
    ``tr``, ``xs``) stay ``None`` for inline-source and API-derived
    references and are omitted from the response.
    """

    model_config = ConfigDict(populate_by_name=True)

    xt: str | None = Field(default=None, description="Magnet exact topic (content hash URN)")
    dn: str | None = Field(default=None, description="Magnet display name")
    tr: str | None = Field(default=None, description="Magnet tracker address")
    as_: str = Field(default="", alias="as", description="Acceptable source URL for the media")
    xs: str | None = Field(default=None, description="Magnet exact source")
    title: str = Field(default="", description="Video title taken from og:title")
    preview: str = Field(default="", description="Preview image taken from og:image")


class PlainMetadata(BaseModel):
    """Flat metadata result for requests without site-specific enrichment."""

    values: MetadataValues = Field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        """Return the flat mapping as sent to clients."""
        return dict(self.values)


class EnrichedMetadata(BaseModel):
    """Metadata result carrying site-specific video data alongside ``og``."""

    og: MetadataValues = Field(default_factory=dict)
    video: VideoRef | None = None
    magnet: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Return the nested mapping as sent to clients, dropping unset parts."""
        return self.model_dump(by_alias=True, exclude_none=True)


ParseResult = PlainMetadata | EnrichedMetadata


__all__ = [
    "EnrichedMetadata",
    "MetadataValues",
    "ParseResult",
    "PlainMetadata",
    "VideoRef",
]
