"""
Models Package for the Open Graph parser service.

Pydantic models describing parse results:
    - PlainMetadata: flat Open Graph / meta-tag key/value pairs
    - EnrichedMetadata: ``og`` pairs plus optional ``video`` and ``magnet``
    - VideoRef: media reference located by the site-specific enricher
"""

from app.models.metadata import (
    EnrichedMetadata,
    MetadataValues,
    ParseResult,
    PlainMetadata,
    VideoRef,
)


__all__ = [
    "EnrichedMetadata",
    "MetadataValues",
    "ParseResult",
    "PlainMetadata",
    "VideoRef",
]
