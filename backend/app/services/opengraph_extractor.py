"""
Open Graph Extractor Module

Parses ``<meta property="og:...">`` style tags from an HTML document into a
flat key/value mapping such as ``{"og:title": "...", "og:image": "..."}``.

Rules:
- Properties from the well-known Open Graph namespaces are recognized, plus
  any prefix declared in ``<html prefix="...">``.
- The first value wins when a property repeats.
- Structured sub-properties (``og:image:width``) describe their parent and are
  not emitted as top-level keys.
- An empty mapping (not an error) is returned when the page has no Open
  Graph tags; callers use that to fall back to plain meta tags.
"""

import logging
import re

from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)

# Namespaces understood without an explicit prefix declaration
KNOWN_NAMESPACES: frozenset[str] = frozenset(
    {
        "og",
        "article",
        "book",
        "books",
        "business",
        "fb",
        "music",
        "place",
        "product",
        "profile",
        "video",
    }
)

# Properties the Open Graph protocol marks as required for every object
REQUIRED_PROPERTIES: tuple[str, ...] = ("og:title", "og:type", "og:image", "og:url")

# Matches "og: https://ogp.me/ns#" pairs inside a prefix attribute
_PREFIX_DECLARATION = re.compile(r"([A-Za-z][\w-]*):\s+\S+")


def parse_html(html: str | BeautifulSoup) -> BeautifulSoup:
    """Return a parsed document, accepting either raw HTML or an existing soup."""
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def _declared_namespaces(soup: BeautifulSoup) -> set[str]:
    namespaces = set(KNOWN_NAMESPACES)
    for tag_name in ("html", "head"):
        tag = soup.find(tag_name)
        if tag is None:
            continue
        prefix_attr = tag.get("prefix")
        if prefix_attr:
            namespaces.update(m.lower() for m in _PREFIX_DECLARATION.findall(prefix_attr))
    return namespaces


def _property_name(tag) -> str | None:
    name = tag.get("property") or tag.get("name")
    if not name:
        return None
    return name.strip().lower()


def extract_open_graph(html: str | BeautifulSoup, validate: bool = True) -> dict[str, str]:
    """
    Extract Open Graph key/value pairs from an HTML document.

    Args:
        html: Raw HTML text or an already parsed ``BeautifulSoup`` document.
        validate: When True, report missing required properties in the log.
            The returned mapping is the same either way.

    Returns:
        Mapping of property name (e.g. ``og:title``) to its first value.
    """
    soup = parse_html(html)
    namespaces = _declared_namespaces(soup)
    result: dict[str, str] = {}

    for tag in soup.find_all("meta"):
        prop = _property_name(tag)
        if prop is None:
            continue

        parts = prop.split(":")
        if len(parts) != 2 or not parts[1]:
            # Either not namespaced or a structured child such as og:image:width
            continue
        if parts[0] not in namespaces:
            continue

        if prop not in result:
            result[prop] = tag.get("content") or ""

    if validate and result:
        missing = [p for p in REQUIRED_PROPERTIES if p not in result]
        if missing:
            logger.info("Open Graph data is missing required properties: %s", ", ".join(missing))

    logger.debug("Extracted %d Open Graph properties", len(result))
    return result


__all__ = ["KNOWN_NAMESPACES", "REQUIRED_PROPERTIES", "extract_open_graph", "parse_html"]
