"""
Meta-Tag Fallback Extractor Module

Used when a page has no Open Graph data. Collects the ``<title>`` element and
the ``<meta name="description">`` / ``<meta name="title">`` tags.
"""

import logging

from bs4 import BeautifulSoup

from app.services.opengraph_extractor import parse_html


logger = logging.getLogger(__name__)

# Meta names copied into the fallback result
FALLBACK_META_NAMES: frozenset[str] = frozenset({"description", "title"})


def extract_meta_tags(html: str | BeautifulSoup) -> dict[str, str]:
    """
    Extract the title and allow-listed meta tags from an HTML document.

    ``<title>`` text wins over ``<meta name="title">``; for repeated meta
    names the first occurrence is kept. A page without any meta tags yields
    only the title, or an empty mapping.
    """
    soup = parse_html(html)
    result: dict[str, str] = {}

    title_tag = soup.find("title")
    if title_tag is not None:
        result["title"] = title_tag.get_text().strip()

    for tag in soup.find_all("meta"):
        name = tag.get("name")
        if name is None:
            continue

        name = name.lower()
        if name in FALLBACK_META_NAMES and name not in result:
            result[name] = tag.get("content") or ""

    logger.debug("Extracted %d fallback meta tags", len(result))
    return result


__all__ = ["FALLBACK_META_NAMES", "extract_meta_tags"]
