"""
Page-level metadata helpers (title, thumbnail, script bodies) on selectolax.
"""

from __future__ import annotations

from selectolax.parser import HTMLParser

from .models import DEFAULT_TITLE

TITLE_SELECTORS = (
    'meta[property="og:title"]',
    'meta[name="description"]',
    "title",
    "h1",
    '[data-test-id="pinTitle"]',
)

THUMBNAIL_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
    '[data-test-id="pinImage"] img',
    'img[src*="pinimg.com"]',
)

MAX_TITLE_LENGTH = 100


def parse_html(html: str) -> HTMLParser:
    return HTMLParser(html or "")


def extract_title(tree: HTMLParser) -> str:
    """First non-empty title candidate, capped at 100 characters."""
    for selector in TITLE_SELECTORS:
        node = tree.css_first(selector)
        if node is None:
            continue
        value = node.attributes.get("content") or node.text()
        if value and value.strip():
            return value.strip()[:MAX_TITLE_LENGTH]
    return DEFAULT_TITLE


def extract_thumbnail(tree: HTMLParser) -> str | None:
    for selector in THUMBNAIL_SELECTORS:
        node = tree.css_first(selector)
        if node is None:
            continue
        value = node.attributes.get("content") or node.attributes.get("src")
        if value and value.strip():
            return value.strip()
    return None


def script_texts(tree: HTMLParser) -> list[str]:
    """Bodies of every ``<script>`` element in document order."""
    return [node.text(deep=True) or "" for node in tree.css("script")]
