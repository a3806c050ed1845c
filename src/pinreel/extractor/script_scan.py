"""
Regex strategies: a targeted scan of script bodies and a broad scan of the
whole page.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from .models import ExtractionResult, VideoCandidate
from .page_metadata import extract_thumbnail, extract_title, parse_html, script_texts
from .validity import dedupe, is_valid_video_url, normalize_candidate

SCRIPT_PATTERNS = (
    re.compile(r"https://v\d+\.pinimg\.com/videos/[^\"']+\.(?:mp4|mov|webm)[^\"']*", re.IGNORECASE),
    re.compile(r"\"video_url\":\s*\"([^\"]+\.mp4[^\"]*)\"", re.IGNORECASE),
    re.compile(r"\"url\":\s*\"([^\"]+\.mp4[^\"]*)\"", re.IGNORECASE),
    re.compile(r"https://[^\s\"']+\.mp4[^\"']*", re.IGNORECASE),
    re.compile(r"src:\s*[\"']([^\"']+\.mp4[^\"']*)[\"']", re.IGNORECASE),
)

_EXT = r"(?:mp4|mov|webm|avi|m4v)"

PAGE_PATTERNS = (
    re.compile(rf"https://[a-zA-Z0-9.-]*pinimg\.com/videos/[^\"'\s<>]+\.{_EXT}", re.IGNORECASE),
    re.compile(rf"https://v[0-9]\.pinimg\.com/[^\"'\s<>]+\.{_EXT}", re.IGNORECASE),
    re.compile(rf"\"videoUrl\":\s*\"([^\"]+\.{_EXT}[^\"]*)\"", re.IGNORECASE),
    re.compile(rf"'videoUrl':\s*'([^']+\.{_EXT}[^']*)'", re.IGNORECASE),
    re.compile(rf"url:\s*[\"']([^\"']+\.{_EXT}[^\"']*)[\"']", re.IGNORECASE),
)


def _unescape_slashes(text: str) -> str:
    # JSON inside scripts often escapes "/" as "\/".
    return text.replace("\\/", "/")


def scan(text: str, patterns: Iterable[re.Pattern[str]]) -> Iterator[str]:
    """Yield normalised, valid video URLs matched by ``patterns`` in order."""
    for pattern in patterns:
        for match in pattern.finditer(text):
            raw = match.group(1) if pattern.groups else match.group(0)
            candidate = normalize_candidate(raw)
            if is_valid_video_url(candidate):
                yield candidate


class ScriptTagsStrategy:
    """Targeted regexes over the joined ``<script>`` bodies."""

    name = "script_tags"

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        tree = parse_html(html)
        text = _unescape_slashes("\n".join(script_texts(tree)))
        urls = dedupe(list(scan(text, SCRIPT_PATTERNS)))
        if not urls:
            return ExtractionResult.failure(self.name, "No video URLs found in script tags")

        return ExtractionResult(
            strategy=self.name,
            success=True,
            candidates=tuple(VideoCandidate(url=u) for u in urls),
            title=extract_title(tree),
            thumbnail=extract_thumbnail(tree),
        )


class PatternMatchingStrategy:
    """Broad regexes over the full page; result order is not meaningful."""

    name = "pattern_matching"

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        urls = sorted(set(scan(_unescape_slashes(html), PAGE_PATTERNS)))
        if not urls:
            return ExtractionResult.failure(self.name, "No video URLs found with pattern matching")

        tree = parse_html(html)
        return ExtractionResult(
            strategy=self.name,
            success=True,
            candidates=tuple(VideoCandidate(url=u) for u in urls),
            title=extract_title(tree),
            thumbnail=extract_thumbnail(tree),
        )
