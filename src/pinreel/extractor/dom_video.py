"""
Strategy reading ``<video>`` and ``<source>`` elements.
"""

from __future__ import annotations

from .models import ExtractionResult, VideoCandidate
from .page_metadata import extract_thumbnail, extract_title, parse_html
from .validity import is_valid_video_url


class HtmlVideoStrategy:
    """Collects ``src`` of every video element and its nested sources."""

    name = "html_video"

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        tree = parse_html(html)
        urls: list[str] = []
        for video in tree.css("video"):
            src = (video.attributes.get("src") or "").strip()
            if src and is_valid_video_url(src):
                urls.append(src)
            for source in video.css("source"):
                source_src = (source.attributes.get("src") or "").strip()
                if source_src and is_valid_video_url(source_src):
                    urls.append(source_src)

        if not urls:
            return ExtractionResult.failure(self.name, "No video elements found")

        return ExtractionResult(
            strategy=self.name,
            success=True,
            candidates=tuple(VideoCandidate(url=u) for u in urls),
            title=extract_title(tree),
            thumbnail=extract_thumbnail(tree),
        )
