"""
Data models for extraction results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TITLE = "Pinterest Video"


@dataclass(slots=True, frozen=True)
class VideoCandidate:
    """A playable video URL, with dimensions when the page states them."""

    url: str
    width: int | None = None
    height: int | None = None

    @property
    def area(self) -> int | None:
        if self.width is None or self.height is None:
            return None
        return self.width * self.height


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Outcome of a single strategy against a page."""

    strategy: str
    success: bool
    candidates: tuple[VideoCandidate, ...] = ()
    title: str | None = None
    thumbnail: str | None = None
    description: str | None = None
    duration: str | None = None
    author: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and not self.candidates:
            raise ValueError("A successful extraction must carry at least one candidate")

    @property
    def video_urls(self) -> list[str]:
        return [candidate.url for candidate in self.candidates]

    @classmethod
    def failure(cls, strategy: str, error: str) -> ExtractionResult:
        return cls(strategy=strategy, success=False, error=error)


@dataclass(slots=True, frozen=True)
class QualityMap:
    """Quality tier to URL; every value is one of the candidate URLs."""

    high: str
    medium: str
    low: str

    def get(self, quality: str) -> str:
        """URL for ``quality``; unknown tiers fall back to ``high``."""
        return self.to_dict().get(quality, self.high)

    def to_dict(self) -> dict[str, str]:
        return {"high": self.high, "medium": self.medium, "low": self.low}


@dataclass(slots=True, frozen=True)
class VideoInfo:
    """Everything known about a pin's video after extraction."""

    title: str
    video_url: str
    quality: QualityMap
    strategy: str
    candidates: tuple[VideoCandidate, ...] = field(default_factory=tuple)
    thumbnail: str | None = None
    duration: str | None = None
    description: str | None = None
    author: str | None = None

    def formats(self) -> list[dict[str, str]]:
        return [{"quality": quality, "url": url} for quality, url in self.quality.to_dict().items()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "videoUrl": self.video_url,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "description": self.description,
            "author": self.author,
            "strategy": self.strategy,
            "quality": self.quality.to_dict(),
            "candidates": [candidate.url for candidate in self.candidates],
        }
