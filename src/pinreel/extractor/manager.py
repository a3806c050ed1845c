"""
ExtractorManager for PinReel.

Runs the extraction strategies in a fixed, configurable order against a
fetched pin page and turns the first usable result into a ``VideoInfo``.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from ..config.config import ExtractionSettings
from ..errors import ParseError
from ..observability.metrics import increment
from .dom_video import HtmlVideoStrategy
from .embedded_state import InitialStateStrategy, PwsDataStrategy
from .fallback import FallbackStrategy
from .models import DEFAULT_TITLE, ExtractionResult, QualityMap, VideoCandidate, VideoInfo
from .protocols import Strategy
from .script_scan import PatternMatchingStrategy, ScriptTagsStrategy

logger = structlog.get_logger(__name__)


def default_strategies() -> List[Strategy]:
    return [
        InitialStateStrategy(),
        PwsDataStrategy(),
        ScriptTagsStrategy(),
        HtmlVideoStrategy(),
        PatternMatchingStrategy(),
        FallbackStrategy(),
    ]


def order_by_quality(candidates: Sequence[VideoCandidate]) -> Tuple[VideoCandidate, ...]:
    """
    Order candidates best-first.

    Pixel area is used only when every candidate states its dimensions;
    otherwise the strategy's own order stands. The sort is stable.
    """
    areas = [candidate.area for candidate in candidates]
    if candidates and all(area is not None for area in areas):
        return tuple(sorted(candidates, key=lambda c: c.area or 0, reverse=True))
    return tuple(candidates)


def assign_quality(candidates: Sequence[VideoCandidate]) -> QualityMap:
    """Map high/medium/low to the first, middle and last candidate."""
    if not candidates:
        raise ParseError("No video URLs found", "NO_VIDEO_URLS")
    return QualityMap(
        high=candidates[0].url,
        medium=candidates[len(candidates) // 2].url,
        low=candidates[-1].url,
    )


def build_video_info(result: ExtractionResult, quality: str = "high") -> VideoInfo:
    """
    Build a ``VideoInfo`` from a successful extraction.

    Args:
        result: Strategy result carrying at least one candidate
        quality: Preferred quality tier

    Returns:
        VideoInfo whose ``video_url`` is the URL for ``quality``
    """
    candidates = order_by_quality(result.candidates)
    quality_map = assign_quality(candidates)
    return VideoInfo(
        title=result.title or DEFAULT_TITLE,
        video_url=quality_map.get(quality),
        quality=quality_map,
        strategy=result.strategy,
        candidates=candidates,
        thumbnail=result.thumbnail,
        duration=result.duration,
        description=result.description,
        author=result.author,
    )


class ExtractorManager:
    """
    Manages the ordered extraction strategy chain.

    Features:
    - Configurable strategy order
    - Per-strategy error isolation
    - Performance metrics tracking
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        strategies: Optional[Sequence[Strategy]] = None,
    ) -> None:
        """
        Initialize the ExtractorManager.

        Args:
            settings: Extraction configuration settings
            strategies: Strategy instances to register (defaults to all six)
        """
        self.settings = settings or ExtractionSettings()
        self.logger = logger.bind(component="ExtractorManager")

        self._strategies: Dict[str, Strategy] = {
            strategy.name: strategy for strategy in (strategies if strategies is not None else default_strategies())
        }

        self._validate_strategy_order()

        self._extraction_metrics: Dict[str, Dict[str, float]] = {
            name: {"attempts": 0, "successes": 0, "total_time": 0.0} for name in self._strategies
        }

    def _validate_strategy_order(self) -> None:
        for name in self.settings.strategy_order:
            if name not in self._strategies:
                raise ValueError(
                    f"Invalid strategy '{name}' in strategy_order. "
                    f"Available strategies: {list(self._strategies.keys())}"
                )

    @property
    def strategy_order(self) -> List[str]:
        return list(self.settings.strategy_order)

    def extract(self, html: str, url: str) -> ExtractionResult:
        """
        Run the chain until a strategy yields at least one candidate.

        Args:
            html: Page body
            url: Pin URL

        Returns:
            The first successful ExtractionResult

        Raises:
            ParseError: ``EXTRACTION_FAILED`` with the last failure reason.
        """
        order = self.strategy_order
        self.logger.info("Starting extraction chain", url=url, strategy_order=order)

        last_error: Optional[str] = None

        for name in order:
            strategy = self._strategies[name]
            start_time = time.time()
            self._extraction_metrics[name]["attempts"] += 1

            try:
                result = strategy.extract(html, url=url)
            except Exception as e:
                self.logger.error(
                    "Strategy raised",
                    event_type="strategy_failed",
                    strategy=name,
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result = ExtractionResult.failure(name, str(e))
            finally:
                self._extraction_metrics[name]["total_time"] += time.time() - start_time

            if result.success and result.candidates:
                self._extraction_metrics[name]["successes"] += 1
                increment("extraction_attempts", labels={"strategy": name, "outcome": "success"})
                self.logger.info(
                    "Extraction completed",
                    strategy=name,
                    url=url,
                    candidates=len(result.candidates),
                )
                return result

            increment("extraction_attempts", labels={"strategy": name, "outcome": "failure"})
            self.logger.debug("Strategy found nothing", strategy=name, url=url, reason=result.error)
            if result.error:
                last_error = result.error

        message = last_error or "No video found in the provided URL"
        self.logger.warning("All strategies failed", url=url, strategy_order=order, last_error=last_error)
        raise ParseError(
            f"Failed to extract video information: {message}",
            "EXTRACTION_FAILED",
            {"url": url, "strategies": order, "last_error": last_error},
        )

    def extract_video_info(self, html: str, url: str, quality: str = "high") -> VideoInfo:
        return build_video_info(self.extract(html, url), quality)

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """
        Get extraction performance metrics.

        Returns:
            Dictionary of metrics per strategy
        """
        metrics = {}

        for name, raw_metrics in self._extraction_metrics.items():
            attempts = raw_metrics["attempts"]
            successes = raw_metrics["successes"]
            total_time = raw_metrics["total_time"]

            metrics[name] = {
                "attempts": attempts,
                "successes": successes,
                "success_rate": successes / attempts if attempts > 0 else 0.0,
                "total_time": total_time,
                "avg_time": total_time / attempts if attempts > 0 else 0.0,
            }

        return metrics
