"""
PinReel extraction module - ordered video strategy chain.

Strategies, tried in order against a fetched pin page:
1. initial_state: video variants from window.__INITIAL_STATE__
2. pws_data: __PWS_DATA__ located and parsed
3. script_tags: targeted regexes over script bodies
4. html_video: <video>/<source> elements
5. pattern_matching: broad regexes over the whole page
6. fallback: URL-only, always reports failure
"""

from .dom_video import HtmlVideoStrategy
from .embedded_state import InitialStateStrategy, PwsDataStrategy, walk_pin_resource
from .fallback import FallbackStrategy
from .manager import ExtractorManager, assign_quality, build_video_info, default_strategies, order_by_quality
from .models import ExtractionResult, QualityMap, VideoCandidate, VideoInfo
from .protocols import Strategy
from .script_scan import PatternMatchingStrategy, ScriptTagsStrategy
from .validity import is_valid_video_url

__all__ = [
    "ExtractionResult",
    "ExtractorManager",
    "FallbackStrategy",
    "HtmlVideoStrategy",
    "InitialStateStrategy",
    "PatternMatchingStrategy",
    "PwsDataStrategy",
    "QualityMap",
    "ScriptTagsStrategy",
    "Strategy",
    "VideoCandidate",
    "VideoInfo",
    "assign_quality",
    "build_video_info",
    "default_strategies",
    "is_valid_video_url",
    "order_by_quality",
    "walk_pin_resource",
]
