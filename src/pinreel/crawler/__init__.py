"""
PinReel crawler module - page and video transport.

Fetches pin pages with a desktop browser header profile and opens video
assets as chunk streams.
"""

from .headers import browser_headers, page_headers, video_headers
from .http_client import FetchSettings, HttpClient, PageResponse, VideoStream

__all__ = [
    "FetchSettings",
    "HttpClient",
    "PageResponse",
    "VideoStream",
    "browser_headers",
    "page_headers",
    "video_headers",
]
