"""
Browser header profiles.

Pinterest serves a stripped page (or an error) to clients that do not look like
a desktop browser, so every request carries a full Chrome header set. Profiles
are immutable mappings built once and shared by all requests.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping

PINTEREST_ORIGIN = "https://www.pinterest.com"


def _platform_hint(user_agent: str) -> str:
    if "Macintosh" in user_agent:
        return '"macOS"'
    if "Windows" in user_agent:
        return '"Windows"'
    return '"Linux"'


def browser_headers(user_agent: str, *, accept_language: str = "en-US,en;q=0.9") -> Mapping[str, str]:
    """
    Build the base header profile of a desktop Chrome navigation.

    Args:
        user_agent: User-Agent string to present
        accept_language: Accept-Language header value

    Returns:
        Read-only mapping of header names to values
    """
    headers: Dict[str, str] = {
        "User-Agent": user_agent,
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
            "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
        ),
        "Accept-Language": accept_language,
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Cache-Control": "max-age=0",
        "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": _platform_hint(user_agent),
    }
    return MappingProxyType(headers)


def page_headers(base: Mapping[str, str]) -> Dict[str, str]:
    """Headers for a pin page request, pinned to the Pinterest origin."""
    headers = dict(base)
    headers.update(
        {
            "Referer": f"{PINTEREST_ORIGIN}/",
            "Origin": PINTEREST_ORIGIN,
            "Sec-Fetch-Site": "same-origin",
        }
    )
    return headers


def video_headers(base: Mapping[str, str]) -> Dict[str, str]:
    """Headers for a video asset request."""
    headers = dict(base)
    headers.update(
        {
            "Accept": "*/*",
            "Referer": f"{PINTEREST_ORIGIN}/",
            "Sec-Fetch-Dest": "video",
            "Sec-Fetch-Mode": "no-cors",
            "Sec-Fetch-Site": "cross-site",
        }
    )
    headers.pop("Upgrade-Insecure-Requests", None)
    return headers
