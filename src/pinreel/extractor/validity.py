"""
Video URL validity checks shared by every strategy.
"""

from __future__ import annotations

from urllib.parse import urlsplit

VIDEO_DOMAINS = (
    "v.pinimg.com",
    "v1.pinimg.com",
    "v2.pinimg.com",
    "v3.pinimg.com",
    "i.pinimg.com",
    "media.tumblr.com",
    "pinimg.com",
)

VIDEO_FILE_EXTENSIONS = (".mp4", ".mov", ".webm", ".avi", ".m4v")

VIDEO_TOKENS = ("mp4", "video", "hls", "dash")


def is_valid_video_url(url: str) -> bool:
    """
    True when ``url`` looks like a playable video asset on a known media host.

    The scheme must be http(s), the host must belong to a video domain (or
    mention ``pinimg``), and the URL must either end in a video extension or
    carry a video token.
    """
    try:
        parts = urlsplit(url)
        hostname = (parts.hostname or "").lower()
    except ValueError:
        return False

    if parts.scheme.lower() not in ("http", "https"):
        return False

    if not (any(domain in hostname for domain in VIDEO_DOMAINS) or "pinimg" in hostname):
        return False

    path = parts.path.lower()
    lowered = url.lower()
    return path.endswith(VIDEO_FILE_EXTENSIONS) or any(token in lowered for token in VIDEO_TOKENS)


def normalize_candidate(raw: str) -> str:
    """Strip quotes and make protocol-relative or bare-host URLs absolute."""
    candidate = raw.replace('"', "").replace("'", "").strip()
    if candidate.startswith("//"):
        return f"https:{candidate}"
    if not candidate.startswith("http"):
        return f"https://{candidate}"
    return candidate


def dedupe(urls: list[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    return list(dict.fromkeys(urls))
