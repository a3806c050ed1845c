"""
Pinterest URL classification.

Decides whether a string is a Pinterest pin, board or user URL, extracts its
identifiers and produces a canonical form. Everything here is a pure function
of the input string and two lookup tables (allowed domains, reserved path
segments).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from pinreel.errors import ValidationError

UrlType = Literal["pin", "board", "user", "unknown"]

VALID_DOMAINS: Tuple[str, ...] = (
    "pinterest.com",
    "pinterest.co.uk",
    "pinterest.it",
    "pinterest.fr",
    "pinterest.de",
    "pinterest.es",
    "pinterest.com.mx",
    "pinterest.ca",
    "pinterest.com.au",
    "pin.it",
)

SHORT_LINK_DOMAIN = "pin.it"

RESERVED_PATHS = frozenset(
    {
        "pin",
        "board",
        "search",
        "ideas",
        "login",
        "register",
        "settings",
        "about",
        "business",
        "developers",
        "help",
        "terms",
        "privacy",
        "api",
        "oauth",
        "widgets",
        "resources",
        "trending",
        "today",
    }
)

VIDEO_EXTENSIONS: Tuple[str, ...] = ("mp4", "mov", "webm", "avi", "m4v", "mkv")

# Path shapes, tried in precedence order.
PIN_PATH_PATTERNS = (
    re.compile(r"^/pin/(\d+)", re.IGNORECASE),
    re.compile(r"^/pin/([^/\s]+)/?$", re.IGNORECASE),
)
SHORT_LINK_PATH_PATTERN = re.compile(r"^/([^/\s]+)/?$")
BOARD_PATH_PATTERN = re.compile(r"^/([^/\s]+)/([^/\s]+)/?$")
USER_PATH_PATTERN = re.compile(r"^/([^/\s]+)/?$")


@dataclass(frozen=True)
class ParsedUrl:
    """Classification of a Pinterest URL."""

    original_url: str
    normalized_url: str
    type: UrlType
    domain: str
    pin_id: Optional[str] = None
    board_id: Optional[str] = None
    username: Optional[str] = None


def _is_allowed_domain(hostname: str) -> bool:
    return any(hostname == domain or hostname.endswith(f".{domain}") for domain in VALID_DOMAINS)


def _is_short_link(hostname: str) -> bool:
    return hostname == SHORT_LINK_DOMAIN or hostname.endswith(f".{SHORT_LINK_DOMAIN}")


def is_reserved_path(segment: str) -> bool:
    return segment.lower() in RESERVED_PATHS


def _split(url: str) -> Tuple[str, str, str]:
    """Return (trimmed url, lowercased hostname, path) or raise MALFORMED_URL."""
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required and must be a string", "url", url, code="URL_REQUIRED")

    trimmed = url.strip()
    try:
        parts = urlsplit(trimmed)
        hostname = (parts.hostname or "").lower()
        # Accessing .port validates it.
        parts.port
    except ValueError:
        raise ValidationError("Invalid URL format", "url", url, code="MALFORMED_URL") from None

    if parts.scheme.lower() not in ("http", "https") or not hostname:
        raise ValidationError("Invalid URL format", "url", url, code="MALFORMED_URL")

    return trimmed, hostname, parts.path


def _classify_path(hostname: str, path: str) -> Tuple[UrlType, Optional[str], Optional[str], Optional[str]]:
    """Return (type, pin_id, board_id, username) for a URL path."""
    if _is_short_link(hostname):
        match = SHORT_LINK_PATH_PATTERN.match(path)
        if match:
            return "pin", match.group(1), None, None
        return "unknown", None, None, None

    for pattern in PIN_PATH_PATTERNS:
        match = pattern.match(path)
        if match:
            return "pin", match.group(1), None, None

    match = BOARD_PATH_PATTERN.match(path)
    if match and not is_reserved_path(match.group(2)):
        return "board", None, match.group(2), match.group(1)

    match = USER_PATH_PATTERN.match(path)
    if match and not is_reserved_path(match.group(1)):
        return "user", None, None, match.group(1)

    return "unknown", None, None, None


def validate_url(url: str) -> None:
    """
    Check that ``url`` is a supported Pinterest URL.

    Raises:
        ValidationError: with code ``URL_REQUIRED``, ``MALFORMED_URL``,
            ``INVALID_DOMAIN`` or ``NO_STRUCTURAL_MATCH``.
    """
    _, hostname, path = _split(url)

    if not _is_allowed_domain(hostname):
        raise ValidationError(
            f"Invalid Pinterest domain: {hostname}. Valid domains are: {', '.join(VALID_DOMAINS)}",
            "url",
            url,
            code="INVALID_DOMAIN",
        )

    url_type, *_ = _classify_path(hostname, path)
    if url_type == "unknown":
        raise ValidationError(
            "Invalid Pinterest URL structure. Expected formats: https://pinterest.com/pin/[PIN_ID], "
            "https://pinterest.com/[USER]/[BOARD], https://pinterest.com/[USER] or https://pin.it/[SHORT_CODE]",
            "url",
            url,
            code="NO_STRUCTURAL_MATCH",
        )


def normalize_url(url: str) -> str:
    """Force https, drop a leading ``www.`` and any trailing slash."""
    parts = urlsplit(url.strip())
    hostname = (parts.hostname or "").lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    netloc = f"{hostname}:{parts.port}" if parts.port else hostname

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")
    if not path:
        path = "/"

    return urlunsplit(("https", netloc, path, parts.query, parts.fragment))


def parse_url(url: str) -> ParsedUrl:
    """
    Validate and classify a Pinterest URL.

    Args:
        url: Raw user input

    Returns:
        ParsedUrl with type and identifiers filled in
    """
    validate_url(url)
    trimmed, hostname, path = _split(url)
    url_type, pin_id, board_id, username = _classify_path(hostname, path)

    return ParsedUrl(
        original_url=trimmed,
        normalized_url=normalize_url(trimmed),
        type=url_type,
        domain=hostname,
        pin_id=pin_id,
        board_id=board_id,
        username=username,
    )


def extract_pin_id(url: str) -> Optional[str]:
    """Pin id of ``url`` or None when it is not a valid pin URL."""
    try:
        parsed = parse_url(url)
    except ValidationError:
        return None
    return parsed.pin_id


def is_video_url(url: str) -> bool:
    """Any pin may carry a video; boards and profiles never do."""
    return parse_url(url).type == "pin"


def extract_video_extension(url: str) -> Optional[str]:
    path = urlsplit(url).path.lower()
    for ext in VIDEO_EXTENSIONS:
        if path.endswith(f".{ext}"):
            return ext
    return None


def generate_download_filename(url: str, title: Optional[str] = None, extension: str = "mp4") -> str:
    """``<title | pin id | pinterest_video>_<timestamp>.<extension>``."""
    from pinreel.downloader.file_utils import sanitize_filename, timestamp_suffix

    parsed = parse_url(url)
    base_name = sanitize_filename(title or parsed.pin_id or "") or "pinterest_video"
    return f"{base_name}_{timestamp_suffix()}.{extension}"
