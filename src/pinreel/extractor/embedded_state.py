"""
Strategies reading the JSON state Pinterest embeds in its pages.

``window.__INITIAL_STATE__`` holds a ``PinResource`` with the video variants
of the pin. ``__PWS_DATA__`` is located and parsed the same way, but its
video layout is not walked.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog
from selectolax.parser import HTMLParser

from .models import DEFAULT_TITLE, ExtractionResult, VideoCandidate
from .page_metadata import extract_title, parse_html, script_texts

logger = structlog.get_logger(__name__)


def capture_assigned_object(text: str, marker: str) -> str | None:
    """
    Return the ``{...}`` literal assigned to ``marker`` in ``text``.

    Braces are balanced while skipping over JSON string contents, so a ``}``
    inside a string does not end the object early.
    """
    index = text.find(marker)
    while index != -1:
        pos = index + len(marker)
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos < len(text) and text[pos] == "=":
            pos += 1
            while pos < len(text) and text[pos].isspace():
                pos += 1
            if pos < len(text) and text[pos] == "{":
                return _balanced_object(text, pos)
        index = text.find(marker, index + len(marker))
    return None


def _balanced_object(text: str, start: int) -> str | None:
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        char = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : pos + 1]
    return None


def format_duration(seconds: float) -> str:
    """``m:ss`` for a duration in seconds."""
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


@dataclass
class PinVideoData:
    """Video fields pulled out of a ``PinResource`` entry."""

    candidates: list[VideoCandidate] = field(default_factory=list)
    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    duration: str | None = None
    author: str | None = None


def walk_pin_resource(state: Any) -> PinVideoData:
    """
    Walk ``resources.PinResource.<first>.data`` of an embedded state object.

    All knowledge of Pinterest's state layout is kept here. Missing or
    oddly-typed levels yield an empty result rather than an error.
    """
    pins = _as_dict(_as_dict(_as_dict(state).get("resources")).get("PinResource"))
    if not pins:
        return PinVideoData()

    pin_data = _as_dict(_as_dict(next(iter(pins.values()))).get("data"))
    if not pin_data:
        return PinVideoData()

    video_list = _as_dict(_as_dict(pin_data.get("videos")).get("video_list"))
    entries = [entry for entry in video_list.values() if isinstance(entry, dict) and _as_str(entry.get("url"))]
    candidates = [
        VideoCandidate(url=entry["url"], width=_as_int(entry.get("width")), height=_as_int(entry.get("height")))
        for entry in entries
    ]

    duration: str | None = None
    seconds = pin_data.get("duration")
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool) and seconds > 0:
        duration = format_duration(seconds)
    elif entries:
        millis = entries[0].get("duration")
        if isinstance(millis, (int, float)) and not isinstance(millis, bool) and millis > 0:
            duration = format_duration(millis / 1000)

    thumbnail = _as_str(_as_dict(_as_dict(pin_data.get("images")).get("orig")).get("url"))
    author = _as_str(_as_dict(pin_data.get("board")).get("name"))
    title = _as_str(pin_data.get("title"))
    description = _as_str(pin_data.get("description"))

    return PinVideoData(
        candidates=candidates,
        title=title or description,
        description=description,
        thumbnail=thumbnail,
        duration=duration,
        author=author,
    )


def _find_script(tree: HTMLParser, marker: str) -> str | None:
    for body in script_texts(tree):
        if marker in body:
            return body
    return None


class InitialStateStrategy:
    """Reads video variants from ``window.__INITIAL_STATE__``."""

    name = "initial_state"
    marker = "__INITIAL_STATE__"

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        tree = parse_html(html)
        script = _find_script(tree, self.marker)
        if script is None:
            return ExtractionResult.failure(self.name, f"{self.marker} not found")

        literal = capture_assigned_object(script, f"window.{self.marker}")
        if literal is None:
            return ExtractionResult.failure(self.name, f"Invalid {self.marker} format")

        try:
            state = json.loads(literal)
        except json.JSONDecodeError as e:
            return ExtractionResult.failure(self.name, f"Failed to parse {self.marker}: {e}")

        video = walk_pin_resource(state)
        if not video.candidates:
            return ExtractionResult.failure(self.name, "No video data found")

        title = extract_title(tree)
        if title == DEFAULT_TITLE and video.title:
            title = video.title[:100]

        return ExtractionResult(
            strategy=self.name,
            success=True,
            candidates=tuple(video.candidates),
            title=title,
            thumbnail=video.thumbnail,
            description=video.description,
            duration=video.duration,
            author=video.author,
        )


class PwsDataStrategy:
    """Locates and parses ``__PWS_DATA__``; its video layout is not walked."""

    name = "pws_data"
    marker = "__PWS_DATA__"

    def _locate(self, tree: HTMLParser) -> str | None:
        node = tree.css_first(f"script#{self.marker}")
        if node is not None:
            body = (node.text(deep=True) or "").strip()
            if body.startswith("{"):
                return body

        script = _find_script(tree, self.marker)
        if script is None:
            return None
        return capture_assigned_object(script, f"window.{self.marker}")

    def extract(self, html: str, *, url: str) -> ExtractionResult:
        tree = parse_html(html)
        if tree.css_first(f"script#{self.marker}") is None and _find_script(tree, self.marker) is None:
            return ExtractionResult.failure(self.name, f"{self.marker} not found")

        literal = self._locate(tree)
        if literal is None:
            return ExtractionResult.failure(self.name, f"Invalid {self.marker} format")

        try:
            json.loads(literal)
        except json.JSONDecodeError as e:
            return ExtractionResult.failure(self.name, f"Failed to parse {self.marker}: {e}")

        logger.debug("__PWS_DATA__ present but not walked", url=url)
        return ExtractionResult.failure(self.name, f"{self.marker} video walk not implemented")
