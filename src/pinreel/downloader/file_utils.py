"""
Filesystem helpers for downloaded videos.

Converts titles to safe filenames, picks collision-free names in the output
directory and summarises what has been downloaded so far.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

# Characters that are invalid in filenames on at least one common platform
INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*]')

WHITESPACE_PATTERN = re.compile(r"\s+")

MULTIPLE_UNDERSCORES_PATTERN = re.compile(r"__+")

# Windows reserved filenames
WINDOWS_RESERVED_NAMES = (
    {"CON", "PRN", "AUX", "NUL"} | {f"COM{i}" for i in range(1, 10)} | {f"LPT{i}" for i in range(1, 10)}
)

MAX_FILENAME_LENGTH = 100

# Extensions counted as downloaded videos
VIDEO_FILE_EXTENSIONS = frozenset({"mp4", "avi", "mov", "wmv", "flv", "webm", "mkv", "m4v"})

DEFAULT_EXTENSION = "mp4"

PARTIAL_SUFFIX = ".part"


def sanitize_filename(filename: str) -> str:
    """
    Make a title safe to use as a filename stem.

    Removes invalid characters, turns whitespace runs into ``_``, collapses
    repeated underscores, trims them from both ends and caps the length.

    Examples:
        >>> sanitize_filename('My "Best" Video: Part 1')
        'My_Best_Video_Part_1'

        >>> sanitize_filename("  __a  b__  ")
        'a_b'

        >>> sanitize_filename("CON")
        'CON_reserved'
    """
    if not filename:
        return ""

    result = INVALID_CHARS_PATTERN.sub("", filename)
    result = WHITESPACE_PATTERN.sub("_", result)
    result = MULTIPLE_UNDERSCORES_PATTERN.sub("_", result)
    result = result.strip("_")

    if result.upper() in WINDOWS_RESERVED_NAMES:
        result = f"{result}_reserved"

    return result[:MAX_FILENAME_LENGTH]


def timestamp_suffix(now: Optional[datetime] = None) -> str:
    """UTC timestamp with milliseconds usable in a filename, e.g. ``2024-01-31T12-30-45-123``."""
    moment = now or datetime.now(timezone.utc)
    return f"{moment.strftime('%Y-%m-%dT%H-%M-%S')}-{moment.microsecond // 1000:03d}"


def build_filename(base_name: str, extension: str, now: Optional[datetime] = None, counter: int = 0) -> str:
    """``<base>_<timestamp>[_<counter>].<ext>`` with a sanitized base."""
    stem = sanitize_filename(base_name) or "pinterest_video"
    suffix = f"_{counter}" if counter else ""
    return f"{stem}_{timestamp_suffix(now)}{suffix}.{extension}"


def partial_path(path: Path) -> Path:
    """Sibling path a download is streamed into before it is moved into place."""
    path = Path(path)
    return path.with_name(f"{path.name}{PARTIAL_SUFFIX}")


def generate_unique_filename(base_name: str, extension: str, directory: Path, now: Optional[datetime] = None) -> str:
    """
    Pick ``<base>_<timestamp>.<ext>`` that does not exist in ``directory``.

    A counter is appended when the name is taken.
    """
    counter = 0
    filename = build_filename(base_name, extension, now)
    while (Path(directory) / filename).exists():
        counter += 1
        filename = build_filename(base_name, extension, now, counter)

    return filename


def claim_unique_path(base_name: str, extension: str, directory: Path, now: Optional[datetime] = None) -> Path:
    """
    Reserve a free download path in ``directory``.

    The name is claimed by creating its ``.part`` file with ``O_EXCL``, so
    concurrent callers never receive the same path. Names whose final file
    or partial file already exist are skipped.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    counter = 0
    while True:
        path = directory / build_filename(base_name, extension, now, counter)
        counter += 1
        if path.exists():
            continue
        try:
            fd = os.open(partial_path(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            continue
        os.close(fd)
        return path


def extension_from_url(url: str) -> str:
    """Video extension of the URL path, defaulting to mp4."""
    suffix = Path(urlsplit(url).path).suffix.lower().lstrip(".")
    return suffix if suffix in VIDEO_FILE_EXTENSIONS else DEFAULT_EXTENSION


def is_valid_video_file(path: str | Path) -> bool:
    return Path(path).suffix.lower().lstrip(".") in VIDEO_FILE_EXTENSIONS


def format_size_mb(size: int) -> str:
    return f"{size / (1024 * 1024):.2f} MB"


@dataclass
class DirectoryStats:
    """Summary of downloaded videos in the output directory."""

    total_files: int
    total_size: int
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "totalFiles": self.total_files,
            "totalSize": format_size_mb(self.total_size),
            "lastUpdated": self.last_updated.isoformat(),
        }


def directory_stats(directory: Path) -> DirectoryStats:
    """Count video files directly inside ``directory`` and sum their sizes."""
    now = datetime.now(timezone.utc)
    directory = Path(directory)
    if not directory.is_dir():
        return DirectoryStats(total_files=0, total_size=0, last_updated=now)

    files = [entry for entry in directory.iterdir() if entry.is_file() and is_valid_video_file(entry)]
    return DirectoryStats(
        total_files=len(files),
        total_size=sum(entry.stat().st_size for entry in files),
        last_updated=now,
    )
