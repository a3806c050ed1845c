"""
Transfer progress tracking with a rolling speed average.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

MAX_SPEED_SAMPLES = 10


@dataclass
class ProgressInfo:
    """Snapshot of a transfer. ``total`` is None when the size is unknown."""

    transferred: int
    total: Optional[int]
    percent: Optional[int]
    speed: float
    eta: Optional[int]


ProgressCallback = Callable[[ProgressInfo], None]


class ProgressTracker:
    """
    Tracks bytes transferred and notifies callbacks on each update.

    Speed is the mean of the last ten per-update samples. Percent and ETA are
    only reported when the total size is known.
    """

    def __init__(self, total: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._callbacks: List[ProgressCallback] = []
        self.total = total if total and total > 0 else None
        self.reset()

    def add_callback(self, callback: ProgressCallback) -> None:
        self._callbacks.append(callback)

    def remove_callback(self, callback: ProgressCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def reset(self, total: Optional[int] = None) -> None:
        now = self._clock()
        self.start_time = now
        self._last_update = now
        self.transferred = 0
        self._last_transferred = 0
        self._speeds: List[float] = []
        if total is not None:
            self.total = total if total > 0 else None

    def update(self, transferred: int, total: Optional[int] = None) -> ProgressInfo:
        """Record the running byte count and notify callbacks."""
        if total is not None:
            self.total = total if total > 0 else None

        now = self._clock()
        elapsed = now - self._last_update
        if elapsed > 0:
            self._speeds.append((transferred - self._last_transferred) / elapsed)
            if len(self._speeds) > MAX_SPEED_SAMPLES:
                self._speeds.pop(0)

        self.transferred = transferred
        self._last_update = now
        self._last_transferred = transferred

        info = self.current()
        for callback in list(self._callbacks):
            try:
                callback(info)
            except Exception as e:
                logger.warning("Progress callback failed", error=str(e), error_type=type(e).__name__)
        return info

    def complete(self) -> ProgressInfo:
        return self.update(self.total if self.total is not None else self.transferred)

    def current(self) -> ProgressInfo:
        speed = sum(self._speeds) / len(self._speeds) if self._speeds else 0.0

        if self.total is None:
            return ProgressInfo(transferred=self.transferred, total=None, percent=None, speed=speed, eta=None)

        percent = min(100, round(self.transferred * 100 / self.total))
        remaining = self.total - self.transferred
        eta = round(remaining / speed) if speed > 0 and remaining > 0 else 0
        return ProgressInfo(transferred=self.transferred, total=self.total, percent=percent, speed=speed, eta=eta)


def format_bytes(size: float) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    units = ["B", "KB", "MB", "GB", "TB"]
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{size:.1f} {units[index]}"
