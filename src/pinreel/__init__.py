"""
PinReel - Pinterest video downloader.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .service import DownloadResult, PinterestService

__all__ = ["__version__", "Config", "DependencyContainer", "DownloadResult", "PinterestService"]
