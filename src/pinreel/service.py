"""
PinterestService: pin URL in, video info or a downloaded file out.

Fetches the pin page once, runs the extraction chain on it in a worker
thread, and streams the chosen quality to the output directory.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog

from pinreel.config.config import DownloadConfig
from pinreel.crawler.http_client import HttpClient
from pinreel.downloader.file_utils import (
    DirectoryStats,
    build_filename,
    claim_unique_path,
    directory_stats,
    extension_from_url,
    format_size_mb,
)
from pinreel.downloader.progress import ProgressCallback
from pinreel.downloader.video_downloader import VideoDownloader, to_file_error
from pinreel.errors import ValidationError
from pinreel.extractor.manager import ExtractorManager
from pinreel.extractor.models import VideoInfo
from pinreel.urls import parse_url

logger = structlog.get_logger(__name__)

VALID_QUALITIES = ("high", "medium", "low")


def validate_quality(quality: Any) -> str:
    """Lower-cased quality tier, or ``ValidationError`` (``INVALID_QUALITY``)."""
    if isinstance(quality, str) and quality.lower() in VALID_QUALITIES:
        return quality.lower()
    raise ValidationError(
        f"Invalid quality option. Valid options are: {', '.join(VALID_QUALITIES)}",
        "quality",
        quality,
        code="INVALID_QUALITY",
    )


@dataclass
class DownloadResult:
    """Outcome of a completed download."""

    file_path: Path
    file_name: str
    file_size: int
    title: str
    duration: Optional[str]
    quality: str
    video_url: str
    cached: bool
    elapsed: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "title": self.title,
            "duration": self.duration,
            "quality": self.quality,
            "fileName": self.file_name,
            "fileSize": format_size_mb(self.file_size),
            "downloadUrl": f"/downloads/{self.file_name}",
            "cached": self.cached,
        }


class PinterestService:
    """Coordinates page fetch, extraction and download for a pin URL."""

    def __init__(
        self,
        http_client: HttpClient,
        extractor_manager: ExtractorManager,
        downloader: VideoDownloader,
        settings: Optional[DownloadConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.http_client = http_client
        self.extractor_manager = extractor_manager
        self.downloader = downloader
        self.settings = settings or DownloadConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="PinterestService")

    async def extract_video_info(self, url: str, quality: str = "high") -> VideoInfo:
        """
        Fetch a pin page and extract its video.

        Args:
            url: Pin URL
            quality: Quality tier used to pick ``VideoInfo.video_url``

        Returns:
            VideoInfo for the pin

        Raises:
            ValidationError: bad URL or quality.
            NetworkError: the page could not be fetched.
            ParseError: ``EXTRACTION_FAILED`` when no strategy found a video.
        """
        quality = validate_quality(quality)
        parsed = parse_url(url)

        page = await self.http_client.fetch_page(parsed.normalized_url)
        if page.status >= 400:
            self.logger.warning(
                "Pin page returned client error, extracting anyway", url=parsed.normalized_url, status=page.status
            )

        loop = asyncio.get_running_loop()
        info = await loop.run_in_executor(
            None, self.extractor_manager.extract_video_info, page.text, parsed.normalized_url, quality
        )
        self.logger.info("Video info extracted", url=parsed.normalized_url, strategy=info.strategy, title=info.title)
        return info

    async def download(
        self,
        url: str,
        quality: Optional[str] = None,
        output_dir: Optional[Path] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DownloadResult:
        """
        Extract and download a pin's video.

        Every request streams into its own freshly claimed path, so concurrent
        requests for the same pin never share a file. ``cached`` is reported
        only when the path derived for this moment already holds a finished
        download.
        """
        start_time = time.monotonic()
        quality = validate_quality(quality or self.settings.default_quality)
        info = await self.extract_video_info(url, quality)
        directory = Path(output_dir) if output_dir is not None else Path(self.settings.output_dir)
        extension = extension_from_url(info.video_url)
        now = self.clock()

        target = directory / build_filename(info.title, extension, now)
        if target.is_file():
            self.logger.info("Video already downloaded", url=url, path=str(target))
            return self._result(target, info, quality, cached=True, start_time=start_time)

        try:
            dest_path = claim_unique_path(info.title, extension, directory, now)
        except OSError as e:
            raise to_file_error(e, directory, "create") from e

        path = await self.downloader.download(info.video_url, dest_path, on_progress)
        return self._result(path, info, quality, cached=False, start_time=start_time)

    def _result(self, path: Path, info: VideoInfo, quality: str, *, cached: bool, start_time: float) -> DownloadResult:
        return DownloadResult(
            file_path=path,
            file_name=path.name,
            file_size=path.stat().st_size,
            title=info.title,
            duration=info.duration,
            quality=quality,
            video_url=info.video_url,
            cached=cached,
            elapsed=time.monotonic() - start_time,
        )

    def stats(self, output_dir: Optional[Path] = None) -> DirectoryStats:
        return directory_stats(Path(output_dir) if output_dir is not None else Path(self.settings.output_dir))
