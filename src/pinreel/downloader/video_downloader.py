"""
Streams a video asset to disk.

Bytes are streamed into a ``.part`` sibling that replaces the destination
only after a fully successful transfer. Any failure, cancellation included,
removes the partial file before the error propagates.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Optional

import aiofiles
import structlog

from pinreel.config.config import DownloadConfig
from pinreel.crawler.http_client import HttpClient
from pinreel.errors import DownloadError, FileError, PinReelError
from pinreel.observability.metrics import METRICS, increment

from .file_utils import partial_path
from .progress import ProgressCallback, ProgressTracker

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def to_file_error(exc: OSError, path: Path, operation: str) -> FileError:
    """Translate an OS error into a ``FileError`` with a specific code."""
    if exc.errno in (errno.EACCES, errno.EPERM):
        return FileError(f"Permission denied: {path}", str(path), operation, code="PERMISSION_DENIED")
    if exc.errno == errno.ENOSPC:
        return FileError(f"No space left on device: {path}", str(path), operation, code="DISK_FULL")
    return FileError(f"Failed to {operation} file: {path} ({exc})", str(path), operation)


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove partial download", path=str(path), error=str(e))


class VideoDownloader:
    """Downloads video streams from the HTTP client into local files."""

    def __init__(
        self,
        http_client: HttpClient,
        settings: Optional[DownloadConfig] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.http_client = http_client
        self.settings = settings or DownloadConfig()
        self.chunk_size = chunk_size
        self.logger = logger.bind(component="VideoDownloader")

    def _too_large(self, size: int, url: str) -> DownloadError:
        limit = self.settings.max_file_size
        return DownloadError(
            f"File size ({size} bytes) exceeds maximum allowed size ({limit} bytes)",
            "FILE_TOO_LARGE",
            {"url": url, "size": size, "max_file_size": limit},
        )

    async def download(
        self,
        url: str,
        dest_path: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Stream ``url`` into ``dest_path``.

        Args:
            url: Video asset URL
            dest_path: File to create; parent directories are created
            on_progress: Called with a ProgressInfo after every chunk

        Returns:
            The written path

        Raises:
            DownloadError: ``HTTP_<status>`` for non-2xx responses,
                ``FILE_TOO_LARGE`` past the size limit, ``DOWNLOAD_FAILED``
                for other stream failures.
            NetworkError: transport failures from the HTTP client.
            FileError: the file could not be created or written.
        """
        dest_path = Path(dest_path)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise to_file_error(e, dest_path.parent, "create") from e

        part_path = partial_path(dest_path)
        self.logger.info("Starting download", url=url, dest=str(dest_path))
        METRICS["downloads_in_flight"].inc()
        written = 0
        completed = False

        try:
            async with self.http_client.stream(url) as stream:
                if not 200 <= stream.status < 300:
                    raise DownloadError(
                        f"HTTP {stream.status} error", f"HTTP_{stream.status}", {"url": url, "status": stream.status}
                    )

                total = stream.content_length
                if total is not None and total > self.settings.max_file_size:
                    raise self._too_large(total, url)

                tracker = ProgressTracker(total)
                if on_progress is not None:
                    tracker.add_callback(on_progress)

                async with aiofiles.open(part_path, "wb") as f:
                    async for chunk in stream.iter_chunks(self.chunk_size):
                        written += len(chunk)
                        if written > self.settings.max_file_size:
                            raise self._too_large(written, url)
                        await f.write(chunk)
                        tracker.update(written)

                os.replace(part_path, dest_path)
                tracker.complete()
            completed = True
        except PinReelError as e:
            self.logger.warning("Download failed", url=url, code=e.code, error=e.message)
            raise
        except OSError as e:
            self.logger.warning("Download write failed", url=url, path=str(dest_path), error=str(e))
            raise to_file_error(e, dest_path, "write") from e
        except Exception as e:
            self.logger.warning("Download stream failed", url=url, error=str(e), error_type=type(e).__name__)
            raise DownloadError(f"Download failed: {e}", "DOWNLOAD_FAILED", {"url": url}) from e
        finally:
            METRICS["downloads_in_flight"].dec()
            if not completed:
                _remove_partial(part_path)
                increment("downloads", labels={"outcome": "failure"})

        increment("downloads", labels={"outcome": "success"})
        increment("download_bytes", written)
        self.logger.info("Download completed", url=url, dest=str(dest_path), bytes=written)
        return dest_path
