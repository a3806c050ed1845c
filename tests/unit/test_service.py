"""
Tests for PinterestService with a stubbed HTTP client and downloader.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from pinreel.config.config import DownloadConfig
from pinreel.crawler.http_client import PageResponse
from pinreel.downloader import partial_path
from pinreel.errors import NetworkError, ParseError, ValidationError
from pinreel.extractor import ExtractorManager
from pinreel.service import PinterestService, validate_quality
from tests.helpers import NORMALIZED_PIN_URL, PIN_URL

FIXED_NOW = datetime(2024, 1, 31, 12, 30, 45, 123000, tzinfo=timezone.utc)


class StubHttpClient:
    def __init__(self, html: str, status: int = 200):
        self.html = html
        self.status = status
        self.fetched: List[str] = []

    async def fetch_page(self, url: str) -> PageResponse:
        self.fetched.append(url)
        now = time.time()
        return PageResponse(
            status=self.status, headers={}, text=self.html, url=url, final_url=url, start_ts=now, end_ts=now
        )


class StubDownloader:
    def __init__(self, payload: bytes = b"video-bytes", delay: float = 0.0):
        self.payload = payload
        self.delay = delay
        self.calls: List[str] = []

    async def download(self, url: str, dest_path: Path, on_progress=None) -> Path:
        self.calls.append(url)
        part = partial_path(dest_path)
        part.write_bytes(self.payload)
        await asyncio.sleep(self.delay)
        part.replace(dest_path)
        return dest_path


def make_service(
    html: str,
    output_dir: Path,
    status: int = 200,
    downloader: Optional[StubDownloader] = None,
    clock=None,
):
    http_client = StubHttpClient(html, status)
    service = PinterestService(
        http_client,  # type: ignore[arg-type]
        ExtractorManager(),
        downloader or StubDownloader(),  # type: ignore[arg-type]
        DownloadConfig(output_dir=output_dir),
        clock=clock,
    )
    return service, http_client


class TestValidateQuality:
    @pytest.mark.parametrize("value, expected", [("high", "high"), ("MEDIUM", "medium"), ("Low", "low")])
    def test_accepts(self, value, expected):
        assert validate_quality(value) == expected

    @pytest.mark.parametrize("value", ["ultra", "", None, 1])
    def test_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_quality(value)

        assert exc_info.value.code == "INVALID_QUALITY"
        assert exc_info.value.field == "quality"


class TestExtractVideoInfo:
    @pytest.mark.asyncio
    async def test_fetches_normalized_url_once(self, video_element_html, output_dir):
        service, http_client = make_service(video_element_html, output_dir)

        info = await service.extract_video_info(PIN_URL)

        assert http_client.fetched == [NORMALIZED_PIN_URL]
        assert info.strategy == "html_video"
        assert info.video_url == "https://v.pinimg.com/videos/x.mp4"

    @pytest.mark.asyncio
    async def test_invalid_url_is_not_fetched(self, video_element_html, output_dir):
        service, http_client = make_service(video_element_html, output_dir)

        with pytest.raises(ValidationError) as exc_info:
            await service.extract_video_info("https://example.com/pin/1")

        assert exc_info.value.code == "INVALID_DOMAIN"
        assert http_client.fetched == []

    @pytest.mark.asyncio
    async def test_client_error_page_still_extracted(self, video_element_html, output_dir):
        service, _ = make_service(video_element_html, output_dir, status=404)

        info = await service.extract_video_info(PIN_URL)

        assert info.strategy == "html_video"

    @pytest.mark.asyncio
    async def test_no_video(self, empty_html, output_dir):
        service, _ = make_service(empty_html, output_dir)

        with pytest.raises(ParseError) as exc_info:
            await service.extract_video_info(PIN_URL)

        assert exc_info.value.code == "EXTRACTION_FAILED"

    @pytest.mark.asyncio
    async def test_network_errors_propagate(self, output_dir):
        service, http_client = make_service("", output_dir)
        http_client.fetch_page = AsyncMock(side_effect=NetworkError("Request timeout after 15.0s", "TIMEOUT"))

        with pytest.raises(NetworkError):
            await service.extract_video_info(PIN_URL)


class TestDownload:
    @pytest.mark.asyncio
    async def test_downloads_into_output_dir(self, initial_state_html, output_dir):
        downloader = StubDownloader()
        service, _ = make_service(initial_state_html, output_dir, downloader=downloader)

        result = await service.download(PIN_URL, "medium")

        assert result.file_path.parent == output_dir
        assert result.file_name.startswith("Cat_does_a_backflip_Pinterest_")
        assert result.file_name.endswith(".mp4")
        assert result.file_size == len(b"video-bytes")
        assert result.quality == "medium"
        assert result.duration == "1:15"
        assert result.cached is False
        assert downloader.calls == ["https://v1.pinimg.com/videos/mc/720p/ab/cd/video.mp4"]

    @pytest.mark.asyncio
    async def test_default_quality_from_settings(self, video_element_html, output_dir):
        service, _ = make_service(video_element_html, output_dir)

        result = await service.download(PIN_URL)

        assert result.quality == "high"

    @pytest.mark.asyncio
    async def test_finished_file_at_target_is_cached(self, video_element_html, output_dir):
        downloader = StubDownloader()
        service, _ = make_service(video_element_html, output_dir, downloader=downloader, clock=lambda: FIXED_NOW)

        first = await service.download(PIN_URL)
        second = await service.download(PIN_URL)

        assert first.file_name == "Video_pin_2024-01-31T12-30-45-123.mp4"
        assert first.cached is False
        assert second.cached is True
        assert second.file_path == first.file_path
        assert len(downloader.calls) == 1

    @pytest.mark.asyncio
    async def test_later_request_downloads_again(self, video_element_html, output_dir):
        moments = iter([FIXED_NOW, FIXED_NOW.replace(microsecond=124000)])
        downloader = StubDownloader()
        service, _ = make_service(video_element_html, output_dir, downloader=downloader, clock=lambda: next(moments))

        first = await service.download(PIN_URL)
        second = await service.download(PIN_URL)

        assert second.cached is False
        assert second.file_path != first.file_path
        assert len(downloader.calls) == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_get_distinct_files(self, video_element_html, output_dir):
        downloader = StubDownloader(delay=0.2)
        service, _ = make_service(video_element_html, output_dir, downloader=downloader, clock=lambda: FIXED_NOW)

        a, b = await asyncio.gather(service.download(PIN_URL), service.download(PIN_URL))

        assert a.file_name != b.file_name
        assert {a.file_name, b.file_name} == {
            "Video_pin_2024-01-31T12-30-45-123.mp4",
            "Video_pin_2024-01-31T12-30-45-123_1.mp4",
        }
        assert a.cached is False
        assert b.cached is False
        assert a.file_path.read_bytes() == b.file_path.read_bytes() == b"video-bytes"
        assert sorted(p.name for p in output_dir.iterdir()) == sorted([a.file_name, b.file_name])

    @pytest.mark.asyncio
    async def test_failed_download_leaves_concurrent_file_intact(self, video_element_html, output_dir):
        class FailingOnce(StubDownloader):
            async def download(self, url, dest_path, on_progress=None):
                if not self.calls:
                    self.calls.append(url)
                    partial_path(dest_path).unlink()
                    raise NetworkError("Network error: reset", "NETWORK_ERROR")
                return await super().download(url, dest_path, on_progress)

        service, _ = make_service(
            video_element_html, output_dir, downloader=FailingOnce(delay=0.2), clock=lambda: FIXED_NOW
        )

        outcomes = await asyncio.gather(service.download(PIN_URL), service.download(PIN_URL), return_exceptions=True)

        results = [outcome for outcome in outcomes if not isinstance(outcome, BaseException)]
        assert len(results) == 1
        assert results[0].file_path.read_bytes() == b"video-bytes"

    @pytest.mark.asyncio
    async def test_other_directory_downloads_again(self, video_element_html, output_dir, tmp_path):
        downloader = StubDownloader()
        service, _ = make_service(video_element_html, output_dir, downloader=downloader)

        await service.download(PIN_URL)
        result = await service.download(PIN_URL, output_dir=tmp_path / "elsewhere")

        assert result.cached is False
        assert len(downloader.calls) == 2

    @pytest.mark.asyncio
    async def test_result_dict(self, video_element_html, output_dir):
        service, _ = make_service(video_element_html, output_dir)

        data = (await service.download(PIN_URL)).to_dict()

        assert data["success"] is True
        assert data["title"] == "Video pin"
        assert data["downloadUrl"] == f"/downloads/{data['fileName']}"
        assert data["fileSize"] == "0.00 MB"

    @pytest.mark.asyncio
    async def test_invalid_quality(self, video_element_html, output_dir):
        service, http_client = make_service(video_element_html, output_dir)

        with pytest.raises(ValidationError):
            await service.download(PIN_URL, "ultra")

        assert http_client.fetched == []


def test_stats(output_dir):
    (output_dir / "a.mp4").write_bytes(b"123")
    service, _ = make_service("", output_dir)

    assert service.stats().total_files == 1
