"""
Integration tests for the click CLI with the service replaced by a fake.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import pytest
from click.testing import CliRunner

from pinreel import __version__, cli as cli_module
from pinreel.cli import cli
from pinreel.downloader.progress import ProgressInfo
from pinreel.errors import ParseError, ValidationError
from pinreel.extractor.models import QualityMap, VideoCandidate, VideoInfo
from pinreel.service import DownloadResult
from tests.helpers import PIN_URL

VIDEO_URL = "https://v.pinimg.com/videos/x.mp4"


class FakeService:
    def __init__(self) -> None:
        self.error: Optional[BaseException] = None
        self.download_calls = []

    async def download(self, url, quality=None, output_dir=None, on_progress=None):
        self.download_calls.append((url, quality, output_dir))
        if self.error:
            raise self.error
        if on_progress:
            on_progress(ProgressInfo(transferred=512, total=1024, percent=50, speed=512.0, eta=1))
        path = Path(output_dir) / "Cat_video.mp4"
        path.write_bytes(b"v" * 1024)
        return DownloadResult(
            file_path=path,
            file_name=path.name,
            file_size=1024,
            title="Cat video",
            duration="0:42",
            quality=quality or "high",
            video_url=VIDEO_URL,
            cached=False,
            elapsed=0.1,
        )

    async def extract_video_info(self, url, quality="high"):
        if self.error:
            raise self.error
        return VideoInfo(
            title="Cat video",
            video_url=VIDEO_URL,
            quality=QualityMap(high=VIDEO_URL, medium=VIDEO_URL, low=VIDEO_URL),
            strategy="html_video",
            candidates=(VideoCandidate(url=VIDEO_URL),),
            duration="0:42",
            author="Cats",
        )


class FakeContainer:
    def __init__(self, service: FakeService) -> None:
        self.service = service

    @asynccontextmanager
    async def lifecycle(self):
        yield self

    async def get_service(self) -> FakeService:
        return self.service


@pytest.fixture
def service(monkeypatch, tmp_path) -> FakeService:
    fake = FakeService()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "DependencyContainer", lambda config: FakeContainer(fake))
    monkeypatch.setattr(cli_module, "configure_logging", lambda monitoring: None)
    return fake


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_download(runner, service, tmp_path):
    result = runner.invoke(cli, ["download", PIN_URL, "-o", str(tmp_path), "-q", "medium"])

    assert result.exit_code == 0, result.output
    assert "Video downloaded" in result.output
    assert "Cat video" in result.output
    assert service.download_calls == [(PIN_URL, "medium", tmp_path)]
    assert (tmp_path / "Cat_video.mp4").exists()


def test_download_failure_exits_nonzero(runner, service, tmp_path):
    service.error = ValidationError("Invalid Pinterest domain: example.com", "url", "x", code="INVALID_DOMAIN")

    result = runner.invoke(cli, ["download", "https://example.com/pin/1", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "Invalid Pinterest domain" in result.output


def test_download_rejects_unknown_quality(runner, service, tmp_path):
    result = runner.invoke(cli, ["download", PIN_URL, "-q", "ultra"])

    assert result.exit_code == 2
    assert service.download_calls == []


def test_info_json(runner, service):
    result = runner.invoke(cli, ["info", PIN_URL, "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["title"] == "Cat video"
    assert data["videoUrl"] == VIDEO_URL
    assert data["strategy"] == "html_video"


def test_info_table(runner, service):
    result = runner.invoke(cli, ["info", PIN_URL])

    assert result.exit_code == 0, result.output
    assert "Cat video" in result.output
    assert "Board: Cats" in result.output
    assert "Found by: html_video" in result.output


def test_info_failure(runner, service):
    service.error = ParseError("Failed to extract video information: nothing", "EXTRACTION_FAILED")

    result = runner.invoke(cli, ["info", PIN_URL])

    assert result.exit_code == 1
    assert "Failed to extract video information" in result.output


def test_stats(runner, service, tmp_path):
    (tmp_path / "a.mp4").write_bytes(b"x" * 2048)

    result = runner.invoke(cli, ["stats", "-o", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Videos" in result.output
    assert "2.0 KB" in result.output


def test_invalid_config_file(runner, service, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("server:\n  port: not-a-port\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(path), "stats"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_serve_uses_configured_address(runner, service, monkeypatch):
    calls = []
    monkeypatch.setattr("pinreel.web.main.run_web_server", lambda config, host, port: calls.append((host, port)))

    result = runner.invoke(cli, ["serve", "--port", "8099"])

    assert result.exit_code == 0, result.output
    assert calls == [("127.0.0.1", 8099)]


@pytest.mark.parametrize("flag", ["--output", "--output-dir"])
def test_download_long_output_options(runner, service, tmp_path, flag):
    target = tmp_path / "videos"

    result = runner.invoke(cli, ["download", PIN_URL, flag, str(target)])

    assert result.exit_code == 0, result.output
    assert service.download_calls == [(PIN_URL, None, target)]
    assert (target / "Cat_video.mp4").exists()


def test_stats_long_output_option(runner, service, tmp_path):
    (tmp_path / "a.mp4").write_bytes(b"x" * 1024)

    result = runner.invoke(cli, ["stats", "--output", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "1.0 KB" in result.output
