"""
Shared test configuration for PinReel.

Provides pin page fixtures plus configuration pointed at a temporary
download directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest

from pinreel.config import Config
from pinreel.config.config import DownloadConfig
from tests.helpers.pages import initial_state_page, page, pin_state


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


# ============================================================================
# Page fixtures
# ============================================================================


@pytest.fixture
def video_list() -> Dict[str, Any]:
    return {
        "V_720P": {"url": "https://v1.pinimg.com/videos/mc/720p/ab/cd/video.mp4", "width": 720, "height": 1280},
        "V_HLSV4": {"url": "https://v1.pinimg.com/videos/mc/hls/ab/cd/video.m3u8", "width": 360, "height": 640},
        "V_EXP7": {"url": "https://v1.pinimg.com/videos/mc/exp/ab/cd/video.mp4", "width": 1080, "height": 1920},
    }


@pytest.fixture
def initial_state_html(video_list) -> str:
    state = pin_state(
        video_list,
        title="Cat does a backflip",
        description="A cat with a } in its caption",
        duration=75,
        images={"orig": {"url": "https://i.pinimg.com/originals/ab/cd/cat.jpg"}},
        board={"name": "Cats"},
    )
    return initial_state_page(state, title="Cat does a backflip | Pinterest")


@pytest.fixture
def video_element_html() -> str:
    return page('<video src="https://v.pinimg.com/videos/x.mp4"></video>', head="<title>Video pin</title>")


@pytest.fixture
def empty_html() -> str:
    return page("<div>Nothing to see here</div>", head="<title>Pin</title>")


# ============================================================================
# Configuration fixtures
# ============================================================================


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "downloads"
    directory.mkdir()
    return directory


@pytest.fixture
def config(output_dir: Path) -> Config:
    return Config(download=DownloadConfig(output_dir=output_dir))
