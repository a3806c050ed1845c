"""
Configuration management for PinReel using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from pinreel.crawler.http_client import FetchSettings

log = logging.getLogger(__name__)

QualityOption = Literal["high", "medium", "low"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

KNOWN_STRATEGIES = (
    "initial_state",
    "pws_data",
    "script_tags",
    "html_video",
    "pattern_matching",
    "fallback",
)

# --- Nested Configuration Models ---


class FetchConfig(BaseModel):
    """Outbound HTTP configuration."""

    timeout: float = Field(default=15.0, gt=0, description="Page fetch timeout in seconds.")
    max_redirects: int = Field(default=5, ge=0, description="Maximum redirects followed for page fetches.")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="Browser User-Agent presented to Pinterest.")
    accept_language: str = Field(default="en-US,en;q=0.9", description="Accept-Language header value.")
    download_timeout: Optional[float] = Field(
        default=None, description="Total timeout for video streams in seconds. None means unbounded."
    )
    download_max_redirects: int = Field(default=10, ge=0, description="Maximum redirects for video streams.")
    chunk_size: int = Field(default=64 * 1024, gt=0, description="Read size for streamed downloads.")


class DownloadConfig(BaseModel):
    """Where and how videos are saved."""

    output_dir: Path = Field(default=Path("./downloads"), description="Directory downloaded videos are written to.")
    default_quality: QualityOption = Field(default="high", description="Quality used when none is requested.")
    max_file_size: int = Field(default=1024 * 1024 * 1024, gt=0, description="Largest accepted video in bytes.")

    @field_validator("default_quality", mode="before")
    @classmethod
    def lower_quality(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class ExtractionSettings(BaseModel):
    """Configuration for the extraction strategy chain."""

    strategy_order: List[str] = Field(
        default_factory=lambda: list(KNOWN_STRATEGIES), description="Order of strategies tried against a page."
    )

    @field_validator("strategy_order")
    @classmethod
    def validate_strategy_order(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("strategy_order must contain at least one strategy")
        unknown = [name for name in v if name not in KNOWN_STRATEGIES]
        if unknown:
            raise ValueError(f"Unknown strategies {unknown}. Available strategies: {list(KNOWN_STRATEGIES)}")
        return v


class ServerConfig(BaseModel):
    """Configuration for the HTTP API."""

    host: str = Field(default="127.0.0.1", description="Host for the web server.")
    port: int = Field(default=3001, ge=1, le=65535, description="Port for the web server.")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3002"], description="Origins allowed by CORS."
    )


class MonitoringConfig(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(default=None, description="Path to log file. If None, logs to console.")
    json_logs: bool = Field(default=False, description="Render console logs as JSON.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "PinReel"
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="PINREEL_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)

    def fetch_settings(self) -> FetchSettings:
        """Build the immutable settings value handed to the HTTP client."""
        from pinreel.crawler.headers import browser_headers
        from pinreel.crawler.http_client import FetchSettings

        return FetchSettings(
            timeout=self.fetch.timeout,
            max_redirects=self.fetch.max_redirects,
            user_agent=self.fetch.user_agent,
            headers=browser_headers(self.fetch.user_agent, accept_language=self.fetch.accept_language),
            download_timeout=self.fetch.download_timeout,
            download_max_redirects=self.fetch.download_max_redirects,
        )


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "pinreel.yaml", current_dir / "pinreel.yml", current_dir / "config.yaml"):
        if path.exists():
            return path
    return None


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from ``path``, a discovered file, or defaults."""
    config_path = path or find_config_file()
    if config_path:
        return Config.from_yaml(config_path)
    return Config()
