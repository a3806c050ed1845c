"""
HTTP client for Pinterest pages and video assets.

Pages are fetched whole with a browser header profile; videos are exposed as
chunk streams so they never sit in memory. Transport failures surface as
``NetworkError`` with a stable code.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Mapping, Optional

import aiohttp
import structlog

from pinreel.config.config import DEFAULT_USER_AGENT
from pinreel.crawler.headers import browser_headers, page_headers, video_headers
from pinreel.errors import NetworkError
from pinreel.observability.metrics import increment, observe

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FetchSettings:
    """Immutable transport settings shared by every request."""

    timeout: float = 15.0
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    headers: Mapping[str, str] = field(default_factory=lambda: browser_headers(DEFAULT_USER_AGENT))
    download_timeout: Optional[float] = None
    download_max_redirects: int = 10


@dataclass
class PageResponse:
    """A fetched page with timing information."""

    status: int
    headers: Dict[str, str]
    text: str
    url: str
    final_url: str
    start_ts: float
    end_ts: float

    @property
    def elapsed(self) -> float:
        return self.end_ts - self.start_ts


def to_network_error(exc: BaseException, url: str, timeout: Optional[float] = None) -> NetworkError:
    """Translate an aiohttp/asyncio failure into a ``NetworkError``."""
    # aiohttp.ServerTimeoutError is also an asyncio.TimeoutError.
    if isinstance(exc, asyncio.TimeoutError):
        return NetworkError(f"Request timeout after {timeout}s", "TIMEOUT", {"url": url, "timeout": timeout})
    if isinstance(exc, aiohttp.TooManyRedirects):
        return NetworkError(
            "Too many redirects",
            "TOO_MANY_REDIRECTS",
            {"url": url, "redirects": len(exc.history)},
        )
    return NetworkError(f"Network error: {exc}", "NETWORK_ERROR", {"url": url, "reason": type(exc).__name__})


def _status_error(status: int, url: str) -> NetworkError:
    return NetworkError(f"HTTP {status} error", f"HTTP_{status}", {"url": url, "status": status})


class VideoStream:
    """An open video response, read incrementally."""

    def __init__(self, response: aiohttp.ClientResponse, url: str, timeout: Optional[float] = None):
        self._response = response
        self.url = url
        self.timeout = timeout
        self.status = response.status
        self.headers: Dict[str, str] = dict(response.headers)
        self.content_length: Optional[int] = response.content_length

    async def iter_chunks(self, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise to_network_error(exc, self.url, self.timeout) from exc


class HttpClient:
    """aiohttp-backed client for pin pages and video streams."""

    def __init__(self, settings: Optional[FetchSettings] = None):
        self.settings = settings or FetchSettings()
        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False

        self._pages_fetched = 0
        self._streams_opened = 0
        self._failures = 0
        self._in_flight_requests = 0

        logger.info(
            "HTTP client created",
            timeout=self.settings.timeout,
            max_redirects=self.settings.max_redirects,
            user_agent=self.settings.user_agent,
        )

    async def initialize(self) -> None:
        """Open the underlying session."""
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=20, ttl_dns_cache=30, keepalive_timeout=30)
            self.session = aiohttp.ClientSession(connector=connector)
            self._is_initialized = True
            logger.info("HTTP client session initialized")

    async def close(self) -> None:
        """Close the session and its connector."""
        if self.session:
            await self.session.close()
            self.session = None
        self._is_initialized = False
        logger.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _require_session(self) -> aiohttp.ClientSession:
        if not self._is_initialized or self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")
        return self.session

    async def fetch_page(self, url: str) -> PageResponse:
        """
        Fetch a pin page.

        Statuses below 500 are returned for the caller to inspect.

        Args:
            url: Page URL

        Returns:
            PageResponse with decoded body and timing info

        Raises:
            NetworkError: ``HTTP_<status>`` for 5xx, ``TIMEOUT``,
                ``TOO_MANY_REDIRECTS`` or ``NETWORK_ERROR``.
        """
        session = self._require_session()
        start_time = time.time()
        self._in_flight_requests += 1

        try:
            async with session.get(
                url,
                headers=page_headers(self.settings.headers),
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout),
                max_redirects=self.settings.max_redirects,
            ) as response:
                body = await response.text(errors="replace")
                status = response.status
                headers = dict(response.headers)
                final_url = str(response.url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._failures += 1
            error = to_network_error(exc, url, self.settings.timeout)
            logger.warning("Page fetch failed", url=url, code=error.code, error=str(exc))
            raise error from exc
        finally:
            self._in_flight_requests -= 1

        end_time = time.time()
        increment("fetch_responses", labels={"status_class": f"{status // 100}xx"})
        observe("page_fetch_seconds", end_time - start_time)

        if status >= 500:
            self._failures += 1
            logger.warning("Page fetch returned server error", url=url, status=status)
            raise _status_error(status, url)

        self._pages_fetched += 1
        logger.debug("Page fetched", url=url, status=status, bytes=len(body), elapsed=round(end_time - start_time, 3))

        return PageResponse(
            status=status,
            headers=headers,
            text=body,
            url=url,
            final_url=final_url,
            start_ts=start_time,
            end_ts=end_time,
        )

    @asynccontextmanager
    async def stream(self, url: str) -> AsyncIterator[VideoStream]:
        """
        Open a video asset for incremental reading.

        Uses the download timeout (unbounded by default) and redirect limit.
        The response is released when the context exits.
        """
        session = self._require_session()
        timeout = aiohttp.ClientTimeout(total=self.settings.download_timeout, sock_connect=self.settings.timeout)

        self._in_flight_requests += 1
        try:
            async with session.get(
                url,
                headers=video_headers(self.settings.headers),
                timeout=timeout,
                max_redirects=self.settings.download_max_redirects,
            ) as response:
                increment("fetch_responses", labels={"status_class": f"{response.status // 100}xx"})
                if response.status >= 500:
                    self._failures += 1
                    raise _status_error(response.status, url)

                self._streams_opened += 1
                yield VideoStream(response, url, self.settings.download_timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._failures += 1
            error = to_network_error(exc, url, self.settings.download_timeout)
            logger.warning("Video request failed", url=url, code=error.code, error=str(exc))
            raise error from exc
        finally:
            self._in_flight_requests -= 1

    def get_stats(self) -> Dict[str, Any]:
        """Get current client statistics."""
        return {
            "initialized": self._is_initialized,
            "pages_fetched": self._pages_fetched,
            "streams_opened": self._streams_opened,
            "failures": self._failures,
            "in_flight_requests": self._in_flight_requests,
        }
