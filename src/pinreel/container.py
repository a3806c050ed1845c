"""
Dependency injection container for PinReel components.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

import structlog

from pinreel.config import Config

if TYPE_CHECKING:
    from pinreel.crawler.http_client import HttpClient
    from pinreel.downloader.video_downloader import VideoDownloader
    from pinreel.extractor.manager import ExtractorManager
    from pinreel.service import PinterestService

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            instance = self._factory(*self._args, **self._kwargs)
            if inspect.isawaitable(instance):
                instance = await instance
            if hasattr(instance, "initialize") and callable(getattr(instance, "initialize", None)):
                await instance.initialize()
            self._instance = instance
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Clean up the instance."""
        if self._instance and hasattr(self._instance, "close") and callable(getattr(self._instance, "close", None)):
            await self._instance.close()  # type: ignore
        self._instance = None
        self._initialized = False


class DependencyContainer:
    """
    Central container owning the HTTP client, extractor, downloader and
    service. Components are created on first use and closed on shutdown.
    """

    def __init__(self, config: Optional[Config] = None, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path
        self.config: Optional[Config] = config
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()
        self._shutdown_handlers: List[Callable[[], Any]] = []

        self.container_id = str(uuid4())
        self.started_at = time.time()
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration (unless given) and register lazy instances."""
        if self.config is None:
            self.load_config()
        await self._create_instances()

        self.is_running = True
        self.logger.info(
            "Dependency container initialized",
            container_id=self.container_id,
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def load_config(self) -> None:
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

    async def _create_instances(self) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")

        await self._cleanup_instances()
        self._instances.clear()

        # Import modules only when needed to avoid circular imports
        from pinreel.crawler.http_client import HttpClient
        from pinreel.extractor.manager import ExtractorManager

        self._instances = {
            "http_client": LazyInstance(HttpClient, self.config.fetch_settings()),
            "extractor_manager": LazyInstance(ExtractorManager, self.config.extraction),
            "downloader": LazyInstance(self._build_downloader),
            "service": LazyInstance(self._build_service),
        }

    async def _build_downloader(self) -> VideoDownloader:
        from pinreel.downloader.video_downloader import VideoDownloader

        assert self.config is not None
        http_client = await self._instances["http_client"].get()
        return VideoDownloader(http_client, self.config.download, chunk_size=self.config.fetch.chunk_size)

    async def _build_service(self) -> PinterestService:
        from pinreel.service import PinterestService

        assert self.config is not None
        return PinterestService(
            await self._instances["http_client"].get(),
            await self._instances["extractor_manager"].get(),
            await self._instances["downloader"].get(),
            self.config.download,
        )

    async def _get(self, name: str) -> Any:
        if not self._instances:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        async with self._instances_lock:
            return await self._instances[name].get()

    async def get_http_client(self) -> HttpClient:
        """Get the HTTP client instance."""
        return await self._get("http_client")  # type: ignore

    async def get_extractor_manager(self) -> ExtractorManager:
        return await self._get("extractor_manager")  # type: ignore

    async def get_downloader(self) -> VideoDownloader:
        return await self._get("downloader")  # type: ignore

    async def get_service(self) -> PinterestService:
        """Get the fully wired PinterestService."""
        return await self._get("service")  # type: ignore

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown of all managed instances."""
        if not self.is_running:
            return

        self.logger.info("Shutting down dependency container", container_id=self.container_id)

        for handler in self._shutdown_handlers:
            try:
                result = handler()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error("Error in shutdown handler", error=str(e))

        await self._cleanup_instances()

        self.is_running = False
        self.logger.info("Dependency container shutdown complete")

    async def _cleanup_instances(self) -> None:
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error(f"Error cleaning up {name}", error=str(e))

    def add_shutdown_handler(self, handler: Callable[[], Any]) -> None:
        self._shutdown_handlers.append(handler)

    def get_health_status(self) -> Dict[str, Any]:
        """Get health status of all managed components."""
        return {
            "container_id": self.container_id,
            "is_running": self.is_running,
            "config_loaded": self.config is not None,
            "uptime": time.time() - self.started_at,
            "instances": {name: instance.initialized for name, instance in self._instances.items()},
            "config_path": str(self.config_path) if self.config_path else None,
        }
