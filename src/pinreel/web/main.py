"""
FastAPI application for PinReel: JSON API, downloaded files and a small
HTML form page.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, Optional
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from pinreel import __version__
from pinreel.config import Config, load_config
from pinreel.container import DependencyContainer
from pinreel.downloader.file_utils import directory_stats
from pinreel.errors import FileError, PinReelError, http_status_for
from pinreel.service import PinterestService

logger = structlog.get_logger(__name__)

# Path to the HTML template
HTML_TEMPLATE_PATH = Path(__file__).parent / "templates" / "index.html"

ERROR_MESSAGES = {
    404: "Video not found. Make sure this is a Pinterest video URL.",
    408: "Request timed out. Please try again.",
    503: "Network error. Check your internet connection.",
}


class DownloadRequest(BaseModel):
    url: Optional[str] = None
    quality: str = "high"


class InfoRequest(BaseModel):
    url: Optional[str] = None


def error_response(error: BaseException) -> JSONResponse:
    """Render an error as ``{error, details}`` with the mapped status code."""
    status_code = http_status_for(error)
    details = error.message if isinstance(error, PinReelError) else str(error)

    if status_code == 400:
        message = details
    elif status_code in ERROR_MESSAGES:
        message = ERROR_MESSAGES[status_code]
    elif isinstance(error, FileError):
        message = "File access error. Check permissions."
    else:
        message = "Internal server error"

    return JSONResponse(status_code=status_code, content={"error": message, "details": details})


def url_required() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Video URL is required"})


def create_app(
    config: Optional[Config] = None,
    *,
    container: Optional[DependencyContainer] = None,
    service: Optional[PinterestService] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Configuration (defaults to the discovered config file)
        container: Container to draw components from
        service: Pre-built service, used instead of the container's

    Returns:
        Configured FastAPI app
    """
    config = config or load_config()
    container = container or DependencyContainer(config)
    output_dir = Path(config.download.output_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Starting PinReel API", output_dir=str(output_dir), version=__version__)
        yield
        logger.info("Shutting down PinReel API")
        await container.shutdown()

    app = FastAPI(title="PinReel", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.container = container
    app.state.service = service
    app.state.start_time = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    async def get_service() -> PinterestService:
        if app.state.service is None:
            if not container.is_running:
                await container.initialize()
            app.state.service = await container.get_service()
        return app.state.service

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        """Serves the download form page."""
        return HTML_TEMPLATE_PATH.read_text(encoding="utf-8")

    @app.post("/api/download")
    async def download_video(body: DownloadRequest) -> Any:
        if not body.url:
            return url_required()

        logger.info("Download requested", url=body.url, quality=body.quality)
        try:
            service = await get_service()
            result = await service.download(body.url, body.quality, output_dir=output_dir)
        except PinReelError as e:
            logger.warning("Download request failed", url=body.url, code=e.code, error=e.message)
            return error_response(e)
        except Exception as e:
            logger.exception("Unexpected download failure", url=body.url)
            return error_response(e)

        logger.info("Download served", file_name=result.file_name, size=result.file_size, cached=result.cached)
        return result.to_dict()

    @app.post("/api/info")
    async def video_info(body: InfoRequest) -> Any:
        if not body.url:
            return url_required()

        try:
            service = await get_service()
            info = await service.extract_video_info(body.url)
        except PinReelError as e:
            logger.warning("Info request failed", url=body.url, code=e.code, error=e.message)
            return error_response(e)
        except Exception as e:
            logger.exception("Unexpected info failure", url=body.url)
            return error_response(e)

        return {
            "success": True,
            "title": info.title,
            "duration": info.duration,
            "thumbnail": info.thumbnail,
            "formats": info.formats(),
        }

    @app.get("/api/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint for Kubernetes/Docker."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": time.time() - app.state.start_time,
            "version": __version__,
        }

    @app.get("/api/stats")
    async def download_stats() -> Any:
        loop = asyncio.get_running_loop()
        try:
            stats = await loop.run_in_executor(None, directory_stats, output_dir)
        except OSError as e:
            logger.error("Failed to read download stats", error=str(e))
            return JSONResponse(status_code=500, content={"error": "Failed to read download statistics"})
        return stats.to_dict()

    @app.get("/metrics")
    async def get_prometheus_metrics() -> Response:
        """Endpoint for Prometheus to scrape."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.mount("/downloads", StaticFiles(directory=str(output_dir), check_dir=False), name="downloads")

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Endpoint not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next: Callable) -> Any:
        """Add timing and request id headers and log the request."""
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                response_time_ms=round(process_time * 1000, 2),
                client=request.client.host if request.client else None,
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

    return app


def run_web_server(config: Optional[Config] = None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Function to run the FastAPI server."""
    import uvicorn

    config = config or load_config()
    host = host or config.server.host
    port = port or config.server.port

    logger.info("Starting PinReel web server", url=f"http://{host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)
