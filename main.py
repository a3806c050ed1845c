#!/usr/bin/env python3
"""
Production entry point for PinReel.

``python main.py`` serves the HTTP API; ``python main.py health`` prints a
JSON health report and exits 0 when healthy, 1 otherwise.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
import time
from pathlib import Path

import structlog

from pinreel.config import Config
from pinreel.container import DependencyContainer
from pinreel.observability import configure_logging

logger = structlog.get_logger(__name__)


def load_production_config() -> Config:
    """Load configuration from PINREEL_CONFIG, or environment and defaults."""
    config_path = os.getenv("PINREEL_CONFIG")
    if config_path:
        return Config.from_yaml(Path(config_path))
    return Config()


async def health_check() -> dict:
    """Perform health check for container orchestration."""
    try:
        config = load_production_config()
        async with DependencyContainer(config).lifecycle() as container:
            await container.get_service()
            output_dir = Path(config.download.output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
            return {
                "status": "healthy",
                "timestamp": time.time(),
                "output_dir_writable": os.access(output_dir, os.W_OK),
                **container.get_health_status(),
            }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "timestamp": time.time(),
        }


def main() -> None:
    """Main entry point."""
    if len(sys.argv) > 1 and sys.argv[1] == "health":
        health = asyncio.run(health_check())
        print(json.dumps(health, indent=2, default=str))
        sys.exit(0 if health["status"] == "healthy" else 1)

    from pinreel.web.main import run_web_server

    try:
        config = load_production_config()
        configure_logging(config.monitoring)
        logger.info("PinReel production server starting", host=config.server.host, port=config.server.port)
        run_web_server(config)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down")
    except Exception as e:
        logger.error("Unhandled exception in main", error=str(e))
        sys.exit(1)
    finally:
        logger.info("PinReel production server stopped")


if __name__ == "__main__":
    main()
