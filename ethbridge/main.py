"""
Application entry point.

Runs the HTTP server exposing the price endpoints and the agent callback.
"""

from aiohttp import web
from loguru import logger

from ethbridge.config.settings import get_settings
from ethbridge.initialization.logging import setup_logging
from ethbridge.initialization.services import build_services
from ethbridge.web import create_app


def run() -> None:
    """Initialize services and run the HTTP server."""
    settings = get_settings()
    setup_logging(settings.log_level)

    services = build_services(settings)
    app = create_app(services)

    logger.info(f"HTTP server starting on {settings.http_host}:{settings.http_port}")
    web.run_app(
        app,
        host=settings.http_host,
        port=settings.http_port,
        print=None,
    )


if __name__ == "__main__":
    run()
