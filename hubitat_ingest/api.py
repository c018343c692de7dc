"""App FastAPI de health/metrics y su servidor en segundo plano."""

from __future__ import annotations

import logging
import threading

import uvicorn
from fastapi import FastAPI

from . import __version__
from .endpoints.health import router as health_router

logger = logging.getLogger(__name__)


def create_app(service) -> FastAPI:
    app = FastAPI(title="Hubitat Ingest Service", version=__version__)
    app.state.service = service
    app.include_router(health_router)
    return app


def start_health_server(service, port: int, host: str = "0.0.0.0") -> threading.Thread:
    """Sirve la app en un hilo daemon; muere con el proceso."""
    config = uvicorn.Config(create_app(service), host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True, name="health-api")
    thread.start()
    logger.info("[API] Health endpoints listening on %s:%d", host, port)
    return thread
