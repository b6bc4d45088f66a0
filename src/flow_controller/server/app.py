"""FastAPI application factory for the flow controller service."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from ..config import load_config
from ..core import FlowEngineClient, FlowExecutor, FlowService
from .routes import router

logger = logging.getLogger(__name__)

# Global state
_start_time: float = 0.0


def get_uptime() -> float:
    """Get server uptime in seconds."""
    return time.time() - _start_time


def build_flow_service(config: dict[str, Any]) -> tuple[FlowService, httpx.Client]:
    """Wire client, executor and service from resolved configuration."""
    engine = config["engine"]
    http_client = httpx.Client(timeout=engine["timeout"])
    client = FlowEngineClient(engine["base_url"], http_client=http_client)
    return FlowService(FlowExecutor(client)), http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    global _start_time

    # Startup
    _start_time = time.time()

    http_client = None
    if getattr(app.state, "flow_service", None) is None:
        app.state.flow_service, http_client = build_flow_service(app.state.config)
    logger.info(f"Using flow engine at {app.state.config['engine']['base_url']}")

    yield

    # Shutdown
    if http_client is not None:
        http_client.close()


def create_app(
    config: dict[str, Any] | None = None,
    flow_service: FlowService | None = None,
    title: str = "Flow Controller",
    version: str = "1.0.0",
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=title,
        version=version,
        description="HTTP API for starting flows on a flow engine",
        lifespan=lifespan,
    )
    app.state.config = config or load_config()
    app.state.flow_service = flow_service

    # Include routes
    app.include_router(router)

    return app
