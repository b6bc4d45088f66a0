"""Pydantic models for the flow controller API."""

from __future__ import annotations

from pydantic import BaseModel


class FlowStartedResponse(BaseModel):
    """Response when a flow was started."""
    flow_id: str
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
    engine_url: str = ""
    uptime_seconds: float = 0.0
