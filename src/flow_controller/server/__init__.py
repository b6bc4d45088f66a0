"""Flow Controller HTTP Service."""

from .app import build_flow_service, create_app
from .models import FlowStartedResponse, HealthResponse

__all__ = [
    "build_flow_service",
    "create_app",
    "FlowStartedResponse",
    "HealthResponse",
]
