"""Engine client, flow executor and service layer."""

from .client import EngineClient, FlowEngineClient, PUT_DATABASE_RECORD_TYPE
from .errors import (
    FlowControllerError,
    TransportError,
    ProtocolError,
    VersionConflict,
    FlowExecutionError,
)
from .executor import FlowExecutor
from .models import Position, ProcessorState
from .service import FlowService

__all__ = [
    # Client
    "EngineClient",
    "FlowEngineClient",
    "PUT_DATABASE_RECORD_TYPE",
    # Errors
    "FlowControllerError",
    "TransportError",
    "ProtocolError",
    "VersionConflict",
    "FlowExecutionError",
    # Models
    "Position",
    "ProcessorState",
    # Services
    "FlowExecutor",
    "FlowService",
]
