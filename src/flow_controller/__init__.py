"""Control surface for starting flows on an external flow engine."""

from .core import (
    EngineClient,
    FlowEngineClient,
    FlowExecutor,
    FlowService,
    ProcessorState,
    FlowControllerError,
    TransportError,
    ProtocolError,
    VersionConflict,
    FlowExecutionError,
)

__version__ = "1.0.0"

__all__ = [
    "EngineClient",
    "FlowEngineClient",
    "FlowExecutor",
    "FlowService",
    "ProcessorState",
    "FlowControllerError",
    "TransportError",
    "ProtocolError",
    "VersionConflict",
    "FlowExecutionError",
]
