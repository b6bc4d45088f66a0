"""Error types raised by the engine client and the flow executor."""

from __future__ import annotations

from typing import Any


class FlowControllerError(Exception):
    """Base exception for all flow controller errors."""
    pass


class TransportError(FlowControllerError):
    """HTTP-level failure talking to the engine.

    Covers connection errors and timeouts (``status_code`` is None) as well
    as non-success statuses that are not revision conflicts.
    """

    def __init__(
        self,
        message: str,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None
    ):
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.cause = cause


class ProtocolError(FlowControllerError):
    """The engine answered with a body we could not interpret."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class VersionConflict(FlowControllerError):
    """The engine rejected a mutation because the asserted revision is stale."""

    def __init__(
        self,
        message: str,
        resource_id: str,
        version: int | None = None,
        status_code: int | None = None
    ):
        super().__init__(message)
        self.resource_id = resource_id
        self.version = version
        self.status_code = status_code


class FlowExecutionError(FlowControllerError):
    """Starting a flow failed. Wraps whatever the client raised."""

    def __init__(self, flow_id: str, cause: Exception | None = None):
        super().__init__(f"Failed to start flow: {flow_id}")
        self.flow_id = flow_id
        self.cause = cause
