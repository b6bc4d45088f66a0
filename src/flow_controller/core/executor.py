"""Domain service that starts flows on the engine."""

from __future__ import annotations

import logging

from .client import EngineClient
from .errors import FlowExecutionError

logger = logging.getLogger(__name__)


class FlowExecutor:
    """
    Starts a flow and hides the client's error types from callers.

    Whatever the client raises is logged with its original type and
    re-raised as a single ``FlowExecutionError`` carrying the flow id.
    No retries and no state.
    """

    def __init__(self, client: EngineClient):
        self.client = client

    def execute_flow(self, flow_id: str) -> None:
        try:
            self.client.start_flow(flow_id)
        except Exception as e:
            logger.error(f"Failed to start flow {flow_id}: {type(e).__name__}: {e}")
            raise FlowExecutionError(flow_id, cause=e) from e

        logger.info(f"Flow {flow_id} started.")
