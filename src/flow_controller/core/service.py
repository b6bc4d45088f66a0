"""Application service exposed to the HTTP layer and the CLI."""

from __future__ import annotations

from .executor import FlowExecutor


class FlowService:
    """Runs flows by identifier. Delegates to the executor unchanged."""

    def __init__(self, executor: FlowExecutor):
        self.executor = executor

    def run_flow(self, flow_id: str) -> None:
        self.executor.execute_flow(flow_id)
