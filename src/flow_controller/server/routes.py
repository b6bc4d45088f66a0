"""API route handlers for the flow controller service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core import FlowExecutionError, FlowService
from .models import FlowStartedResponse, HealthResponse


router = APIRouter()


def get_flow_service(request: Request) -> FlowService:
    """Return the service wired up at startup."""
    return request.app.state.flow_service


# === Health ===

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(request: Request) -> HealthResponse:
    """Check service health."""
    from .app import get_uptime

    return HealthResponse(
        status="healthy",
        version=request.app.version,
        engine_url=request.app.state.config["engine"]["base_url"],
        uptime_seconds=get_uptime(),
    )


# === Flows ===

# Plain def: the engine call blocks, so FastAPI runs it in its threadpool.
@router.post("/nifi/run/{flow_id}", response_model=FlowStartedResponse, tags=["Flows"])
def start_flow(
    flow_id: str,
    service: FlowService = Depends(get_flow_service),
) -> FlowStartedResponse:
    """Start a flow by identifier."""
    try:
        service.run_flow(flow_id)
    except FlowExecutionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return FlowStartedResponse(flow_id=flow_id, message=f"Flow {flow_id} started")
