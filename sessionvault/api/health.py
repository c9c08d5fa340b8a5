"""Health check endpoint with session store connectivity check."""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    session_store: str


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 if the session store is unreachable, since no token can be
    verified without it.
    """
    manager = getattr(request.app.state, "session_manager", None)
    store_healthy = manager is not None and await manager.store.ping()

    if not store_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if store_healthy else "unhealthy",
        version=request.app.version,
        session_store="connected" if store_healthy else "disconnected",
    )
