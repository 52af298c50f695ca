"""GET /health: liveness plus the number of registered functions."""

from fastapi import APIRouter, Request

from oidclab.api.schemas import HealthResponse
from oidclab.version import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    registry = request.app.state.registry
    return HealthResponse(status="ok", version=__version__, functions=len(registry))
