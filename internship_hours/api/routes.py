"""Operational endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from internship_hours.api.dependencies import get_auth_service
from internship_hours.services.auth_service import AuthService

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(auth_service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Report whether the token store is reachable."""
    healthy = await auth_service.tokens.health_check()
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "healthy" if healthy else "unhealthy"},
    )
