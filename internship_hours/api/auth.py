"""Authentication API endpoints."""

import structlog
from fastapi import APIRouter, Depends, Response, status

from internship_hours.api.dependencies import get_auth_service, require_authenticated
from internship_hours.models.auth import (
    LoginRequest,
    LoginResponse,
    PrincipalSummary,
    RegisterRequest,
)
from internship_hours.models.principal import Principal
from internship_hours.models.security import SecurityContext
from internship_hours.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def principal_summary(principal: Principal) -> PrincipalSummary:
    """Convert a Principal to its public representation."""
    return PrincipalSummary(
        public_id=principal.public_id,
        username=principal.username,
        role=principal.role,
        authorities=list(principal.authorities),
        created_at=principal.created_at,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Login with username and password.

    Returns the principal's still-active token when one exists, otherwise a
    newly minted one.

    Raises:
        InvalidCredentials (401): If username or password is wrong
    """
    logger.info("login_attempt", username=request.username)
    _, token = await auth_service.login(request.username, request.password)
    return LoginResponse(message="Login successful", token=token)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Register a new principal and log it in.

    Raises:
        UsernameTaken (400): If the username already exists
    """
    principal, token = await auth_service.register(
        username=request.username,
        password=request.password,
        role=request.role,
    )
    return LoginResponse(message=f"{principal.username} registered successfully", token=token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    context: SecurityContext = Depends(require_authenticated),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Revoke the bearer token used for this request."""
    await auth_service.logout(context.token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me")
async def get_me(context: SecurityContext = Depends(require_authenticated)) -> PrincipalSummary:
    """Get the authenticated principal."""
    return principal_summary(context.principal)
