"""FastAPI dependencies for authentication and authorization."""

from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from internship_hours.models.principal import Principal, authority_for_role
from internship_hours.models.security import SecurityContext
from internship_hours.services.auth_service import AuthService
from internship_hours.services.errors import AccessDenied, AuthenticationRequired


def get_auth_service(request: Request) -> AuthService:
    """AuthService built at startup by create_app."""
    return request.app.state.auth_service


def get_security_context(request: Request) -> Optional[SecurityContext]:
    """Context bound by BearerAuthMiddleware, or None for anonymous requests."""
    return getattr(request.state, "security_context", None)


async def require_authenticated(
    context: Optional[SecurityContext] = Depends(get_security_context),
) -> SecurityContext:
    """Require a bound security context.

    Raises:
        AuthenticationRequired: For anonymous requests (401)
    """
    if context is None:
        raise AuthenticationRequired()
    return context


def require_role(role: str) -> Callable:
    """Build a dependency requiring the given role (e.g. "ADMIN").

    Raises:
        AccessDenied: If the principal lacks the authority (403)
    """
    authority = authority_for_role(role)

    async def _require_role(
        context: SecurityContext = Depends(require_authenticated),
    ) -> SecurityContext:
        if not context.has_authority(authority):
            raise AccessDenied()
        return context

    return _require_role


require_admin = require_role("ADMIN")


async def get_target_principal(
    public_id: UUID,
    auth_service: AuthService = Depends(get_auth_service),
) -> Principal:
    """Resolve a principal from a path parameter.

    Raises:
        HTTPException 404: If no principal has this public id
    """
    principal = await auth_service.principals.find_by_public_id(public_id)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return principal
