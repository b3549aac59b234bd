"""Admin API endpoints for principal and token management."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from internship_hours.api.auth import principal_summary
from internship_hours.api.dependencies import (
    get_auth_service,
    get_target_principal,
    require_admin,
)
from internship_hours.models.auth import (
    PrincipalSummary,
    RevokedTokensResponse,
    RevokeTokenRequest,
    UpdatePrincipalRequest,
)
from internship_hours.models.principal import Principal
from internship_hours.models.security import SecurityContext
from internship_hours.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users")
async def list_users(
    admin: SecurityContext = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> list[PrincipalSummary]:
    """List all principals (admin only)."""
    principals = await auth_service.principals.list_principals()
    return [principal_summary(p) for p in principals]


@router.patch("/users/{public_id}")
async def update_user(
    request: UpdatePrincipalRequest,
    admin: SecurityContext = Depends(require_admin),
    target: Principal = Depends(get_target_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> PrincipalSummary:
    """Update a principal's username, password or role (admin only).

    A username or password change revokes all of the principal's tokens.

    Raises:
        HTTPException 404: If the principal disappeared mid-request
        UsernameTaken (400): If renaming onto an existing username
    """
    updated = await auth_service.update_principal(
        target,
        username=request.username,
        password=request.password,
        role=request.role,
    )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("admin_updated_user", admin_id=admin.principal.id, principal_id=target.id)
    return principal_summary(updated)


@router.delete("/users/{public_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    admin: SecurityContext = Depends(require_admin),
    target: Principal = Depends(get_target_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Delete a principal and all of its tokens (admin only)."""
    if target.id == admin.principal.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        )

    await auth_service.delete_principal(target)
    logger.info("admin_deleted_user", admin_id=admin.principal.id, principal_id=target.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/users/{public_id}/tokens/revoke")
async def revoke_user_tokens(
    admin: SecurityContext = Depends(require_admin),
    target: Principal = Depends(get_target_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> RevokedTokensResponse:
    """Revoke every outstanding token of a principal (admin only)."""
    revoked = await auth_service.revoke_principal_tokens(target)
    return RevokedTokensResponse(revoked=revoked)


@router.post("/tokens/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_token(
    request: RevokeTokenRequest,
    admin: SecurityContext = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Revoke a single token (admin only). Unknown tokens are ignored."""
    await auth_service.logout(request.token)
    logger.info("admin_revoked_token", admin_id=admin.principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
