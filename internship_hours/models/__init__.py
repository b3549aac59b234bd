"""Models package exports."""

from internship_hours.models.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PrincipalSummary,
    RegisterRequest,
)
from internship_hours.models.principal import Principal, StoredToken
from internship_hours.models.security import SecurityContext, TokenClaims

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "Principal",
    "PrincipalSummary",
    "RegisterRequest",
    "SecurityContext",
    "StoredToken",
    "TokenClaims",
]
