"""Auth request and response models with validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# bcrypt only considers the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def _check_username(v: str) -> str:
    if not v.strip():
        raise ValueError("Username cannot be empty or whitespace only")
    return v


def _check_password(v: str) -> str:
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


class LoginRequest(BaseModel):
    """Login credentials for authentication.

    Attributes:
        username: Account username (matched case-insensitively)
        password: Account password
    """

    username: str = Field(..., min_length=2, max_length=50)
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        """Ensure password is not blank and fits bcrypt's input limit."""
        return _check_password(v)


class RegisterRequest(BaseModel):
    """New account registration.

    Attributes:
        username: Desired username, stored lower-cased and trimmed
        password: Plain-text password (hashed before storage)
        role: Role tag such as ADMIN or ESTAGIARIO
    """

    username: str = Field(..., min_length=2, max_length=50)
    password: str = Field(..., min_length=8, max_length=100)
    role: str = Field(..., min_length=2, max_length=50)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("role")
    @classmethod
    def role_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Role cannot be empty or whitespace only")
        return v.strip()


class LoginResponse(BaseModel):
    """Successful login or registration.

    Attributes:
        message: Human-readable outcome
        token: Bearer token (reused or newly minted)
    """

    message: str
    token: str


class PrincipalSummary(BaseModel):
    """Public representation of a principal. Never includes internal ids."""

    public_id: UUID
    username: str
    role: str
    authorities: list[str]
    created_at: datetime


class UpdatePrincipalRequest(BaseModel):
    """Admin request to change a principal's credentials or role.

    All fields are optional; only provided fields are updated.
    """

    username: Optional[str] = Field(default=None, min_length=2, max_length=50)
    password: Optional[str] = Field(default=None, min_length=8, max_length=100)
    role: Optional[str] = Field(default=None, min_length=2, max_length=50)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_username(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_password(v)

    @field_validator("role")
    @classmethod
    def role_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Role cannot be empty or whitespace only")
        return v.strip()


class RevokeTokenRequest(BaseModel):
    """Admin request to revoke a specific token."""

    token: str = Field(..., min_length=1)


class RevokedTokensResponse(BaseModel):
    revoked: int = Field(ge=0)


class ErrorResponse(BaseModel):
    """Error body returned for every authentication failure.

    Attributes:
        message: Client-safe description
        status: HTTP status code, repeated in the body
        code: Stable error code (e.g. "token_expired", "invalid_token")
    """

    message: str
    status: int
    code: str
