"""Principal and stored token models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

ROLE_PREFIX = "ROLE_"


def normalize_username(username: str) -> str:
    """Canonical form used for storage and lookups (trimmed, lower-cased)."""
    return username.strip().lower()


def authority_for_role(role: str) -> str:
    """Convert a stored role tag into an authority string.

    ``"admin"`` and ``"ROLE_ADMIN"`` both become ``"ROLE_ADMIN"``.

    Raises:
        ValueError: If the role is empty or whitespace only
    """
    normalized = role.strip().upper() if role else ""
    if not normalized:
        raise ValueError("Principal has no role assigned")
    if normalized.startswith(ROLE_PREFIX):
        return normalized
    return ROLE_PREFIX + normalized


class Principal(BaseModel):
    """An authenticatable account.

    The password hash is not a field. Stores return it separately through
    ``find_credentials``.
    """

    id: int
    public_id: UUID
    username: str
    role: str
    created_at: datetime
    updated_at: datetime

    @property
    def authorities(self) -> tuple[str, ...]:
        return (authority_for_role(self.role),)


class StoredToken(BaseModel):
    """A persisted, issued bearer token.

    Attributes:
        id: Internal surrogate id (insertion order)
        public_id: Opaque id safe to expose
        token: The compact signed token string
        principal_id: Internal id of the owning principal
        issued_at: Issue instant (UTC)
        expires_at: Expiry instant (UTC), always after issued_at
        revoked: Set once, never cleared
    """

    id: int
    public_id: UUID
    token: str
    principal_id: int
    issued_at: datetime
    expires_at: datetime
    revoked: bool = False

    def is_active(self, now: datetime) -> bool:
        """Token is active if not revoked and not yet expired."""
        return not self.revoked and now < self.expires_at
