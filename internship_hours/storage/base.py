"""Persistence contracts for principals and issued tokens."""

from datetime import datetime
from typing import Optional, Protocol
from uuid import UUID

from internship_hours.models.principal import Principal, StoredToken


class PrincipalStore(Protocol):
    """Principal persistence contract.

    Usernames are normalized (trimmed, lower-cased) by the store on every
    write and lookup.
    """

    async def create_principal(self, username: str, password_hash: str, role: str) -> Principal:
        """Persist a new principal. Raises UsernameTaken on conflict."""

    async def find_by_username(self, username: str) -> Optional[Principal]:
        """Exact match on the normalized username."""

    async def find_credentials(self, username: str) -> Optional[tuple[Principal, str]]:
        """Return (principal, password_hash) for credential checks."""

    async def find_by_public_id(self, public_id: UUID) -> Optional[Principal]:
        """Lookup by the externally visible id."""

    async def list_principals(self) -> list[Principal]:
        """All principals ordered by creation time."""

    async def update_principal(
        self,
        principal_id: int,
        *,
        username: Optional[str] = None,
        password_hash: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[Principal]:
        """Update provided fields. Raises UsernameTaken on rename conflict."""

    async def delete_principal(self, principal_id: int) -> bool:
        """Delete a principal and, by cascade, its tokens."""


class TokenStore(Protocol):
    """Issued token persistence contract."""

    async def save_token(
        self, token: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> StoredToken:
        """Persist a token owned by the named principal. Raises UnknownPrincipal."""

    async def find_by_token(self, token: str) -> Optional[StoredToken]:
        """Exact match on the token string."""

    async def find_latest_active(self, principal_id: int, now: datetime) -> Optional[StoredToken]:
        """Most recently issued non-revoked token with expires_at > now.

        Ties on issued_at go to the greater surrogate id.
        """

    async def revoke_token(self, token: str) -> None:
        """Mark a token revoked. Unknown or already revoked tokens are a no-op."""

    async def revoke_all_for_principal(self, principal_id: int) -> int:
        """Revoke every non-revoked token of a principal; return how many."""

    async def health_check(self) -> bool:
        """Whether the backing storage is reachable."""
