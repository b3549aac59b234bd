"""Decoded token claims and the per-request security context."""

from dataclasses import dataclass
from datetime import datetime

from internship_hours.models.principal import Principal


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""

    subject: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class SecurityContext:
    """Identity bound to a request after successful bearer authentication."""

    principal: Principal
    authorities: tuple[str, ...]
    token: str
    claims: TokenClaims

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities
