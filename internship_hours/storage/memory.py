"""In-memory principal and token store for development and tests."""

import threading
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID, uuid4

import structlog

from internship_hours.models.principal import Principal, StoredToken, normalize_username
from internship_hours.services.clock import Clock, utc_now
from internship_hours.services.errors import UnknownPrincipal, UsernameTaken

logger = structlog.get_logger(__name__)


class MemoryStore:
    """Dictionary-backed implementation of PrincipalStore and TokenStore.

    Not durable. All data operations hold a single re-entrant lock so the
    store can be shared across threads (TestClient runs the app in a
    worker thread).
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._principals: Dict[int, Principal] = {}
        self._password_hashes: Dict[int, str] = {}
        self._tokens: Dict[int, StoredToken] = {}
        self._principal_seq = 0
        self._token_seq = 0
        self._lock = threading.RLock()

    # -- principals -------------------------------------------------------

    def _by_username(self, username: str) -> Optional[Principal]:
        normalized = normalize_username(username)
        for principal in self._principals.values():
            if principal.username == normalized:
                return principal
        return None

    async def create_principal(self, username: str, password_hash: str, role: str) -> Principal:
        now = self._clock()
        with self._lock:
            if self._by_username(username) is not None:
                raise UsernameTaken()
            self._principal_seq += 1
            principal = Principal(
                id=self._principal_seq,
                public_id=uuid4(),
                username=normalize_username(username),
                role=role,
                created_at=now,
                updated_at=now,
            )
            self._principals[principal.id] = principal
            self._password_hashes[principal.id] = password_hash
        return principal

    async def find_by_username(self, username: str) -> Optional[Principal]:
        with self._lock:
            return self._by_username(username)

    async def find_credentials(self, username: str) -> Optional[tuple[Principal, str]]:
        with self._lock:
            principal = self._by_username(username)
            if principal is None:
                return None
            return principal, self._password_hashes[principal.id]

    async def find_by_public_id(self, public_id: UUID) -> Optional[Principal]:
        with self._lock:
            for principal in self._principals.values():
                if principal.public_id == public_id:
                    return principal
        return None

    async def list_principals(self) -> list[Principal]:
        with self._lock:
            return sorted(self._principals.values(), key=lambda p: (p.created_at, p.id))

    async def update_principal(
        self,
        principal_id: int,
        *,
        username: Optional[str] = None,
        password_hash: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[Principal]:
        with self._lock:
            current = self._principals.get(principal_id)
            if current is None:
                return None
            changes: dict = {}
            if username is not None:
                normalized = normalize_username(username)
                existing = self._by_username(normalized)
                if existing is not None and existing.id != principal_id:
                    raise UsernameTaken()
                changes["username"] = normalized
            if role is not None:
                changes["role"] = role
            if password_hash is not None:
                self._password_hashes[principal_id] = password_hash
            changes["updated_at"] = self._clock()
            updated = current.model_copy(update=changes)
            self._principals[principal_id] = updated
        return updated

    async def delete_principal(self, principal_id: int) -> bool:
        with self._lock:
            if self._principals.pop(principal_id, None) is None:
                return False
            self._password_hashes.pop(principal_id, None)
            owned = [t.id for t in self._tokens.values() if t.principal_id == principal_id]
            for token_id in owned:
                del self._tokens[token_id]
        logger.info("principal_deleted", principal_id=principal_id, tokens_removed=len(owned))
        return True

    # -- tokens -----------------------------------------------------------

    async def save_token(
        self, token: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> StoredToken:
        with self._lock:
            principal = self._by_username(username)
            if principal is None:
                raise UnknownPrincipal()
            self._token_seq += 1
            stored = StoredToken(
                id=self._token_seq,
                public_id=uuid4(),
                token=token,
                principal_id=principal.id,
                issued_at=issued_at,
                expires_at=expires_at,
            )
            self._tokens[stored.id] = stored
        return stored

    async def find_by_token(self, token: str) -> Optional[StoredToken]:
        with self._lock:
            matches = [t for t in self._tokens.values() if t.token == token]
        if not matches:
            return None
        return max(matches, key=lambda t: t.id)

    async def find_latest_active(self, principal_id: int, now: datetime) -> Optional[StoredToken]:
        with self._lock:
            candidates = [
                t
                for t in self._tokens.values()
                if t.principal_id == principal_id and t.is_active(now)
            ]
        if not candidates:
            return None
        return max(candidates, key=lambda t: (t.issued_at, t.id))

    async def revoke_token(self, token: str) -> None:
        with self._lock:
            for token_id, stored in list(self._tokens.items()):
                if stored.token == token and not stored.revoked:
                    self._tokens[token_id] = stored.model_copy(update={"revoked": True})

    async def revoke_all_for_principal(self, principal_id: int) -> int:
        revoked = 0
        with self._lock:
            for token_id, stored in list(self._tokens.items()):
                if stored.principal_id == principal_id and not stored.revoked:
                    self._tokens[token_id] = stored.model_copy(update={"revoked": True})
                    revoked += 1
        return revoked

    async def health_check(self) -> bool:
        return True
