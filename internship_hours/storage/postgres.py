"""PostgreSQL principal and token store backed by the asyncpg pool."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from internship_hours.database import get_pool
from internship_hours.database import health_check as database_health_check
from internship_hours.models.principal import Principal, StoredToken, normalize_username
from internship_hours.services.clock import Clock, utc_now
from internship_hours.services.errors import UnknownPrincipal, UsernameTaken

logger = structlog.get_logger(__name__)

PRINCIPAL_COLUMNS = "id, public_id, username, role, created_at, updated_at"
TOKEN_COLUMNS = "id, public_id, token, principal_id, issued_at, expires_at, revoked"


def _principal(row) -> Principal:
    return Principal(
        id=row["id"],
        public_id=row["public_id"],
        username=row["username"],
        role=row["role"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _stored_token(row) -> StoredToken:
    return StoredToken(
        id=row["id"],
        public_id=row["public_id"],
        token=row["token"],
        principal_id=row["principal_id"],
        issued_at=row["issued_at"],
        expires_at=row["expires_at"],
        revoked=row["revoked"],
    )


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg status string like 'UPDATE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


class PostgresStore:
    """asyncpg implementation of PrincipalStore and TokenStore."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    # -- principals -------------------------------------------------------

    async def create_principal(self, username: str, password_hash: str, role: str) -> Principal:
        """Insert a new principal.

        Raises:
            UsernameTaken: If the normalized username already exists
        """
        now = self._clock()
        pool = await get_pool()

        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO principals (public_id, username, password_hash, role, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    RETURNING {PRINCIPAL_COLUMNS}
                    """,
                    uuid4(),
                    normalize_username(username),
                    password_hash,
                    role,
                    now,
                    now,
                )
            except asyncpg.UniqueViolationError as e:
                raise UsernameTaken() from e

        return _principal(row)

    async def find_by_username(self, username: str) -> Optional[Principal]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRINCIPAL_COLUMNS} FROM principals WHERE username = $1",
                normalize_username(username),
            )

        return _principal(row) if row is not None else None

    async def find_credentials(self, username: str) -> Optional[tuple[Principal, str]]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRINCIPAL_COLUMNS}, password_hash FROM principals WHERE username = $1",
                normalize_username(username),
            )

        if row is None:
            return None
        return _principal(row), row["password_hash"]

    async def find_by_public_id(self, public_id: UUID) -> Optional[Principal]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {PRINCIPAL_COLUMNS} FROM principals WHERE public_id = $1",
                public_id,
            )

        return _principal(row) if row is not None else None

    async def list_principals(self) -> list[Principal]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {PRINCIPAL_COLUMNS} FROM principals ORDER BY created_at ASC, id ASC"
            )

        return [_principal(row) for row in rows]

    async def update_principal(
        self,
        principal_id: int,
        *,
        username: Optional[str] = None,
        password_hash: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[Principal]:
        """Update principal fields that are not None.

        Returns:
            Updated Principal, or None if not found

        Raises:
            UsernameTaken: If renaming onto an existing username
        """
        set_clauses = []
        params: list = []

        for column, value in (
            ("username", normalize_username(username) if username is not None else None),
            ("password_hash", password_hash),
            ("role", role),
        ):
            if value is not None:
                params.append(value)
                set_clauses.append(f"{column} = ${len(params)}")

        params.append(self._clock())
        set_clauses.append(f"updated_at = ${len(params)}")

        params.append(principal_id)
        query = f"""
            UPDATE principals
            SET {', '.join(set_clauses)}
            WHERE id = ${len(params)}
            RETURNING {PRINCIPAL_COLUMNS}
        """

        pool = await get_pool()

        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(query, *params)
            except asyncpg.UniqueViolationError as e:
                raise UsernameTaken() from e

        return _principal(row) if row is not None else None

    async def delete_principal(self, principal_id: int) -> bool:
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute("DELETE FROM principals WHERE id = $1", principal_id)

        deleted = _affected_rows(result) == 1
        if deleted:
            logger.info("principal_deleted", principal_id=principal_id)
        else:
            logger.warning("principal_delete_not_found", principal_id=principal_id)
        return deleted

    # -- tokens -----------------------------------------------------------

    async def save_token(
        self, token: str, username: str, issued_at: datetime, expires_at: datetime
    ) -> StoredToken:
        """Insert a token row owned by the principal with this username.

        Raises:
            UnknownPrincipal: If no principal has that username
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO auth_tokens (public_id, token, principal_id, issued_at, expires_at, revoked)
                SELECT $1, $2, p.id, $4, $5, FALSE
                FROM principals p
                WHERE p.username = $3
                RETURNING {TOKEN_COLUMNS}
                """,
                uuid4(),
                token,
                normalize_username(username),
                issued_at,
                expires_at,
            )

        if row is None:
            raise UnknownPrincipal()
        return _stored_token(row)

    async def find_by_token(self, token: str) -> Optional[StoredToken]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {TOKEN_COLUMNS}
                FROM auth_tokens
                WHERE token = $1
                ORDER BY id DESC
                LIMIT 1
                """,
                token,
            )

        return _stored_token(row) if row is not None else None

    async def find_latest_active(self, principal_id: int, now: datetime) -> Optional[StoredToken]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {TOKEN_COLUMNS}
                FROM auth_tokens
                WHERE principal_id = $1 AND revoked = FALSE AND expires_at > $2
                ORDER BY issued_at DESC, id DESC
                LIMIT 1
                """,
                principal_id,
                now,
            )

        return _stored_token(row) if row is not None else None

    async def revoke_token(self, token: str) -> None:
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                "UPDATE auth_tokens SET revoked = TRUE WHERE token = $1 AND revoked = FALSE",
                token,
            )

    async def revoke_all_for_principal(self, principal_id: int) -> int:
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE auth_tokens SET revoked = TRUE WHERE principal_id = $1 AND revoked = FALSE",
                principal_id,
            )

        return _affected_rows(result)

    async def health_check(self) -> bool:
        return await database_health_check()
