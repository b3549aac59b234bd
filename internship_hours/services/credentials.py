"""Password hashing and username/password verification."""

from functools import lru_cache
from typing import Optional

import bcrypt
import structlog

from internship_hours.models.principal import Principal, normalize_username
from internship_hours.storage.base import PrincipalStore

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain-text password to hash

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash in constant time.

    Args:
        password: Plain-text password to check
        password_hash: Bcrypt hash to verify against

    Returns:
        True if the password matches, False otherwise (including when the
        stored hash is unusable)
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.error("password_hash_unusable")
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("timing-equalizer-not-a-real-password")


class CredentialVerifier:
    """Checks a username/password pair against stored password hashes."""

    def __init__(self, principals: PrincipalStore):
        self._principals = principals

    async def verify(self, username: str, password: str) -> Optional[Principal]:
        """Return the matching principal, or None when the credentials are wrong.

        An unknown username still pays for one bcrypt comparison so response
        timing does not reveal whether the username exists.
        """
        result = await self._principals.find_credentials(normalize_username(username))

        if result is None:
            verify_password(password, _dummy_hash())
            logger.info("credentials_rejected", username=normalize_username(username))
            return None

        principal, password_hash = result
        if not verify_password(password, password_hash):
            logger.info("credentials_rejected", username=principal.username)
            return None

        return principal
