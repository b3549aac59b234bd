"""Authentication service: login, registration, revocation and account admin."""

from typing import Optional

import structlog

from internship_hours.config import AuthConfig
from internship_hours.models.principal import Principal
from internship_hours.services.clock import Clock, utc_now
from internship_hours.services.credentials import CredentialVerifier, hash_password
from internship_hours.services.errors import InvalidCredentials, UsernameTaken
from internship_hours.services.token_codec import TokenCodec
from internship_hours.services.token_issuer import TokenIssuer
from internship_hours.storage.base import PrincipalStore, TokenStore

logger = structlog.get_logger(__name__)


class AuthService:
    """Entry point used by the API layer for the token lifecycle."""

    def __init__(
        self,
        principals: PrincipalStore,
        tokens: TokenStore,
        codec: TokenCodec,
        config: AuthConfig,
        clock: Clock = utc_now,
    ):
        self.principals = principals
        self.tokens = tokens
        self.verifier = CredentialVerifier(principals)
        self.issuer = TokenIssuer(codec, tokens, config, clock)

    async def login(self, username: str, password: str) -> tuple[Principal, str]:
        """Verify credentials and return a reused or new token.

        Raises:
            InvalidCredentials: If username or password is wrong
        """
        principal = await self.verifier.verify(username, password)
        if principal is None:
            raise InvalidCredentials()

        token = await self.issuer.issue_or_reuse(principal)
        logger.info("user_logged_in", principal_id=principal.id, username=principal.username)
        return principal, token

    async def register(self, username: str, password: str, role: str) -> tuple[Principal, str]:
        """Create a principal and log it in with a freshly minted token.

        Raises:
            UsernameTaken: If the normalized username already exists
        """
        if await self.principals.find_by_username(username) is not None:
            raise UsernameTaken()

        principal = await self.principals.create_principal(
            username=username,
            password_hash=hash_password(password),
            role=role,
        )
        logger.info(
            "principal_registered",
            principal_id=principal.id,
            username=principal.username,
            role=principal.role,
        )

        token = await self.issuer.issue_new(principal.username)
        return principal, token

    async def logout(self, token: str) -> None:
        """Revoke a token. Unknown and already revoked tokens are ignored."""
        await self.tokens.revoke_token(token)
        logger.info("token_revoked")

    async def revoke_principal_tokens(self, principal: Principal) -> int:
        revoked = await self.tokens.revoke_all_for_principal(principal.id)
        logger.info("principal_tokens_revoked", principal_id=principal.id, revoked=revoked)
        return revoked

    async def update_principal(
        self,
        principal: Principal,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[Principal]:
        """Update credentials or role.

        A username or password change revokes every outstanding token of the
        principal: existing tokens carry the old username as subject, and a
        credential change ends existing sessions.

        Raises:
            UsernameTaken: If renaming onto an existing username
        """
        updated = await self.principals.update_principal(
            principal.id,
            username=username,
            password_hash=hash_password(password) if password is not None else None,
            role=role,
        )
        if updated is None:
            return None

        logger.info(
            "principal_updated",
            principal_id=principal.id,
            username_changed=updated.username != principal.username,
            password_changed=password is not None,
            role_changed=role is not None,
        )

        if updated.username != principal.username or password is not None:
            await self.revoke_principal_tokens(updated)
        return updated

    async def delete_principal(self, principal: Principal) -> bool:
        """Delete a principal; its tokens go with it."""
        deleted = await self.principals.delete_principal(principal.id)
        if deleted:
            logger.info("principal_removed", principal_id=principal.id)
        return deleted
