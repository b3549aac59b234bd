"""Token minting with reuse of a principal's still-active token."""

import structlog

from internship_hours.config import AuthConfig
from internship_hours.models.principal import Principal
from internship_hours.services.clock import Clock, utc_now
from internship_hours.services.token_codec import TokenCodec
from internship_hours.storage.base import TokenStore

logger = structlog.get_logger(__name__)


class TokenIssuer:
    """Decides whether to mint a new token or hand back an active one.

    The lookup-then-insert in :meth:`issue_or_reuse` is not atomic. Two
    concurrent first logins for the same principal can both mint; each token
    is independently valid and revocable, so "one active token per
    principal" is a soft target only.
    """

    def __init__(
        self,
        codec: TokenCodec,
        tokens: TokenStore,
        config: AuthConfig,
        clock: Clock = utc_now,
    ):
        self._codec = codec
        self._tokens = tokens
        self._config = config
        self._clock = clock

    async def issue_or_reuse(self, principal: Principal) -> str:
        """Return the principal's latest active token, or mint a new one.

        Reuse is keyed by the principal's internal id, never by username.

        Args:
            principal: Authenticated principal

        Returns:
            Token string, unchanged if reused
        """
        existing = await self._tokens.find_latest_active(principal.id, self._clock())
        if existing is not None:
            logger.info(
                "token_reused",
                principal_id=principal.id,
                token_id=str(existing.public_id),
                expires_at=existing.expires_at.isoformat(),
            )
            return existing.token

        return await self.issue_new(principal.username)

    async def issue_new(self, username: str) -> str:
        """Always mint and persist a fresh token.

        Raises:
            UnknownPrincipal: If the username does not resolve at save time
        """
        issued_at = self._clock()
        ttl = self._config.token_ttl
        token = self._codec.encode(username, issued_at, ttl)
        stored = await self._tokens.save_token(token, username, issued_at, issued_at + ttl)

        logger.info(
            "token_issued",
            principal_id=stored.principal_id,
            token_id=str(stored.public_id),
            expires_at=stored.expires_at.isoformat(),
        )
        return token
