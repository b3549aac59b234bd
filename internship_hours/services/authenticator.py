"""Bearer token authentication for inbound requests."""

from typing import Optional

import structlog

from internship_hours.models.principal import authority_for_role
from internship_hours.models.security import SecurityContext
from internship_hours.services.errors import TokenRevoked, UnknownPrincipal
from internship_hours.services.token_codec import TokenCodec
from internship_hours.storage.base import PrincipalStore, TokenStore

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value.

    Headers with any other scheme are treated as absent.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip()


class RequestAuthenticator:
    """Turns an Authorization header into a SecurityContext or an AuthError.

    Per request the flow is strictly linear:

    1. no bearer header -> ``None`` (anonymous, downstream rules decide)
    2. decode the token (MalformedToken / InvalidSignature / TokenExpired)
    3. a context already bound for this request is returned untouched
    4. the stored token must exist, be unrevoked and belong to the subject
    5. the subject must still resolve to a principal
    """

    def __init__(self, codec: TokenCodec, tokens: TokenStore, principals: PrincipalStore):
        self._codec = codec
        self._tokens = tokens
        self._principals = principals

    async def authenticate(
        self,
        authorization: Optional[str],
        current: Optional[SecurityContext] = None,
    ) -> Optional[SecurityContext]:
        """Authenticate one request.

        Args:
            authorization: Raw Authorization header value, if any
            current: Context already bound to the request, if any

        Returns:
            SecurityContext for the principal, or None for anonymous requests

        Raises:
            TokenError: For any token the request must be rejected over
        """
        token = extract_bearer_token(authorization)
        if token is None:
            return None

        claims = self._codec.decode(token)

        if current is not None:
            return current

        stored = await self._tokens.find_by_token(token)
        if stored is None or stored.revoked:
            raise TokenRevoked()

        principal = await self._principals.find_by_username(claims.subject)
        if principal is None:
            raise UnknownPrincipal()
        if stored.principal_id != principal.id:
            # Subject was renamed onto another account after this token was issued
            raise TokenRevoked()

        return SecurityContext(
            principal=principal,
            authorities=(authority_for_role(principal.role),),
            token=token,
            claims=claims,
        )
