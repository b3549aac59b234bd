"""Signed bearer token encoding and verification (JWT, HMAC-SHA256)."""

import json
from datetime import datetime, timedelta, timezone

import jwt
from jwt.utils import base64url_decode

from internship_hours.config import AuthConfig
from internship_hours.models.security import TokenClaims
from internship_hours.services.clock import Clock, truncate_to_millis, utc_now
from internship_hours.services.errors import InvalidSignature, MalformedToken, TokenExpired

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def to_numeric_date(value: datetime) -> float:
    """Seconds since the epoch, keeping millisecond precision."""
    millis = (value - _EPOCH) // timedelta(milliseconds=1)
    return millis / 1000


def _check_segments(token: str) -> None:
    """Require three segments with a JSON object header and payload.

    Once these parse, the signature segment is the only part left that
    PyJWT can fail to decode.

    Raises:
        MalformedToken: If the structure, header or payload cannot be parsed
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedToken()
    for segment in segments[:2]:
        try:
            decoded = json.loads(base64url_decode(segment))
        except (ValueError, TypeError) as e:
            raise MalformedToken() from e
        if not isinstance(decoded, dict):
            raise MalformedToken()


def from_numeric_date(value: object) -> datetime:
    """Inverse of :func:`to_numeric_date`.

    Raises:
        MalformedToken: If the claim is not a number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedToken()
    return _EPOCH + timedelta(milliseconds=round(value * 1000))


class TokenCodec:
    """Encodes and verifies compact signed tokens.

    Pure computation: no I/O, safe to share across requests.
    """

    def __init__(self, config: AuthConfig, clock: Clock = utc_now):
        self._config = config
        self._clock = clock

    def encode(self, subject: str, issued_at: datetime, ttl: timedelta) -> str:
        """Create a signed token for a subject.

        Args:
            subject: Username placed in the 'sub' claim
            issued_at: Issue instant (UTC)
            ttl: Lifetime; 'exp' is issued_at + ttl

        Returns:
            Encoded token string (header.payload.signature)
        """
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        issued_at = truncate_to_millis(issued_at)
        payload = {
            "sub": subject,
            "iat": to_numeric_date(issued_at),
            "exp": to_numeric_date(issued_at + ttl),
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """Verify a token and return its claims.

        The signature is checked before anything in the payload is trusted;
        expiry is checked last against the injected clock.

        Raises:
            InvalidSignature: Signature mismatch or unexpected algorithm
            MalformedToken: Structure or claims cannot be parsed
            TokenExpired: Signature is valid but now >= expires_at
        """
        _check_segments(token)

        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise InvalidSignature() from e
        except jwt.DecodeError as e:
            # Header and payload already parsed: the signature segment is undecodable
            raise InvalidSignature() from e
        except jwt.InvalidTokenError as e:
            raise MalformedToken() from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedToken()

        issued_at = from_numeric_date(payload["iat"])
        expires_at = from_numeric_date(payload["exp"])
        if expires_at <= issued_at:
            raise MalformedToken()

        if self._clock() >= expires_at:
            raise TokenExpired()

        return TokenClaims(subject=subject, issued_at=issued_at, expires_at=expires_at)
