"""Authentication error taxonomy.

Every error carries the HTTP status it is surfaced with, a stable machine
readable ``code`` and a client-safe ``message``. None of them include token
contents, signatures or secrets.
"""


class AuthError(Exception):
    """Base class for authentication and authorization failures.

    Attributes:
        status_code: HTTP status used when the error reaches a client
        code: Stable error code for client-side handling
        message: Human-readable, client-safe description
    """

    status_code = 401
    code = "authentication_error"
    message = "Authentication failed"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    """Username or password did not match. Never says which."""

    code = "invalid_credentials"
    message = "Invalid username or password"


class UsernameTaken(AuthError):
    status_code = 400
    code = "username_taken"
    message = "Username already exists"


class TokenError(AuthError):
    """Base class for bearer token rejections."""

    code = "invalid_token"
    message = "Invalid token"


class MalformedToken(TokenError):
    code = "malformed_token"
    message = "Malformed token"


class InvalidSignature(TokenError):
    code = "invalid_token"
    message = "Invalid token"


class TokenExpired(TokenError):
    code = "token_expired"
    message = "Token expired"


class TokenRevoked(TokenError):
    code = "token_revoked"
    message = "Token revoked"


class UnknownPrincipal(TokenError):
    """The token subject (or a token owner) no longer resolves to a principal."""

    code = "invalid_token"
    message = "Invalid token"


class AuthenticationRequired(AuthError):
    code = "authentication_required"
    message = "Authentication required"


class AccessDenied(AuthError):
    status_code = 403
    code = "access_denied"
    message = "Access denied"
