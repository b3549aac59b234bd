"""Middleware for request processing, authentication and observability."""

from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from internship_hours.models.auth import ErrorResponse
from internship_hours.services.authenticator import RequestAuthenticator
from internship_hours.services.errors import AuthError

logger = structlog.get_logger(__name__)


def auth_error_response(error: AuthError) -> JSONResponse:
    """Render an AuthError as the standard JSON error body."""
    body = ErrorResponse(message=error.message, status=error.status_code, code=error.code)
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == 401 else None
    return JSONResponse(status_code=error.status_code, content=body.model_dump(), headers=headers)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID to every request.

    - Generates UUID4 per request (or uses X-Correlation-Id header if present)
    - Stores in request.state.correlation_id
    - Binds to structlog context for all subsequent logging
    - Adds X-Correlation-Id response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-Id", str(uuid4()))
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Authenticates bearer tokens before any route handler runs.

    Outcomes per request:
    - no bearer header: continue anonymously
    - valid token: bind request.state.security_context, continue
    - rejected token: 401 JSON body, handler never runs
    - unexpected failure: logged with traceback, generic 401 (fail closed)
    """

    def __init__(self, app: ASGIApp, authenticator: RequestAuthenticator):
        super().__init__(app)
        self.authenticator = authenticator

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        current = getattr(request.state, "security_context", None)

        try:
            context = await self.authenticator.authenticate(
                request.headers.get("Authorization"), current=current
            )
        except AuthError as e:
            logger.warning("authentication_rejected", path=path, reason=e.code)
            return auth_error_response(e)
        except Exception:
            logger.exception("authentication_failed_unexpectedly", path=path)
            return auth_error_response(AuthError())

        if context is not None and current is None:
            request.state.security_context = context
            structlog.contextvars.bind_contextvars(principal_id=context.principal.id)

        return await call_next(request)
