"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from internship_hours.api.admin import router as admin_router
from internship_hours.api.auth import router as auth_router
from internship_hours.api.middleware import (
    BearerAuthMiddleware,
    CorrelationIdMiddleware,
    auth_error_response,
)
from internship_hours.api.routes import router as health_router
from internship_hours.config import AuthConfig, Settings, get_settings
from internship_hours.database import close_database, init_database, run_migrations
from internship_hours.models.auth import ErrorResponse
from internship_hours.services.auth_service import AuthService
from internship_hours.services.authenticator import RequestAuthenticator
from internship_hours.services.clock import Clock, utc_now
from internship_hours.services.errors import AuthError
from internship_hours.services.logging_service import configure_logging, get_logger
from internship_hours.services.token_codec import TokenCodec
from internship_hours.storage import MemoryStore, PostgresStore


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render AuthErrors raised inside route handlers and dependencies."""
    structlog.get_logger().warning(
        "auth_error", path=request.url.path, code=exc.code, status=exc.status_code
    )
    return auth_error_response(exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with a 400 and the standard error body."""
    correlation_id = getattr(request.state, "correlation_id", None) or str(uuid4())

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = f"Field '{field}': {first_error.get('msg', 'Validation failed')}"
    else:
        message = "Request validation failed"

    structlog.get_logger().warning(
        "validation_error",
        correlation_id=correlation_id,
        detail=message,
    )

    body = ErrorResponse(message=message, status=400, code="validation_error")
    return JSONResponse(
        status_code=400,
        content=body.model_dump(),
        headers={"X-Correlation-Id": correlation_id},
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[MemoryStore | PostgresStore] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Build the application and its authentication components.

    Args:
        settings: Application settings (defaults to environment)
        store: Principal/token store; built from settings.storage_backend if omitted
        clock: UTC clock shared by the codec, issuer and store

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    auth_config = AuthConfig.from_settings(settings)

    uses_database = store is None and settings.storage_backend == "postgres"
    if store is None:
        store = PostgresStore(clock) if uses_database else MemoryStore(clock)

    codec = TokenCodec(auth_config, clock)
    auth_service = AuthService(store, store, codec, auth_config, clock)
    authenticator = RequestAuthenticator(codec, store, store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        configure_logging(settings.log_level)
        logger = get_logger("main")

        if uses_database:
            try:
                await init_database()
                await run_migrations()
                logger.info("database_initialized")
            except Exception as e:
                logger.warning(
                    "database_initialization_failed",
                    error=str(e),
                    note="Continuing without database - authentication will fail closed",
                )

        logger.info(
            "application_started",
            storage_backend=settings.storage_backend if uses_database else type(store).__name__,
            token_ttl_ms=auth_config.token_ttl_ms,
            log_level=settings.log_level,
        )

        yield

        if uses_database:
            await close_database()

        logger.info("application_shutdown")

    app = FastAPI(
        title="Internship Hours - Auth API",
        description="Login, registration and bearer token lifecycle for the internship hours tracker",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.auth_service = auth_service

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Middleware added last runs first: correlation id -> CORS -> bearer auth
    app.add_middleware(BearerAuthMiddleware, authenticator=authenticator)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    return app


app = create_app()
