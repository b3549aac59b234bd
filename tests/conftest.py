"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from internship_hours.config import AuthConfig, Settings
from internship_hours.main import create_app
from internship_hours.services.auth_service import AuthService
from internship_hours.services.authenticator import RequestAuthenticator
from internship_hours.services.token_codec import TokenCodec
from internship_hours.storage.memory import MemoryStore

JWT_SECRET = "test-secret-key-for-jwt-unit-tests-0123456789"
TOKEN_TTL_MS = 60 * 60 * 1000  # 1 hour


class FakeClock:
    """Controllable UTC clock for deterministic expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(secret=JWT_SECRET, token_ttl_ms=TOKEN_TTL_MS)


@pytest.fixture
def codec(auth_config, clock) -> TokenCodec:
    return TokenCodec(auth_config, clock)


@pytest.fixture
def store(clock) -> MemoryStore:
    return MemoryStore(clock)


@pytest.fixture
def auth_service(store, codec, auth_config, clock) -> AuthService:
    return AuthService(store, store, codec, auth_config, clock)


@pytest.fixture
def authenticator(codec, store) -> RequestAuthenticator:
    return RequestAuthenticator(codec, store, store)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        jwt_secret=JWT_SECRET,
        jwt_expiration_ms=TOKEN_TTL_MS,
        storage_backend="memory",
        log_level="WARNING",
    )


@pytest.fixture
def client(test_settings, store, clock) -> Generator[TestClient, None, None]:
    """TestClient over an app wired to the in-memory store and fake clock."""
    app = create_app(test_settings, store=store, clock=clock)
    with TestClient(app) as tc:
        yield tc
