"""Unit tests for Pydantic models and principal helpers."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from internship_hours.models.auth import LoginRequest, RegisterRequest, UpdatePrincipalRequest
from internship_hours.models.principal import (
    Principal,
    StoredToken,
    authority_for_role,
    normalize_username,
)

NOW = datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


class TestPrincipalHelpers:
    @pytest.mark.parametrize(
        "role,expected",
        [
            ("ADMIN", "ROLE_ADMIN"),
            ("admin", "ROLE_ADMIN"),
            (" Estagiario ", "ROLE_ESTAGIARIO"),
            ("ROLE_ADMIN", "ROLE_ADMIN"),
        ],
    )
    def test_authority_for_role(self, role, expected):
        assert authority_for_role(role) == expected

    @pytest.mark.parametrize("role", ["", "   ", None])
    def test_blank_role_rejected(self, role):
        with pytest.raises(ValueError):
            authority_for_role(role)

    def test_normalize_username(self):
        assert normalize_username("  Alice ") == "alice"

    def test_principal_authorities(self):
        principal = Principal(
            id=1, public_id=uuid4(), username="alice", role="admin", created_at=NOW, updated_at=NOW
        )
        assert principal.authorities == ("ROLE_ADMIN",)


class TestStoredToken:
    def _token(self, **overrides):
        fields = dict(
            id=1,
            public_id=uuid4(),
            token="t",
            principal_id=1,
            issued_at=NOW,
            expires_at=NOW + timedelta(hours=1),
        )
        fields.update(overrides)
        return StoredToken(**fields)

    def test_active_before_expiry(self):
        assert self._token().is_active(NOW + timedelta(minutes=59)) is True

    def test_inactive_at_expiry(self):
        assert self._token().is_active(NOW + timedelta(hours=1)) is False

    def test_revoked_never_active(self):
        assert self._token(revoked=True).is_active(NOW) is False


class TestLoginRequest:
    def test_valid(self):
        request = LoginRequest(username="alice", password="password-123")
        assert request.username == "alice"

    @pytest.mark.parametrize(
        "username,password",
        [
            ("a", "password-123"),
            ("   ", "password-123"),
            ("alice", "short"),
            ("alice", "        "),
        ],
    )
    def test_invalid(self, username, password):
        with pytest.raises(ValidationError):
            LoginRequest(username=username, password=password)

    def test_password_over_bcrypt_limit(self):
        with pytest.raises(ValidationError):
            LoginRequest(username="alice", password="é" * 40)


class TestRegisterRequest:
    def test_role_is_trimmed(self):
        request = RegisterRequest(username="alice", password="password-123", role=" ADMIN ")
        assert request.role == "ADMIN"

    def test_role_required(self):
        with pytest.raises(ValidationError):
            RegisterRequest(username="alice", password="password-123")


class TestUpdatePrincipalRequest:
    def test_all_fields_optional(self):
        request = UpdatePrincipalRequest()
        assert (request.username, request.password, request.role) == (None, None, None)

    def test_blank_role_rejected(self):
        with pytest.raises(ValidationError):
            UpdatePrincipalRequest(role="   ")
