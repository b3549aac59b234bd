"""Unit tests for password hashing and CredentialVerifier."""

from unittest.mock import AsyncMock, patch

import pytest

from internship_hours.services.credentials import (
    CredentialVerifier,
    hash_password,
    verify_password,
)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    """Tests for bcrypt hash_password / verify_password."""

    def test_hash_password_returns_bcrypt_string(self):
        hashed = hash_password("my-secret-pw")
        assert hashed.startswith("$2b$") or hashed.startswith("$2a$")
        assert len(hashed) == 60

    def test_hash_password_different_salts(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_verify_password_correct(self):
        hashed = hash_password("correct-horse-battery")
        assert verify_password("correct-horse-battery", hashed) is True

    def test_verify_password_wrong(self):
        hashed = hash_password("right-password")
        assert verify_password("wrong-password", hashed) is False

    def test_verify_password_unusable_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


# ---------------------------------------------------------------------------
# CredentialVerifier
# ---------------------------------------------------------------------------

class TestCredentialVerifier:
    async def test_returns_principal_for_valid_credentials(self, store):
        created = await store.create_principal("alice", hash_password("password-123"), "ESTAGIARIO")
        verifier = CredentialVerifier(store)

        principal = await verifier.verify("alice", "password-123")

        assert principal is not None
        assert principal.id == created.id

    async def test_username_is_normalized(self, store):
        await store.create_principal("alice", hash_password("password-123"), "ESTAGIARIO")
        verifier = CredentialVerifier(store)

        assert await verifier.verify("  ALICE ", "password-123") is not None

    async def test_wrong_password_returns_none(self, store):
        await store.create_principal("alice", hash_password("password-123"), "ESTAGIARIO")
        verifier = CredentialVerifier(store)

        assert await verifier.verify("alice", "password-456") is None

    async def test_unknown_user_returns_none_after_hash_check(self, store):
        verifier = CredentialVerifier(store)

        with patch(
            "internship_hours.services.credentials.verify_password", return_value=False
        ) as mock_verify:
            result = await verifier.verify("ghost", "password-123")

        assert result is None
        mock_verify.assert_called_once()

    async def test_password_never_logged(self, store):
        await store.create_principal("alice", hash_password("password-123"), "ESTAGIARIO")
        verifier = CredentialVerifier(store)

        with patch("internship_hours.services.credentials.logger") as mock_logger:
            await verifier.verify("alice", "wrong-password-xyz")

        for call in mock_logger.info.call_args_list:
            assert "wrong-password-xyz" not in str(call)

    async def test_lookup_uses_store(self):
        principals = AsyncMock()
        principals.find_credentials = AsyncMock(return_value=None)
        verifier = CredentialVerifier(principals)

        await verifier.verify("Bob", "password-123")

        principals.find_credentials.assert_awaited_once_with("bob")
