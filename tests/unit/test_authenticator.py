"""Unit tests for RequestAuthenticator."""

from datetime import timedelta

import pytest

from internship_hours.services.authenticator import RequestAuthenticator, extract_bearer_token
from internship_hours.services.errors import (
    InvalidSignature,
    MalformedToken,
    TokenExpired,
    TokenRevoked,
    UnknownPrincipal,
)


def bearer(token: str) -> str:
    return f"Bearer {token}"


@pytest.fixture
async def alice_token(auth_service):
    _, token = await auth_service.register("alice", "password-123", "ESTAGIARIO")
    return token


class TestExtractBearerToken:
    @pytest.mark.parametrize("header", [None, "", "Basic dXNlcjpwYXNz", "bearer abc", "Token abc"])
    def test_non_bearer_is_absent(self, header):
        assert extract_bearer_token(header) is None

    def test_strips_scheme(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


class TestAuthenticate:
    async def test_anonymous_without_header(self, authenticator):
        assert await authenticator.authenticate(None) is None

    async def test_other_scheme_is_anonymous(self, authenticator):
        assert await authenticator.authenticate("Basic dXNlcjpwYXNz") is None

    async def test_valid_token_builds_context(self, authenticator, alice_token, clock):
        context = await authenticator.authenticate(bearer(alice_token))

        assert context.principal.username == "alice"
        assert context.authorities == ("ROLE_ESTAGIARIO",)
        assert context.token == alice_token
        assert context.claims.subject == "alice"
        assert context.claims.issued_at == clock()

    async def test_empty_bearer_is_malformed(self, authenticator):
        with pytest.raises(MalformedToken):
            await authenticator.authenticate("Bearer ")

    async def test_garbage_is_malformed(self, authenticator):
        with pytest.raises(MalformedToken):
            await authenticator.authenticate(bearer("not-a-token"))

    async def test_bad_signature(self, authenticator, alice_token):
        head, _, signature = alice_token.rpartition(".")
        forged = f"{head}.{'A' if signature[0] != 'A' else 'B'}{signature[1:]}"
        with pytest.raises(InvalidSignature):
            await authenticator.authenticate(bearer(forged))

    async def test_expired(self, authenticator, alice_token, clock, auth_config):
        clock.advance(milliseconds=auth_config.token_ttl_ms)
        with pytest.raises(TokenExpired):
            await authenticator.authenticate(bearer(alice_token))

    async def test_revoked(self, authenticator, auth_service, alice_token):
        await auth_service.logout(alice_token)
        with pytest.raises(TokenRevoked):
            await authenticator.authenticate(bearer(alice_token))

    async def test_signed_but_never_stored(self, authenticator, auth_service, codec, clock):
        await auth_service.register("alice", "password-123", "ESTAGIARIO")
        clock.advance(seconds=1)
        unstored = codec.encode("alice", clock(), timedelta(minutes=5))

        with pytest.raises(TokenRevoked):
            await authenticator.authenticate(bearer(unstored))

    async def test_deleted_principal(self, authenticator, auth_service, store, alice_token):
        principal = await store.find_by_username("alice")
        await auth_service.delete_principal(principal)

        assert await store.find_by_token(alice_token) is None
        with pytest.raises(TokenRevoked):
            await authenticator.authenticate(bearer(alice_token))

    async def test_subject_without_principal(self, codec, store, clock):
        """A stored token whose subject no longer resolves is rejected."""
        principals = _EmptyPrincipals()
        await store.create_principal("alice", "hash", "ESTAGIARIO")
        token = codec.encode("alice", clock(), timedelta(minutes=5))
        await store.save_token(token, "alice", clock(), clock() + timedelta(minutes=5))
        authenticator = RequestAuthenticator(codec, store, principals)

        with pytest.raises(UnknownPrincipal):
            await authenticator.authenticate(bearer(token))

    async def test_token_owned_by_another_principal(self, authenticator, store, alice_token, clock):
        await store.create_principal("carol", "hash", "ESTAGIARIO")
        await store.save_token(alice_token, "carol", clock(), clock() + timedelta(minutes=5))

        with pytest.raises(TokenRevoked):
            await authenticator.authenticate(bearer(alice_token))


class TestReentrant:
    async def test_existing_context_not_overwritten(self, authenticator, auth_service, alice_token, clock):
        existing = await authenticator.authenticate(bearer(alice_token))
        clock.advance(seconds=1)
        _, bob_token = await auth_service.register("bob", "password-123", "ADMIN")

        context = await authenticator.authenticate(bearer(bob_token), current=existing)

        assert context is existing

    async def test_existing_context_does_not_skip_decoding(self, authenticator, alice_token):
        existing = await authenticator.authenticate(bearer(alice_token))
        with pytest.raises(MalformedToken):
            await authenticator.authenticate(bearer("garbage"), current=existing)

    async def test_existing_context_skips_store(self, authenticator, auth_service, alice_token):
        existing = await authenticator.authenticate(bearer(alice_token))
        await auth_service.logout(alice_token)

        assert await authenticator.authenticate(bearer(alice_token), current=existing) is existing


class TestDuplicateActiveTokens:
    """Two logins that both miss the reuse lookup each mint a token."""

    async def test_both_tokens_valid_and_independently_revocable(
        self, authenticator, auth_service, store, clock
    ):
        alice = await store.create_principal("alice", "hash", "ESTAGIARIO")
        first = await auth_service.issuer.issue_new("alice")
        clock.advance(milliseconds=1)
        second = await auth_service.issuer.issue_new("alice")
        assert first != second

        assert (await authenticator.authenticate(bearer(first))).principal.id == alice.id
        assert (await authenticator.authenticate(bearer(second))).principal.id == alice.id

        await auth_service.logout(second)

        with pytest.raises(TokenRevoked):
            await authenticator.authenticate(bearer(second))
        assert (await authenticator.authenticate(bearer(first))).principal.id == alice.id
        assert await auth_service.issuer.issue_or_reuse(alice) == first


class _EmptyPrincipals:
    async def find_by_username(self, username):
        return None
