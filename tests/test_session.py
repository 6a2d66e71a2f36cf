"""Tests for turning session tokens into principals."""

import asyncio

import pytest
from uuid import uuid4

from ledger.models import Principal, Role, User
from ledger.services.session import RequestContext, TokenSessionResolver


def run(coro):
    return asyncio.run(coro)


def bearer(token):
    return RequestContext(headers={"Authorization": f"Bearer {token}"})


@pytest.fixture
def resolver(store, admin_user, member_user):
    return TokenSessionResolver(store, {"a": admin_user.id, "m": member_user.id})


class TestTokenSessionResolver:
    """Tests for token lookup and the per-request role read."""

    def test_bearer_header_wins_over_cookie(self, resolver, admin_user):
        request = RequestContext(
            headers={"authorization": "bearer a"},
            cookies={"session_token": "m"},
        )
        assert run(resolver.resolve(request)) == Principal(id=admin_user.id, role=Role.ADMIN)

    def test_custom_cookie_name(self, store, member_user):
        resolver = TokenSessionResolver(store, {"m": member_user.id}, cookie_name="sid")
        principal = run(resolver.resolve(RequestContext(cookies={"sid": "m"})))
        assert principal.id == member_user.id

    def test_missing_or_unknown_token(self, resolver):
        assert run(resolver.resolve(RequestContext())) is None
        assert run(resolver.resolve(bearer("unknown"))) is None
        assert run(resolver.resolve(RequestContext(headers={"Authorization": "Basic a"}))) is None

    def test_role_is_read_from_the_store(self, resolver, store, member_user):
        """Test a promotion is visible without reissuing the session."""
        assert run(resolver.resolve(bearer("m"))).role == Role.USER

        run(store.update_user(member_user.id, {"role": Role.ADMIN}))

        assert run(resolver.resolve(bearer("m"))).role == Role.ADMIN

    def test_deleted_user_has_no_session(self, resolver, store, member_user):
        run(store.delete_user(member_user.id))
        assert run(resolver.resolve(bearer("m"))) is None

    def test_deleted_user_token_is_revoked(self, resolver, store, member_user):
        """Test the token stays dead even if the id is provisioned again."""
        run(store.delete_user(member_user.id))
        run(resolver.resolve(bearer("m")))

        run(store.create_user(member_user))

        assert run(resolver.resolve(bearer("m"))) is None

    def test_register_and_revoke(self, resolver, store):
        user = run(store.create_user(User(name="Nia New", email="nia@example.com")))

        resolver.register("n", user.id)
        assert run(resolver.resolve(bearer("n"))).id == user.id

        resolver.revoke("n")
        assert run(resolver.resolve(bearer("n"))) is None

    def test_revoking_unknown_token_is_harmless(self, resolver):
        resolver.revoke(str(uuid4()))
        assert run(resolver.resolve(bearer("a"))) is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
