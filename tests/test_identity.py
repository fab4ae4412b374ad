"""
Tests for accounts, sessions and auth events.
"""

import pytest
from jose import jwt

from qr_service.core.exceptions import AuthenticationError, DuplicateAccountError, ValidationError
from qr_service.core.setting import settings
from qr_service.services.auth_events import AuthEvent, AuthEventBus, AuthEventType
from qr_service.services.identity import IdentityProvider


@pytest.fixture
def events():
    bus = AuthEventBus()
    received = []
    bus.subscribe(received.append)
    bus.received = received
    return bus


class TestSignUp:

    async def test_creates_account_and_profile(self, session, events):
        provider = IdentityProvider(session, events)

        auth = await provider.sign_up("Ana@Example.com", "secret123", full_name=" Ana Souza ")

        assert auth.token_type == "bearer"
        assert await provider.verify(auth.access_token) == auth.user_id
        profile = await provider.get_profile(auth.user_id)
        assert profile.full_name == "Ana Souza"
        assert profile.credits == settings.DEFAULT_CREDITS
        assert [e.type for e in events.received] == [AuthEventType.SIGNED_UP, AuthEventType.SIGNED_IN]

    async def test_duplicate_email(self, session):
        provider = IdentityProvider(session)
        await provider.sign_up("ana@example.com", "secret123")

        with pytest.raises(DuplicateAccountError):
            await provider.sign_up("ANA@example.com", "another-secret")

    async def test_short_password(self, session):
        with pytest.raises(ValidationError, match="at least 6"):
            await IdentityProvider(session).sign_up("ana@example.com", "123")


class TestSignIn:

    async def test_round_trip(self, session, events):
        provider = IdentityProvider(session, events)
        created = await provider.sign_up("ana@example.com", "secret123")

        auth = await provider.sign_in(" ana@example.com ", "secret123")

        assert auth.user_id == created.user_id
        assert auth.access_token != created.access_token
        assert events.received[-1].type is AuthEventType.SIGNED_IN

    async def test_wrong_password(self, session):
        provider = IdentityProvider(session)
        await provider.sign_up("ana@example.com", "secret123")

        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await provider.sign_in("ana@example.com", "wrong-password")

    async def test_unknown_email(self, session):
        with pytest.raises(AuthenticationError):
            await IdentityProvider(session).sign_in("nobody@example.com", "secret123")


class TestVerify:

    @pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c"])
    async def test_malformed(self, session, token):
        with pytest.raises(AuthenticationError):
            await IdentityProvider(session).verify(token)

    async def test_wrong_signature(self, session):
        auth = await IdentityProvider(session).sign_up("ana@example.com", "secret123")

        with pytest.raises(AuthenticationError):
            await IdentityProvider(session, secret_key="some-other-key").verify(auth.access_token)

    async def test_expired(self, session):
        provider = IdentityProvider(session, expire_minutes=-5)
        auth = await provider.sign_up("ana@example.com", "secret123")

        with pytest.raises(AuthenticationError):
            await provider.verify(auth.access_token)

    async def test_missing_claims(self, session):
        token = jwt.encode({"sub": "someone"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(AuthenticationError, match="missing required claims"):
            await IdentityProvider(session).verify(token)


class TestSignOut:

    async def test_revokes_token(self, session, events):
        provider = IdentityProvider(session, events)
        auth = await provider.sign_up("ana@example.com", "secret123")

        await provider.sign_out(auth.access_token)

        with pytest.raises(AuthenticationError, match="signed out"):
            await provider.verify(auth.access_token)
        assert events.received[-1].type is AuthEventType.SIGNED_OUT

    async def test_twice_is_harmless(self, session):
        provider = IdentityProvider(session)
        auth = await provider.sign_up("ana@example.com", "secret123")

        await provider.sign_out(auth.access_token)
        await provider.sign_out(auth.access_token)

    async def test_other_sessions_survive(self, session):
        provider = IdentityProvider(session)
        first = await provider.sign_up("ana@example.com", "secret123")
        second = await provider.sign_in("ana@example.com", "secret123")

        await provider.sign_out(first.access_token)

        assert await provider.verify(second.access_token) == first.user_id


class TestEventBus:

    def test_unsubscribe(self, events):
        extra = []
        unsubscribe = events.subscribe(extra.append)
        unsubscribe()
        unsubscribe()

        events.publish(AuthEvent(AuthEventType.SIGNED_OUT, "user-1"))

        assert extra == []
        assert len(events.received) == 1

    def test_failing_listener_does_not_block_others(self):
        def broken(event):
            raise RuntimeError("listener down")

        bus = AuthEventBus()
        received = []
        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.publish(AuthEvent(AuthEventType.SIGNED_IN, "user-1"))

        assert [e.user_id for e in received] == ["user-1"]
