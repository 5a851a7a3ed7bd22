"""Tests for SessionContext: the single owner of "who is signed in"."""

import asyncio

import pytest

from portal.auth.context import SessionContext, SessionState
from portal.errors import ProviderError
from tests.support.fake_platform import FakeAuthClient


class TestInitialResolution:
    def test_loading_until_started(self, auth):
        context = SessionContext(auth)

        assert context.loading is True
        assert context.user is None
        assert context.state.is_authenticated is False

    @pytest.mark.asyncio
    async def test_start_resolves_existing_session(self, auth, user):
        context = SessionContext(auth)

        await context.start()

        assert context.loading is False
        assert context.user.id == user.id
        assert context.state.is_authenticated is True
        context.stop()

    @pytest.mark.asyncio
    async def test_start_resolves_signed_out(self):
        context = SessionContext(FakeAuthClient())

        await context.start()

        assert context.loading is False
        assert context.session is None
        context.stop()

    @pytest.mark.asyncio
    async def test_failed_check_still_resolves_loading(self, auth):
        auth.failures["get_session"] = ProviderError("network down")
        context = SessionContext(auth)

        with pytest.raises(ProviderError):
            await context.start()

        assert context.loading is False
        context.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, auth):
        context = SessionContext(auth)

        await context.start()
        await context.start()

        assert auth.calls.count("get_session") == 1
        context.stop()


class TestSessionChanges:
    @pytest.mark.asyncio
    async def test_follows_sign_in_and_sign_out(self, session_context, auth, other_user):
        auth.sign_in_as(other_user)
        assert session_context.user.id == other_user.id

        auth.expire()
        assert session_context.user is None
        assert session_context.loading is False

    @pytest.mark.asyncio
    async def test_listeners_receive_states(self, session_context, auth, other_user):
        seen: list[SessionState] = []
        remove = session_context.subscribe(seen.append)

        auth.expire()
        remove()
        auth.sign_in_as(other_user)

        assert len(seen) == 1
        assert seen[0].session is None
        assert seen[0].loading is False

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, auth, user):
        context = SessionContext(auth)
        await context.start()
        context.stop()

        auth.expire()

        assert context.user is not None
        assert context.user.id == user.id


class TestWaitForUser:
    @pytest.mark.asyncio
    async def test_returns_immediately_when_signed_in(self, session_context, user):
        assert (await session_context.wait_for_user()).id == user.id

    @pytest.mark.asyncio
    async def test_suspends_until_sign_in(self, other_user):
        auth = FakeAuthClient()
        context = SessionContext(auth)
        await context.start()

        waiter = asyncio.create_task(context.wait_for_user())
        await asyncio.sleep(0)
        assert not waiter.done()

        auth.sign_in_as(other_user)
        resolved = await asyncio.wait_for(waiter, timeout=1)

        assert resolved.id == other_user.id
        context.stop()
