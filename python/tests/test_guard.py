"""Tests for route guard decisions."""

import pytest

from portal.auth.context import SessionState
from portal.auth.guard import (
    HOME_PATH,
    LOGIN_PATH,
    GuardDecision,
    GuardOutcome,
    decide,
    login_view,
    protect,
)
from tests.helpers import make_session

LOADING = SessionState()
SIGNED_OUT = SessionState(session=None, loading=False)


@pytest.fixture
def signed_in() -> SessionState:
    return SessionState(session=make_session(), loading=False)


class TestProtect:
    def test_placeholder_while_loading(self):
        # Loading is never treated as signed out
        assert protect(LOADING) == GuardDecision(GuardOutcome.PLACEHOLDER)

    def test_redirect_when_signed_out(self):
        assert protect(SIGNED_OUT) == GuardDecision(GuardOutcome.REDIRECT, LOGIN_PATH)

    def test_render_when_signed_in(self, signed_in):
        assert protect(signed_in) == GuardDecision(GuardOutcome.RENDER)


class TestLoginView:
    def test_signed_in_user_sent_home(self, signed_in):
        assert login_view(signed_in) == GuardDecision(GuardOutcome.REDIRECT, HOME_PATH)

    def test_renders_for_anonymous(self):
        assert login_view(SIGNED_OUT).outcome is GuardOutcome.RENDER


class TestDecide:
    @pytest.mark.parametrize("path", ["/", "/links", "/memos", "/documents", "/profile"])
    def test_protected_paths(self, path, signed_in):
        assert decide(path, SIGNED_OUT).location == LOGIN_PATH
        assert decide(path, LOADING).outcome is GuardOutcome.PLACEHOLDER
        assert decide(path, signed_in).outcome is GuardOutcome.RENDER

    def test_login_path_is_public(self):
        assert decide(LOGIN_PATH, SIGNED_OUT).outcome is GuardOutcome.RENDER
