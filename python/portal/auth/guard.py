"""Route guard decisions.

Pure functions of SessionState; the guard holds no state of its own.
"""

from dataclasses import dataclass
from enum import Enum

from portal.auth.context import SessionState

LOGIN_PATH = "/login"
HOME_PATH = "/"


class GuardOutcome(str, Enum):
    """What the view layer should do."""

    PLACEHOLDER = "placeholder"
    RENDER = "render"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    location: str | None = None


def protect(state: SessionState) -> GuardDecision:
    """Decide for a protected view.

    While the initial session check is pending, show a placeholder;
    otherwise render for a signed-in user or redirect to sign-in.
    """
    if state.loading:
        return GuardDecision(GuardOutcome.PLACEHOLDER)
    if state.session is None:
        return GuardDecision(GuardOutcome.REDIRECT, LOGIN_PATH)
    return GuardDecision(GuardOutcome.RENDER)


def login_view(state: SessionState) -> GuardDecision:
    """Decide for the sign-in view: signed-in users go home."""
    if state.session is not None:
        return GuardDecision(GuardOutcome.REDIRECT, HOME_PATH)
    return GuardDecision(GuardOutcome.RENDER)


def decide(path: str, state: SessionState) -> GuardDecision:
    """Route a path: the sign-in view is public, everything else is protected."""
    if path == LOGIN_PATH:
        return login_view(state)
    return protect(state)
