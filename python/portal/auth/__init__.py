"""Authentication module.

This module provides:
- Auth provider clients (user-facing and service-role admin)
- Session storage (in-memory by default, file when persistence is enabled)
- SessionContext: process-wide session state
- Route guard decisions
"""

from portal.auth.client import (
    AdminAuthClient,
    AuthClient,
    AuthEvent,
    Session,
    Subscription,
    User,
    is_user_not_found,
)
from portal.auth.context import SessionContext, SessionState
from portal.auth.guard import GuardDecision, GuardOutcome, decide, login_view, protect
from portal.auth.session_store import FileSessionStore, MemorySessionStore, SessionStore

__all__ = [
    "AdminAuthClient",
    "AuthClient",
    "AuthEvent",
    "Session",
    "Subscription",
    "User",
    "is_user_not_found",
    "SessionContext",
    "SessionState",
    "GuardDecision",
    "GuardOutcome",
    "decide",
    "login_view",
    "protect",
    "FileSessionStore",
    "MemorySessionStore",
    "SessionStore",
]
