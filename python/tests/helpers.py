"""Test helpers for sessions and identities.

Provides:
- Access token minting (HS256, only the `exp` claim is ever read)
- User, session and GoTrue payload builders
"""

import time
from uuid import uuid4

import jwt

from portal.auth.client import Session, User

TEST_SIGNING_SECRET = "portal-test-secret"
DEFAULT_EXPIRES_IN = 3600  # 1 hour


def create_test_user_id() -> str:
    """Generate a unique user ID for tests."""
    return str(uuid4())


def mint_access_token(user_id: str, expires_in: int = DEFAULT_EXPIRES_IN, **extra_claims) -> str:
    """Mint an access token like the ones GoTrue issues.

    Args:
        user_id: Value of the `sub` claim.
        expires_in: Seconds from now until `exp` (negative for expired).
        **extra_claims: Additional claims.
    """
    now = int(time.time())
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        **extra_claims,
    }
    return jwt.encode(payload, TEST_SIGNING_SECRET, algorithm="HS256")


def make_user(user_id: str | None = None, email: str | None = None) -> User:
    user_id = user_id or create_test_user_id()
    return User(id=user_id, email=email or f"{user_id[:8]}@example.com", user_metadata={})


def make_session(user: User | None = None, expires_in: int = DEFAULT_EXPIRES_IN) -> Session:
    user = user or make_user()
    return Session(
        access_token=mint_access_token(user.id, expires_in),
        refresh_token=f"refresh-{uuid4()}",
        user=user,
        expires_at=int(time.time()) + expires_in,
    )


def session_payload(
    user_id: str | None = None,
    email: str = "reader@example.com",
    expires_in: int = DEFAULT_EXPIRES_IN,
) -> dict:
    """GoTrue token-endpoint response body."""
    user_id = user_id or create_test_user_id()
    return {
        "access_token": mint_access_token(user_id, expires_in),
        "token_type": "bearer",
        "expires_in": expires_in,
        "expires_at": int(time.time()) + expires_in,
        "refresh_token": f"refresh-{uuid4()}",
        "user": {"id": user_id, "email": email, "user_metadata": {}},
    }
