"""Shared field validators for portal forms.

Validators raise PydanticCustomError so the message a user sees is exactly
the text given here, without pydantic's "Value error, " prefix.
"""

from urllib.parse import urlparse

from pydantic_core import PydanticCustomError

MAX_URL_LENGTH = 2048


def required_text(value: str | None, message: str) -> str:
    """Return the stripped value, or fail with `message` when it is blank."""
    text = (value or "").strip()
    if not text:
        raise PydanticCustomError("required", message)
    return text


def is_absolute_url(value: str) -> bool:
    """Check for an absolute URL: a scheme plus a host."""
    if not value or len(value) > MAX_URL_LENGTH or any(c.isspace() for c in value):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def valid_url(value: str | None, message: str) -> str:
    """Return the stripped URL, or fail with `message` when it is not absolute."""
    url = (value or "").strip()
    if not is_absolute_url(url):
        raise PydanticCustomError("url", message)
    return url


def optional_text(value: str | None) -> str | None:
    """Normalize blank optional text to None."""
    if value is None:
        return None
    text = value.strip()
    return text or None
