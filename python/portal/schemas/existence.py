"""Request and response schemas for the email existence check."""

from pydantic import BaseModel


class EmailCheckRequest(BaseModel):
    """Body of POST /check-email-exists."""

    email: str | None = None


class EmailCheckResponse(BaseModel):
    """Whether an identity with the email exists."""

    exists: bool
