"""Profile schemas.

One row per user, keyed by the user id itself.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from portal.schemas.validation import optional_text, valid_url


class Profile(BaseModel):
    """The signed-in user's profile row."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class ProfileForm(BaseModel):
    """Editable profile fields. Blank values clear the field."""

    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return optional_text(v)

    @field_validator("avatar_url", mode="before")
    @classmethod
    def validate_avatar_url(cls, v: str | None) -> str | None:
        url = optional_text(v)
        if url is None:
            return None
        return valid_url(url, "Please enter a valid URL")
