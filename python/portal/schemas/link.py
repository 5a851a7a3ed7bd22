"""Link schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from portal.schemas.validation import required_text, valid_url


class Link(BaseModel):
    """A saved bookmark row."""

    id: str
    user_id: str
    title: str
    url: str
    created_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class LinkForm(BaseModel):
    """Fields accepted when adding or editing a link."""

    title: str = ""
    url: str = ""

    model_config = ConfigDict(validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: str | None) -> str:
        return required_text(v, "Title is required")

    @field_validator("url", mode="before")
    @classmethod
    def validate_url(cls, v: str | None) -> str:
        return valid_url(v, "Please enter a valid URL")
