"""Memo schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from portal.schemas.validation import required_text


class Memo(BaseModel):
    """A personal note row. `updated_at` moves on every edit."""

    id: str
    user_id: str
    title: str
    content: str | None = None
    updated_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class MemoForm(BaseModel):
    """Fields accepted when adding or editing a memo."""

    title: str = ""
    content: str | None = None

    model_config = ConfigDict(validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: str | None) -> str:
        return required_text(v, "Title is required")
