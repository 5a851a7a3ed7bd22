"""Document schemas.

A document row describes a blob in storage. `storage_path` is fixed at
upload time; only `name` can be changed afterwards.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from portal.schemas.validation import required_text


class Document(BaseModel):
    """An uploaded document row."""

    id: str
    user_id: str
    name: str
    file_type: str | None = None
    file_size: int | None = None
    storage_path: str
    created_at: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class DocumentRenameForm(BaseModel):
    """Fields accepted when renaming a document."""

    name: str = ""

    model_config = ConfigDict(validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: str | None) -> str:
        return required_text(v, "Document name is required")
