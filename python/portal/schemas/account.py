"""Account forms: credentials and password change."""

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from portal.schemas.validation import required_text

MIN_PASSWORD_LENGTH = 6


class PasswordChangeForm(BaseModel):
    """New password plus its confirmation."""

    password: str = ""
    confirm_password: str = ""

    model_config = ConfigDict(validate_default=True)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                "password_too_short", "Password must be at least 6 characters long"
            )
        return v

    @field_validator("confirm_password")
    @classmethod
    def validate_confirmation(cls, v: str, info: ValidationInfo) -> str:
        # Skipped when the password itself failed validation
        password = info.data.get("password")
        if password is not None and v != password:
            raise PydanticCustomError("password_mismatch", "Passwords do not match")
        return v


class Credentials(BaseModel):
    """Email and password for sign-in and sign-up."""

    email: str = ""
    password: str = ""

    model_config = ConfigDict(validate_default=True)

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: str | None) -> str:
        return required_text(v, "Email is required")

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v: str | None) -> str:
        if not v:
            raise PydanticCustomError("required", "Password is required")
        return v
