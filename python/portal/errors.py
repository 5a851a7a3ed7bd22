"""Error definitions.

Three families of errors live here:
- ApiError: errors returned by the existence-check service, with HTTP status
- ProviderError: failures reported by Supabase (auth, store, storage, functions)
- FieldValidationError: local form validation failures, keyed by field
"""

from enum import Enum

import httpx
from pydantic import ValidationError


class ApiErrorCode(str, Enum):
    """Standardized error codes for the service.

    Format: E_CATEGORY_NAME
    """

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_EMAIL_REQUIRED = "E_EMAIL_REQUIRED"

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500
    E_PROVIDER_ERROR = "E_PROVIDER_ERROR"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_EMAIL_REQUIRED: 400,
    ApiErrorCode.E_INTERNAL: 500,
    ApiErrorCode.E_PROVIDER_ERROR: 500,
}


class ApiError(Exception):
    """Base exception for service errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class ProviderError(Exception):
    """Failure reported by the hosted platform.

    The message is the provider's own text and is shown to the user verbatim.

    Attributes:
        message: Provider-reported reason.
        status_code: HTTP status of the failed call (None for transport errors).
        code: Short machine code (provider error code or an E_* value).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = "E_PROVIDER_ERROR",
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


# Keys Supabase services use for the human-readable part of an error body.
# GoTrue: msg / error_description, PostgREST and Storage: message.
_MESSAGE_KEYS = ("msg", "message", "error_description", "error")


def provider_error_from_response(response: httpx.Response, *, code: str) -> ProviderError:
    """Build a ProviderError from a non-2xx platform response.

    Args:
        response: The failed response.
        code: Fallback error code when the body carries none.

    Returns:
        ProviderError with the provider's message.
    """
    message = None
    body = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                message = value
                break
        provider_code = body.get("error_code") or body.get("code")
        if isinstance(provider_code, str) and provider_code:
            code = provider_code

    if not message:
        message = response.text or f"Request failed with status {response.status_code}"

    return ProviderError(message, status_code=response.status_code, code=code)


class FieldValidationError(Exception):
    """Local validation failure reported inline, per field.

    Attributes:
        errors: Mapping of field name to the message shown next to it.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "FieldValidationError":
        """Collapse a pydantic ValidationError to one message per field.

        The first error reported for a field wins.
        """
        errors: dict[str, str] = {}
        for error in exc.errors():
            loc = error.get("loc") or ("form",)
            field = str(loc[0])
            errors.setdefault(field, error["msg"])
        return cls(errors)
