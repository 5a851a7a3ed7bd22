"""Tests for error types and provider error extraction."""

import httpx
import pytest
from pydantic import ValidationError

from portal.errors import (
    ERROR_CODE_TO_STATUS,
    ApiError,
    ApiErrorCode,
    FieldValidationError,
    InvalidRequestError,
    provider_error_from_response,
)
from portal.schemas import LinkForm


class TestApiErrors:
    def test_every_code_has_a_status(self):
        for code in ApiErrorCode:
            assert code in ERROR_CODE_TO_STATUS

    def test_status_derived_from_code(self):
        err = ApiError(ApiErrorCode.E_EMAIL_REQUIRED, "Email is required")
        assert err.status_code == 400
        assert err.message == "Email is required"

    def test_invalid_request_defaults(self):
        err = InvalidRequestError()
        assert err.code == ApiErrorCode.E_INVALID_REQUEST
        assert err.status_code == 400


class TestProviderErrorFromResponse:
    """The provider's own message is kept verbatim."""

    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"msg": "Invalid login credentials"}, "Invalid login credentials"),
            ({"message": "permission denied for table links"}, "permission denied for table links"),
            ({"error_description": "Invalid Refresh Token"}, "Invalid Refresh Token"),
            ({"error": "Bucket not found"}, "Bucket not found"),
        ],
    )
    def test_message_keys(self, body, expected):
        response = httpx.Response(400, json=body)
        err = provider_error_from_response(response, code="E_X")
        assert err.message == expected
        assert err.status_code == 400

    def test_provider_code_wins(self):
        response = httpx.Response(
            422, json={"msg": "Signups not allowed", "error_code": "signup_disabled"}
        )
        err = provider_error_from_response(response, code="E_SIGN_UP_FAILED")
        assert err.code == "signup_disabled"

    def test_fallback_code(self):
        response = httpx.Response(500, json={"message": "boom"})
        assert provider_error_from_response(response, code="E_X").code == "E_X"

    def test_non_json_body_uses_text(self):
        response = httpx.Response(502, text="Bad Gateway")
        err = provider_error_from_response(response, code="E_X")
        assert err.message == "Bad Gateway"

    def test_empty_body_uses_status(self):
        response = httpx.Response(503)
        err = provider_error_from_response(response, code="E_X")
        assert "503" in err.message


class TestFieldValidationError:
    def test_one_message_per_field(self):
        with pytest.raises(ValidationError) as exc_info:
            LinkForm.model_validate({"title": "", "url": "nope"})
        err = FieldValidationError.from_pydantic(exc_info.value)
        assert err.errors == {"title": "Title is required", "url": "Please enter a valid URL"}
