"""Email existence check.

POST {"email": "..."} ->
    200 {"exists": true}     an identity with this email exists
    200 {"exists": false}    the provider reports "User not found"
    400 {"error": "Email is required"}
    500 <reason text>        any other failure, provider or not

Served at "/" (function root) and "/check-email-exists".
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from portal.api.deps import get_admin_client
from portal.auth.client import AdminAuthClient, is_user_not_found
from portal.errors import ApiErrorCode, InvalidRequestError, ProviderError
from portal.logging import get_logger
from portal.schemas import EmailCheckRequest, EmailCheckResponse

logger = get_logger(__name__)

EMAIL_REQUIRED_MESSAGE = "Email is required"

router = APIRouter()


@router.post("/", response_model=EmailCheckResponse)
@router.post("/check-email-exists", response_model=EmailCheckResponse)
async def check_email_exists(
    payload: EmailCheckRequest,
    admin: AdminAuthClient = Depends(get_admin_client),
) -> EmailCheckResponse:
    """Report whether an identity with the given email exists."""
    email = (payload.email or "").strip()
    if not email:
        raise InvalidRequestError(ApiErrorCode.E_EMAIL_REQUIRED, EMAIL_REQUIRED_MESSAGE)

    try:
        await admin.get_user_by_email(email)
    except ProviderError as e:
        if is_user_not_found(e):
            logger.info("email_existence_checked", exists=False)
            return EmailCheckResponse(exists=False)
        raise
    except Exception as e:
        # Answered here so the reason text still passes through CORS
        logger.exception("email_existence_check_failed", error_type=type(e).__name__)
        return PlainTextResponse(str(e) or type(e).__name__, status_code=500)

    logger.info("email_existence_checked", exists=True)
    return EmailCheckResponse(exists=True)
