"""Account operations: sign-in, sign-up, sign-out and password change.

Like the resource managers, these report outcomes through the notifier and
inline field errors; provider failures are never raised to the caller.
Sign-up restrictions (such as an allowed email domain) are enforced by the
identity provider, and its message is shown as-is.
"""

from pydantic import BaseModel, ValidationError

from portal.auth.client import AuthClient
from portal.auth.guard import LOGIN_PATH
from portal.cache import QueryCache
from portal.errors import FieldValidationError, ProviderError
from portal.functions import ExistenceCheckClient
from portal.logging import get_logger
from portal.notify import Notifier
from portal.schemas import Credentials, PasswordChangeForm

logger = get_logger(__name__)

PASSWORD_UPDATED_MESSAGE = "Password updated successfully!"
PASSWORD_UPDATE_FAILED_MESSAGE = "Failed to update password."
ACCOUNT_EXISTS_MESSAGE = "An account with this email already exists."
CONFIRM_EMAIL_MESSAGE = "Check your email for the confirmation link."


def _validate(model: type[BaseModel], fields: dict) -> BaseModel:
    try:
        return model.model_validate(fields)
    except ValidationError as e:
        raise FieldValidationError.from_pydantic(e) from e


class AccountService:
    """Credential and password operations for the current user.

    Args:
        auth: Identity provider client.
        notifier: Toast sink.
        cache: Query cache, cleared on sign-out.
        existence: Optional existence-check client used before sign-up.
    """

    def __init__(
        self,
        auth: AuthClient,
        notifier: Notifier,
        *,
        cache: QueryCache | None = None,
        existence: ExistenceCheckClient | None = None,
    ):
        self._auth = auth
        self._notifier = notifier
        self._cache = cache
        self._existence = existence
        self._field_errors: dict[str, str] = {}
        self._busy = False

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self._field_errors)

    @property
    def busy(self) -> bool:
        return self._busy

    def _check(self, model: type[BaseModel], fields: dict) -> BaseModel | None:
        try:
            form = _validate(model, fields)
        except FieldValidationError as e:
            self._field_errors = e.errors
            return None
        self._field_errors = {}
        return form

    async def change_password(self, password: str, confirm_password: str) -> bool:
        """Set a new password for the signed-in user.

        Returns:
            True when updated (the form should then be reset).
        """
        if self._busy:
            logger.info("account_action_ignored", action="change_password")
            return False
        form = self._check(
            PasswordChangeForm, {"password": password, "confirm_password": confirm_password}
        )
        if form is None:
            return False

        self._busy = True
        try:
            await self._auth.update_user(password=form.password)
        except ProviderError as e:
            logger.warning("password_update_failed", error=e.message, error_code=e.code)
            self._notifier.error(e.message or PASSWORD_UPDATE_FAILED_MESSAGE)
            return False
        finally:
            self._busy = False

        logger.info("password_updated")
        self._notifier.success(PASSWORD_UPDATED_MESSAGE)
        return True

    async def sign_in(self, email: str, password: str) -> bool:
        """Sign in with email and password."""
        if self._busy:
            logger.info("account_action_ignored", action="sign_in")
            return False
        form = self._check(Credentials, {"email": email, "password": password})
        if form is None:
            return False

        self._busy = True
        try:
            await self._auth.sign_in_with_password(form.email, form.password)
        except ProviderError as e:
            logger.warning("sign_in_failed", error=e.message, error_code=e.code)
            self._notifier.error(e.message)
            return False
        finally:
            self._busy = False
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        """Register a new account.

        When an existence-check client is configured, a registered email is
        reported inline before the provider is asked. A failing pre-check
        does not block sign-up.

        Returns:
            True when the provider accepted the registration (signed in, or
            awaiting email confirmation).
        """
        if self._busy:
            logger.info("account_action_ignored", action="sign_up")
            return False
        form = self._check(Credentials, {"email": email, "password": password})
        if form is None:
            return False

        self._busy = True
        try:
            if self._existence is not None:
                try:
                    exists = await self._existence.exists(form.email)
                except ProviderError as e:
                    logger.warning("existence_precheck_failed", error=e.message)
                    exists = False
                if exists:
                    self._field_errors = {"email": ACCOUNT_EXISTS_MESSAGE}
                    return False

            session = await self._auth.sign_up(form.email, form.password)
        except ProviderError as e:
            logger.warning("sign_up_failed", error=e.message, error_code=e.code)
            self._notifier.error(e.message)
            return False
        finally:
            self._busy = False

        if session is None:
            self._notifier.success(CONFIRM_EMAIL_MESSAGE)
        return True

    async def sign_out(self) -> str:
        """Sign out and drop cached data.

        Returns:
            The path to navigate to afterwards.
        """
        try:
            await self._auth.sign_out()
        except ProviderError as e:
            # The local session is already gone.
            logger.warning("sign_out_failed", error=e.message, error_code=e.code)
        if self._cache is not None:
            self._cache.clear()
        return LOGIN_PATH
