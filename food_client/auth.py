"""Login, registration and logout: the only explicit session transitions."""

import logging
from typing import Iterable, Optional

from food_client.config import HOME_PATH, LOGIN_PATH
from food_client.exceptions import (
    FoodClientError,
    NotFoundError,
    ServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from food_client.schemas import AuthResponse, LoginRequest, RegisterRequest, validate_form
from food_client.session import SessionUser, parse_roles, token_claims

logger = logging.getLogger(__name__)


def session_user_from(response: AuthResponse, email: Optional[str]) -> SessionUser:
    subject = token_claims(response.access_token).get("sub")
    return SessionUser(
        display_name=response.full_name,
        email=email,
        identity=str(subject) if subject is not None else None,
        roles=parse_roles(role.name for role in response.roles),
    )


def auth_error_message(error: FoodClientError, default: str) -> str:
    if isinstance(error, ServiceUnavailableError):
        return "Network error. Please check if server is running."
    if isinstance(error, UnauthorizedError):
        return "Invalid email or password"
    if isinstance(error, NotFoundError):
        return "Service not available"
    if isinstance(error, ServiceError):
        if error.status_code == 400 and not error.messages and not error.server_message:
            return "Invalid request data"
        return error.user_message(default)
    return error.message or default


class Authenticator:
    def __init__(self, auth_api, session_store, navigator) -> None:
        self.auth_api = auth_api
        self.session_store = session_store
        self.navigator = navigator

    def login(self, email: str, password: str) -> SessionUser:
        """
        Log in and go back to where the user came from (or home).

        Raises:
            FormValidationError: The form is invalid; nothing was sent.
            FoodClientError: The user service rejected the login or is down.
        """
        credentials = validate_form(LoginRequest, {"email": email, "password": password})
        response = self.auth_api.login(credentials)
        return self._establish(response, credentials.email)

    def register(
        self,
        email: str,
        password: str,
        full_name: str,
        addresses: Iterable[dict] = (),
    ) -> SessionUser:
        """Create an account; the backend answers like a login, so the user is logged in straight away."""
        account = validate_form(
            RegisterRequest,
            {
                "email": email,
                "password": password,
                "fullName": full_name,
                "addresses": list(addresses),
            },
        )
        response = self.auth_api.register(account)
        return self._establish(response, account.email)

    def logout(self) -> None:
        self.session_store.clear_session()
        self.navigator.navigate(LOGIN_PATH)

    def _establish(self, response: AuthResponse, email: str) -> SessionUser:
        user = session_user_from(response, email)
        self.session_store.set_session(response.access_token, user)
        logger.info("Logged in as %s (%s)", user.display_name, ", ".join(sorted(r.value for r in user.roles)))
        target = self.navigator.pop_redirect(HOME_PATH)
        self.navigator.navigate(HOME_PATH if target == LOGIN_PATH else target)
        return user
