"""Food client exceptions."""

from typing import Any, Dict, Optional


class FoodClientError(Exception):
    """Base exception for food client errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ServiceError(FoodClientError):
    """A backend service answered with a non-success status."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.body = body

    @property
    def messages(self) -> Dict[str, str]:
        """Field-keyed validation messages from a ``{"messages": {...}}`` error body."""
        if isinstance(self.body, dict) and isinstance(self.body.get("messages"), dict):
            return {str(k): str(v) for k, v in self.body["messages"].items()}
        return {}

    @property
    def server_message(self) -> Optional[str]:
        if isinstance(self.body, dict) and self.body.get("message"):
            return str(self.body["message"])
        return None

    def user_message(self, default: str) -> str:
        """Most specific message available: field messages, then the server message, then ``default``."""
        if self.messages:
            return ", ".join(self.messages.values())
        return self.server_message or default


class UnauthorizedError(ServiceError):
    """401: missing, invalid or expired credentials."""


class PermissionDeniedError(ServiceError):
    """403: authenticated but not allowed."""


class NotFoundError(ServiceError):
    """404: the resource does not exist."""


class UnexpectedResponseError(ServiceError):
    """A success response whose body does not have the expected shape."""


class ServiceUnavailableError(FoodClientError):
    """The service could not be reached or did not answer in time."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.timed_out = timed_out


class FormValidationError(FoodClientError):
    """Client-side form validation failed."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(next(iter(errors.values()), "Invalid form data"))
        self.errors = errors


class DishUnavailableError(FoodClientError):
    """A dish in the cart is no longer on the restaurant's menu."""

    def __init__(self, dish_id: int, dish_name: str) -> None:
        super().__init__(f'"{dish_name}" is no longer available')
        self.dish_id = dish_id
