"""Loading helpers that keep client errors inside the view that asked."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from food_client.exceptions import (
    FoodClientError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ViewState(Generic[T]):
    """What a view renders after an async action: data, or an error and whether retrying makes sense."""

    data: Optional[T] = None
    error: Optional[str] = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def error_message(error: FoodClientError, default: str) -> str:
    if isinstance(error, ServiceUnavailableError):
        return f"Cannot reach {error.service or 'the server'}. Please try again."
    if isinstance(error, UnauthorizedError):
        return "Your session has expired. Please log in again."
    if isinstance(error, PermissionDeniedError):
        return error.message
    if isinstance(error, NotFoundError):
        return error.user_message("Not found")
    if isinstance(error, ServiceError):
        return error.user_message(default)
    return error.message or default


def load(fetch: Callable[..., T], *args: Any, default_error: str = "Something went wrong", **kwargs: Any) -> ViewState[T]:
    """Run a fetch and turn any client error into view-local state instead of letting it escape."""
    try:
        return ViewState(data=fetch(*args, **kwargs))
    except FoodClientError as e:
        logger.info("View load failed: %s", e.message)
        return ViewState(
            error=error_message(e, default_error),
            retryable=not isinstance(e, (UnauthorizedError, PermissionDeniedError, NotFoundError)),
        )
