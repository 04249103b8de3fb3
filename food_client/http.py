"""
HTTP plumbing shared by every backend client.

Each backend (auth/user, restaurant, order) gets its own ``ServiceClient``
with its own base address, so one backend failing never takes the others
down. They all share the same two policies:

1. Request decoration: the session token, if any, goes out as a bearer credential.
2. Failure policy: 401 on a non-public endpoint tears the session down and
   sends the user to the login page; 403, network failures and every other
   error status are raised to the caller as typed exceptions.
"""

import logging
from typing import Any, Iterable, Optional

import httpx

from food_client.config import REQUEST_TIMEOUT
from food_client.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

# Endpoints where a 401 means "bad credentials", not "session expired"
PUBLIC_PATHS = ("/auth/login", "/auth/register", "/auth/refresh")


class SessionAuth(httpx.Auth):
    """Attach the current session token to each request as it is sent."""

    def __init__(self, session_store) -> None:
        self._session_store = session_store

    def auth_flow(self, request: httpx.Request):
        token = self._session_store.current_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def expire_session(session_store, navigator) -> None:
    """
    React to a 401: forget the session and go to the login page.

    Safe to call any number of times: clearing an empty session is a no-op
    and no redirect is issued from the login page itself.
    """
    session_store.clear_session()
    navigator.redirect_to_login()


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ServiceClient:
    """An HTTP client bound to one backend service."""

    def __init__(
        self,
        name: str,
        base_url: str,
        session_store,
        navigator,
        timeout: float = REQUEST_TIMEOUT,
        public_paths: Iterable[str] = PUBLIC_PATHS,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.name = name
        self.base_url = base_url
        self._session_store = session_store
        self._navigator = navigator
        self._public_paths = tuple(public_paths)
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            auth=SessionAuth(session_store),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def is_public(self, path: str) -> bool:
        return any(endpoint in path for endpoint in self._public_paths)

    def request(
        self,
        method: str,
        path: str,
        *,
        public: bool = False,
        params: Optional[dict] = None,
        json: Any = None,
    ) -> httpx.Response:
        """
        Send a request and apply the failure policy.

        Args:
            method: HTTP method.
            path: Path relative to the service base address.
            public: Mark the call as not needing a session. A 401 on a public
                call is raised without touching the session.
            params: Query string parameters.
            json: JSON-serializable request body.

        Returns:
            The successful response.

        Raises:
            UnauthorizedError: 401.
            PermissionDeniedError: 403.
            NotFoundError: 404.
            ServiceError: Any other non-2xx status.
            ServiceUnavailableError: Network failure or timeout.
        """
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.error("%s: %s %s timed out", self.name, method, path)
            raise ServiceUnavailableError(
                f"{self.name} did not respond in time", service=self.name, timed_out=True
            ) from e
        except httpx.RequestError as e:
            logger.error("%s: network error on %s %s: %s", self.name, method, path, e)
            raise ServiceUnavailableError(
                f"{self.name} is unreachable", service=self.name
            ) from e

        if response.is_success:
            return response

        status = response.status_code
        body = _response_body(response)
        logger.error("%s error: %s %s -> %s", self.name, method, response.request.url, status)

        if status == 401:
            if not (public or self.is_public(path)):
                logger.warning("%s: unauthorized on protected endpoint %s", self.name, path)
                expire_session(self._session_store, self._navigator)
            raise UnauthorizedError("Unauthorized", service=self.name, status_code=status, body=body)
        if status == 403:
            logger.warning("%s: forbidden %s", self.name, path)
            raise PermissionDeniedError(
                "You do not have permission to perform this action",
                service=self.name,
                status_code=status,
                body=body,
            )
        if status == 404:
            raise NotFoundError("Not found", service=self.name, status_code=status, body=body)
        raise ServiceError(
            f"{self.name} request failed with status {status}",
            service=self.name,
            status_code=status,
            body=body,
        )

    def get(self, path: str, **kwargs) -> Any:
        return _response_body(self.request("GET", path, **kwargs))

    def post(self, path: str, **kwargs) -> Any:
        return _response_body(self.request("POST", path, **kwargs))

    def put(self, path: str, **kwargs) -> Any:
        return _response_body(self.request("PUT", path, **kwargs))

    def patch(self, path: str, **kwargs) -> Any:
        return _response_body(self.request("PATCH", path, **kwargs))

    def delete(self, path: str, **kwargs) -> Any:
        return _response_body(self.request("DELETE", path, **kwargs))


def make_service_client(
    name: str,
    base_url: str,
    session_store,
    navigator,
    **kwargs: Any,
) -> ServiceClient:
    """
    Build an independent client for one backend.

    Example:
        orders = make_service_client("Order API", ORDER_API_URL, store, navigator)
        orders.post("/orders", json=payload)
    """
    return ServiceClient(name, base_url, session_store, navigator, **kwargs)
