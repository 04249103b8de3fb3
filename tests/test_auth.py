"""Tests for login, registration and logout - mocked user service."""

import json

import httpx
import pytest
import respx

from food_client.auth import Authenticator, auth_error_message
from food_client.exceptions import FormValidationError, ServiceUnavailableError, UnauthorizedError
from food_client.session import Role

from conftest import API_URL


@pytest.fixture
def authenticator(clients, store, navigator) -> Authenticator:
    return Authenticator(clients.auth_api, store, navigator)


@pytest.fixture
def login_page(navigator):
    navigator.navigate("/login")
    return navigator


@respx.mock
def test_login_establishes_session_and_goes_home(authenticator, store, login_page):
    route = respx.post(f"{API_URL}/auth/login").mock(
        return_value=httpx.Response(
            200, json={"accessToken": "T1", "roles": [{"name": "USER"}], "fullName": "A B"}
        )
    )

    user = authenticator.login("a@b.com", "secret1")

    assert json.loads(route.calls.last.request.content) == {"email": "a@b.com", "password": "secret1"}
    assert "Authorization" not in route.calls.last.request.headers
    assert store.current_token() == "T1"
    assert store.current_user().display_name == "A B"
    assert store.current_user().roles == frozenset({Role.USER})
    assert user.email == "a@b.com"
    assert login_page.current_path == "/"


@respx.mock
def test_login_returns_to_remembered_path_once(authenticator, login_page, token_factory, store):
    login_page.remember("/restaurants/7")
    respx.post(f"{API_URL}/auth/login").mock(
        return_value=httpx.Response(
            200,
            json={"accessToken": token_factory(sub="42"), "roles": [{"id": 2, "name": "ADMIN"}], "fullName": "Boss"},
        )
    )

    authenticator.login("boss@b.com", "secret1")

    assert login_page.current_path == "/restaurants/7"
    assert login_page.remembered_path is None
    assert store.current_user().identity == "42"
    assert store.current_user().is_admin


@respx.mock
def test_invalid_form_is_not_sent(authenticator, store):
    route = respx.post(f"{API_URL}/auth/login")

    with pytest.raises(FormValidationError) as exc_info:
        authenticator.login("not-an-email", "123")

    assert exc_info.value.errors == {
        "email": "Please enter a valid email address",
        "password": "Password must be at least 6 characters",
    }
    assert route.call_count == 0
    assert store.is_authenticated is False


@respx.mock
def test_bad_credentials_leave_session_absent(authenticator, store, login_page):
    respx.post(f"{API_URL}/auth/login").mock(return_value=httpx.Response(401))

    with pytest.raises(UnauthorizedError) as exc_info:
        authenticator.login("a@b.com", "wrongpass")

    assert auth_error_message(exc_info.value, "Login failed") == "Invalid email or password"
    assert store.is_authenticated is False
    assert login_page.current_path == "/login"


@respx.mock
def test_register_logs_in_immediately(authenticator, store):
    route = respx.post(f"{API_URL}/auth/register").mock(
        return_value=httpx.Response(
            200, json={"accessToken": "T9", "roles": [{"name": "USER"}], "fullName": "New User"}
        )
    )
    address = {"street": "1 Main St", "city": "Springfield", "zip": "12345", "state": "IL", "country": "US"}

    authenticator.register("new@b.com", "secret1", "New User", [address])

    assert json.loads(route.calls.last.request.content) == {
        "email": "new@b.com",
        "password": "secret1",
        "fullName": "New User",
        "addresses": [address],
    }
    assert store.current_token() == "T9"


def test_register_validates_lengths(authenticator):
    with pytest.raises(FormValidationError) as exc_info:
        authenticator.register("new@b.com", "x" * 21, "N")

    assert exc_info.value.errors["password"] == "Password must be at most 20 characters"
    assert len(exc_info.value.errors) == 2


def test_logout_clears_session(authenticator, logged_in, navigator):
    authenticator.logout()

    assert logged_in.is_authenticated is False
    assert navigator.current_path == "/login"


def test_network_error_message():
    error = ServiceUnavailableError("API is unreachable", service="API")
    assert auth_error_message(error, "Login failed") == "Network error. Please check if server is running."
