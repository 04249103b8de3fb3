"""
Pytest configuration for food client tests.
"""

import time
from decimal import Decimal

import pytest
from jose import jwt

from food_client.cart import Cart
from food_client.clients import build_clients
from food_client.navigation import Navigator
from food_client.schemas import Dish
from food_client.session import Role, SessionStore, SessionUser
from food_client.storage import MemoryStorage

API_URL = "http://users.test"
RESTAURANT_URL = "http://restaurants.test"
ORDER_URL = "http://orders.test"


def make_token(sub: str = "42", expires_in: int = 3600) -> str:
    return jwt.encode(
        {"sub": sub, "exp": int(time.time()) + expires_in},
        "test-secret",
        algorithm="HS256",
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def navigator(storage: MemoryStorage) -> Navigator:
    return Navigator(storage, path="/orders")


@pytest.fixture
def user() -> SessionUser:
    return SessionUser(display_name="A B", email="a@b.com", identity="42", roles=frozenset({Role.USER}))


@pytest.fixture
def admin() -> SessionUser:
    return SessionUser(
        display_name="Admin",
        email="admin@b.com",
        identity="1",
        roles=frozenset({Role.USER, Role.ADMIN}),
    )


@pytest.fixture
def logged_in(store: SessionStore, user: SessionUser) -> SessionStore:
    """Session store holding a valid customer session."""
    store.set_session(make_token(), user)
    return store


@pytest.fixture
def clients(store: SessionStore, navigator: Navigator):
    """Four service clients pointed at mocked hosts (user service serves both api and user)."""
    built = build_clients(
        store,
        navigator,
        api_url=API_URL,
        user_url=API_URL,
        restaurant_url=RESTAURANT_URL,
        order_url=ORDER_URL,
    )
    yield built
    built.close()


@pytest.fixture
def pizza() -> Dish:
    return Dish(id=1, name="Pizza", price=Decimal("10.00"))


@pytest.fixture
def salad() -> Dish:
    return Dish(id=2, name="Salad", price=Decimal("5.50"))


@pytest.fixture
def cart(pizza: Dish, salad: Dish) -> Cart:
    """Cart of restaurant 7: two pizzas and one salad."""
    c = Cart(restaurant_id=7)
    c.add(pizza)
    c.add(pizza)
    c.add(salad)
    return c


@pytest.fixture
def token_factory():
    """Build signed JWTs; pass a negative ``expires_in`` for an expired token."""
    return make_token
