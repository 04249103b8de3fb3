"""Tests for order submission - mocked order service."""

import json
from decimal import Decimal

import httpx
import pytest
import respx

from food_client.cart import Cart
from food_client.checkout import (
    Checkout,
    CheckoutOutcome,
    CheckoutState,
    add_to_cart,
    build_submission,
    cart_for_view,
    resume_pending_dish,
)
from food_client.guard import RouteGuard
from food_client.schemas import Dish, Order, PaymentMethod

from conftest import ORDER_URL

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def checkout(clients, store, navigator) -> Checkout:
    return Checkout(clients.order_api, store, navigator)


@pytest.fixture
def order_created() -> dict:
    return {
        "id": 501,
        "status": "PLACED",
        "restaurantId": 7,
        "totalPrice": 25.5,
        "orderItems": [
            {"id": 1, "dishId": 1, "quantity": 2, "price": 10.0},
            {"id": 2, "dishId": 2, "quantity": 1, "price": 5.5},
        ],
        "payment": {"id": 9, "method": "CASH", "amount": 25.5, "status": "PENDING", "orderId": 501},
    }


# =============================================================================
# Submission snapshot
# =============================================================================


def test_build_submission_snapshots_cart(cart):
    submission = build_submission(cart, PaymentMethod.CASH)

    assert submission.to_payload() == {
        "restaurantId": 7,
        "orderItems": [
            {"dishId": 1, "quantity": 2, "price": 10.0},
            {"dishId": 2, "quantity": 1, "price": 5.5},
        ],
        "paymentMethod": "CASH",
    }


def test_build_submission_uses_current_menu_prices(cart, salad):
    menu = [Dish(id=1, name="Pizza", price=Decimal("12.00")), salad]

    submission = build_submission(cart, "CARD", menu=menu)

    assert submission.lines[0].price == Decimal("12.00")
    assert submission.payment_method == PaymentMethod.CARD


# =============================================================================
# place_order
# =============================================================================


@respx.mock
def test_place_order_sends_one_request_and_clears_cart(checkout, cart, logged_in, order_created):
    route = respx.post(f"{ORDER_URL}/orders").mock(return_value=httpx.Response(201, json=order_created))

    result = checkout.place_order(cart, PaymentMethod.CASH)

    assert route.call_count == 1
    assert json.loads(route.calls.last.request.content) == {
        "restaurantId": 7,
        "orderItems": [
            {"dishId": 1, "quantity": 2, "price": 10.0},
            {"dishId": 2, "quantity": 1, "price": 5.5},
        ],
        "paymentMethod": "CASH",
    }
    assert result.ok
    assert result.order.id == 501
    assert result.message == "Order #501 placed successfully! Status: PLACED"
    assert cart.is_empty
    assert checkout.state == CheckoutState.SUCCEEDED


def test_place_order_without_session_redirects_and_keeps_cart(checkout, cart, store, navigator):
    before = cart.lines

    result = checkout.place_order(cart, PaymentMethod.CASH)

    assert result.outcome == CheckoutOutcome.LOGIN_REQUIRED
    assert cart.lines == before
    assert navigator.current_path == "/login"
    assert navigator.remembered_path == "/restaurants/7"


def test_place_order_with_expired_session_redirects(checkout, cart, store, user, navigator, token_factory):
    store.set_session(token_factory(expires_in=-1), user)

    result = checkout.place_order(cart)

    assert result.outcome == CheckoutOutcome.LOGIN_REQUIRED
    assert store.is_authenticated is False
    assert navigator.current_path == "/login"


@respx.mock
def test_empty_cart_is_rejected_locally(checkout, logged_in):
    route = respx.post(f"{ORDER_URL}/orders")

    result = checkout.place_order(Cart(restaurant_id=7))

    assert result.outcome == CheckoutOutcome.EMPTY_CART
    assert result.message == "Your cart is empty!"
    assert route.call_count == 0


@respx.mock
def test_failed_order_keeps_cart_and_joins_field_messages(checkout, cart, logged_in):
    respx.post(f"{ORDER_URL}/orders").mock(
        return_value=httpx.Response(
            400,
            json={
                "message": "Validation failed",
                "messages": {"paymentMethod": "Payment method must be CARD, CASH or PAYPAL",
                             "orderItems": "Order items cannot be empty"},
            },
        )
    )
    before = cart.lines

    result = checkout.place_order(cart, PaymentMethod.CARD)

    assert result.outcome == CheckoutOutcome.FAILED
    assert result.message == (
        "Payment method must be CARD, CASH or PAYPAL, Order items cannot be empty"
    )
    assert cart.lines == before
    assert checkout.state == CheckoutState.FAILED


@respx.mock
def test_failed_order_falls_back_to_server_then_generic_message(checkout, cart, logged_in):
    route = respx.post(f"{ORDER_URL}/orders")
    route.side_effect = [
        httpx.Response(409, json={"message": "Restaurant is closed"}),
        httpx.Response(500),
    ]

    assert checkout.place_order(cart).message == "Restaurant is closed"
    assert checkout.place_order(cart).message == "Failed to place order"
    assert cart.item_count() == 3


@respx.mock
def test_retry_after_failure_succeeds(checkout, cart, logged_in, order_created):
    route = respx.post(f"{ORDER_URL}/orders")
    route.side_effect = [httpx.ConnectError("down"), httpx.Response(201, json=order_created)]

    first = checkout.place_order(cart)
    second = checkout.place_order(cart)

    assert first.outcome == CheckoutOutcome.FAILED
    assert second.ok
    assert route.call_count == 2
    assert cart.is_empty


@respx.mock
def test_unauthorized_order_tears_down_session(checkout, cart, logged_in, navigator):
    respx.post(f"{ORDER_URL}/orders").mock(return_value=httpx.Response(401))

    result = checkout.place_order(cart)

    assert result.outcome == CheckoutOutcome.LOGIN_REQUIRED
    assert logged_in.is_authenticated is False
    assert navigator.current_path == "/login"
    assert cart.item_count() == 3


@respx.mock
def test_created_order_without_body_is_a_failure(checkout, cart, logged_in):
    respx.post(f"{ORDER_URL}/orders").mock(return_value=httpx.Response(201))

    result = checkout.place_order(cart)

    assert result.outcome == CheckoutOutcome.FAILED
    assert result.message == "Failed to place order"
    assert cart.item_count() == 3
    assert checkout.state == CheckoutState.FAILED


@respx.mock
def test_dish_missing_from_menu_fails_without_request(checkout, cart, logged_in, salad):
    route = respx.post(f"{ORDER_URL}/orders")

    result = checkout.place_order(cart, menu=[salad])

    assert result.outcome == CheckoutOutcome.FAILED
    assert result.message == '"Pizza" is no longer available'
    assert route.call_count == 0


def test_second_submission_while_in_flight_is_ignored(cart, logged_in, navigator, order_created):
    class ReentrantOrderApi:
        def __init__(self):
            self.calls = 0
            self.inner_result = None

        def create_order(self, submission):
            self.calls += 1
            # Double click while the first request is still pending
            self.inner_result = checkout.place_order(cart, PaymentMethod.CASH)
            return Order.model_validate(order_created)

    api = ReentrantOrderApi()
    checkout = Checkout(api, logged_in, navigator)

    result = checkout.place_order(cart, PaymentMethod.CASH)

    assert result.ok
    assert api.calls == 1
    assert api.inner_result.outcome == CheckoutOutcome.IN_PROGRESS


def test_state_resets_when_submission_raises(cart, logged_in, navigator):
    class BrokenOrderApi:
        def create_order(self, submission):
            raise RuntimeError("unexpected")

    checkout = Checkout(BrokenOrderApi(), logged_in, navigator)

    with pytest.raises(RuntimeError):
        checkout.place_order(cart)

    assert checkout.submitting is False


# =============================================================================
# Add to cart & pending dish
# =============================================================================


def test_add_to_cart_when_logged_out_remembers_dish(store, navigator, pizza):
    cart = Cart(restaurant_id=7)

    assert add_to_cart(cart, pizza, store, navigator) is False
    assert cart.is_empty
    assert navigator.current_path == "/login"
    assert navigator.remembered_path == "/restaurants/7"


def test_pending_dish_is_added_after_login(store, navigator, user, pizza, salad):
    add_to_cart(Cart(restaurant_id=7), pizza, store, navigator)
    store.set_session("T1", user)
    cart = Cart(restaurant_id=7)

    assert resume_pending_dish(cart, [pizza, salad], store, navigator) == pizza
    assert cart.quantity_of(pizza.id) == 1
    # Only once
    assert resume_pending_dish(cart, [pizza, salad], store, navigator) is None
    assert cart.quantity_of(pizza.id) == 1


def test_pending_dish_ignored_for_other_restaurant(store, navigator, user, pizza):
    add_to_cart(Cart(restaurant_id=7), pizza, store, navigator)
    store.set_session("T1", user)

    other = Cart(restaurant_id=8)
    assert resume_pending_dish(other, [pizza], store, navigator) is None
    assert other.is_empty


def test_add_to_cart_when_logged_in(logged_in, navigator, pizza):
    cart = Cart(restaurant_id=7)

    assert add_to_cart(cart, pizza, logged_in, navigator) is True
    assert cart.quantity_of(pizza.id) == 1
    assert navigator.current_path == "/orders"


# =============================================================================
# Cart lifecycle
# =============================================================================


def test_leaving_the_menu_discards_the_cart(cart, logged_in):
    guard = RouteGuard(logged_in)

    kept = cart_for_view(cart, guard.check("/restaurants/7"))
    left = cart_for_view(kept, guard.check("/orders"))
    back = cart_for_view(left, guard.check("/restaurants/7"))

    assert kept is cart
    assert left is None
    assert back.restaurant_id == 7
    assert back.is_empty


def test_other_restaurant_menu_starts_new_cart(cart, logged_in):
    fresh = cart_for_view(cart, RouteGuard(logged_in).check("/restaurants/8"))

    assert fresh.restaurant_id == 8
    assert fresh.is_empty


def test_unknown_path_discards_the_cart(cart, logged_in):
    assert cart_for_view(cart, RouteGuard(logged_in).check("/nowhere")) is None
