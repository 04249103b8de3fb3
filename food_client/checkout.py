"""
Cart to order submission.

A ``Checkout`` turns the cart of the restaurant being viewed into exactly
one order-creation request. While that request is in flight the checkout
is SUBMITTING and every further ``place_order`` call is turned away, so a
double click cannot create two orders.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from food_client.cart import Cart, cart_for_restaurant
from food_client.exceptions import (
    DishUnavailableError,
    ServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from food_client.guard import MENU_ROUTE
from food_client.schemas import Dish, Order, OrderLine, OrderSubmission, PaymentMethod

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to place order"


def menu_path(restaurant_id: int) -> str:
    return f"/restaurants/{restaurant_id}"


class CheckoutState(str, Enum):
    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class CheckoutOutcome(str, Enum):
    PLACED = "PLACED"
    LOGIN_REQUIRED = "LOGIN_REQUIRED"
    EMPTY_CART = "EMPTY_CART"
    IN_PROGRESS = "IN_PROGRESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CheckoutResult:
    outcome: CheckoutOutcome
    message: str
    order: Optional[Order] = None

    @property
    def ok(self) -> bool:
        return self.outcome == CheckoutOutcome.PLACED


def build_submission(
    cart: Cart,
    payment_method: PaymentMethod,
    menu: Optional[Iterable[Dish]] = None,
) -> OrderSubmission:
    """
    Snapshot the cart as an order.

    Prices are taken from ``menu`` (the menu as currently loaded) rather than
    from the moment each dish was added. Without a menu the cart's own prices
    are used.

    Raises:
        DishUnavailableError: A cart dish is missing from ``menu``.
    """
    current = {dish.id: dish for dish in menu} if menu is not None else None
    lines = []
    for line in cart:
        price = line.dish.price
        if current is not None:
            dish = current.get(line.dish.id)
            if dish is None:
                raise DishUnavailableError(line.dish.id, line.dish.name)
            price = dish.price
        lines.append(OrderLine(dish_id=line.dish.id, quantity=line.quantity, price=price))
    return OrderSubmission(
        restaurant_id=cart.restaurant_id,
        lines=lines,
        payment_method=PaymentMethod(payment_method),
    )


class Checkout:
    def __init__(self, order_api, session_store, navigator) -> None:
        self.order_api = order_api
        self.session_store = session_store
        self.navigator = navigator
        self.state = CheckoutState.IDLE
        self._lock = threading.Lock()

    @property
    def submitting(self) -> bool:
        return self.state == CheckoutState.SUBMITTING

    def place_order(
        self,
        cart: Cart,
        payment_method: PaymentMethod = PaymentMethod.CARD,
        menu: Optional[Iterable[Dish]] = None,
    ) -> CheckoutResult:
        """
        Submit the cart as one order.

        The cart is cleared only when the order service confirms the order;
        on any failure it is left as it was so the user can retry.
        """
        with self._lock:
            if self.submitting:
                logger.info("Ignoring place_order while a submission is in flight")
                return CheckoutResult(CheckoutOutcome.IN_PROGRESS, "Your order is already being placed")
            precheck = self._check_preconditions(cart)
            if precheck:
                return precheck
            try:
                submission = build_submission(cart, payment_method, menu)
            except DishUnavailableError as e:
                self.state = CheckoutState.FAILED
                return CheckoutResult(CheckoutOutcome.FAILED, e.message)
            self.state = CheckoutState.SUBMITTING

        try:
            return self._submit(cart, submission)
        finally:
            with self._lock:
                if self.submitting:
                    self.state = CheckoutState.FAILED

    def _check_preconditions(self, cart: Cart) -> Optional[CheckoutResult]:
        if self.session_store.is_expired():
            self.session_store.clear_session()
        if not self.session_store.is_authenticated:
            self.navigator.redirect_to_login(return_to=menu_path(cart.restaurant_id))
            return CheckoutResult(CheckoutOutcome.LOGIN_REQUIRED, "Please log in to place an order")
        if cart.is_empty:
            return CheckoutResult(CheckoutOutcome.EMPTY_CART, "Your cart is empty!")
        return None

    def _submit(self, cart: Cart, submission: OrderSubmission) -> CheckoutResult:
        logger.info(
            "Placing order at restaurant %s: %d line(s), %s",
            submission.restaurant_id, len(submission.lines), submission.payment_method.value,
        )
        try:
            order = self.order_api.create_order(submission)
        except UnauthorizedError:
            return CheckoutResult(
                CheckoutOutcome.LOGIN_REQUIRED, "Your session has expired. Please log in again."
            )
        except ServiceUnavailableError as e:
            logger.error("Order service unavailable: %s", e.message)
            return CheckoutResult(CheckoutOutcome.FAILED, f"{GENERIC_FAILURE}: {e.message}")
        except ServiceError as e:
            logger.error("Order rejected (%s): %s", e.status_code, e.body)
            return CheckoutResult(CheckoutOutcome.FAILED, e.user_message(GENERIC_FAILURE))

        cart.clear()
        with self._lock:
            self.state = CheckoutState.SUCCEEDED
        logger.info("Order #%s created with status %s", order.id, order.status)
        return CheckoutResult(
            CheckoutOutcome.PLACED,
            f"Order #{order.id} placed successfully! Status: {order.status}",
            order=order,
        )


def add_to_cart(cart: Cart, dish: Dish, session_store, navigator) -> bool:
    """
    Add a dish for a logged-in user. A logged-out user is sent to the login
    page instead, with the dish remembered so it can be added on return.
    """
    if not session_store.is_authenticated:
        navigator.remember_pending_dish(cart.restaurant_id, dish.id, dish.name)
        navigator.redirect_to_login(return_to=menu_path(cart.restaurant_id))
        return False
    cart.add(dish)
    return True


def resume_pending_dish(cart: Cart, menu: Iterable[Dish], session_store, navigator) -> Optional[Dish]:
    """Add the dish remembered before the login detour, if it belongs to this cart's restaurant."""
    if not session_store.is_authenticated:
        return None
    pending = navigator.pop_pending_dish(cart.restaurant_id)
    if not pending:
        return None
    dish = next((d for d in menu if d.id == pending.get("id")), None)
    if dish is None:
        logger.info("Pending dish %s is not on the menu any more", pending.get("name"))
        return None
    cart.add(dish)
    return dish


def cart_for_view(cart: Optional[Cart], decision) -> Optional[Cart]:
    """
    The cart to keep for the view about to render.

    Only a restaurant menu holds a cart. Rendering any other view discards it,
    so coming back to the menu starts with an empty cart.
    """
    route = decision.route
    if route is None or route.name != MENU_ROUTE:
        if cart is not None and not cart.is_empty:
            logger.info("Discarding cart of restaurant %s on leaving the menu", cart.restaurant_id)
        return None
    return cart_for_restaurant(cart, decision.params["restaurant_id"])
