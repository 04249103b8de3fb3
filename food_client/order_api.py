"""Order creation, listing and status endpoints."""

import logging
from typing import Dict, Iterable, List

from food_client.exceptions import FoodClientError
from food_client.schemas import Order, OrderStatus, OrderSubmission, parse_page, parse_response

logger = logging.getLogger(__name__)


class OrderApi:
    def __init__(self, client) -> None:
        self.client = client

    def create_order(self, submission: OrderSubmission) -> Order:
        data = self.client.post("/orders", json=submission.to_payload())
        return parse_response(Order, data, self.client.name)

    def list_orders(self) -> List[Order]:
        """Orders of the current user, or every order for an admin."""
        return parse_page(self.client.get("/orders"), Order, self.client.name).content

    def list_user_orders(self, user_id: int) -> List[Order]:
        data = self.client.get(f"/orders/user/{user_id}")
        return parse_page(data, Order, self.client.name).content

    def get_order(self, order_id: int) -> Order:
        return parse_response(Order, self.client.get(f"/orders/{order_id}"), self.client.name)

    def update_status(self, order_id: int, status: OrderStatus) -> None:
        # 204 No Content; callers re-fetch the order list
        self.client.patch(
            f"/orders/{order_id}/status", params={"status": OrderStatus(status).value}
        )


def restaurant_names(orders: Iterable[Order], restaurant_api) -> Dict[int, str]:
    """
    Resolve restaurant names for already fetched orders, one lookup per restaurant.

    Must run after the order list has arrived. Restaurants that cannot be
    loaded fall back to ``Restaurant #<id>``.
    """
    names: Dict[int, str] = {}
    for order in orders:
        restaurant_id = order.restaurant_id
        if restaurant_id is None or restaurant_id in names:
            continue
        try:
            names[restaurant_id] = restaurant_api.get_restaurant(restaurant_id).name
        except FoodClientError as e:
            logger.warning("Could not resolve restaurant %s: %s", restaurant_id, e.message)
            names[restaurant_id] = f"Restaurant #{restaurant_id}"
    return names
