"""Construction of the per-service clients and the service health probe."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from food_client import config
from food_client.auth_api import AuthApi
from food_client.exceptions import FoodClientError
from food_client.http import ServiceClient, make_service_client
from food_client.order_api import OrderApi
from food_client.restaurant_api import RestaurantApi
from food_client.user_api import UserApi

logger = logging.getLogger(__name__)

HEALTH_PATH = "/actuator/health"


@dataclass
class ServiceClients:
    """The four independently configured clients and the APIs built on them."""

    api: ServiceClient
    user: ServiceClient
    restaurant: ServiceClient
    order: ServiceClient

    @property
    def auth_api(self) -> AuthApi:
        return AuthApi(self.api)

    @property
    def user_api(self) -> UserApi:
        return UserApi(self.user)

    @property
    def restaurant_api(self) -> RestaurantApi:
        return RestaurantApi(self.restaurant)

    @property
    def order_api(self) -> OrderApi:
        return OrderApi(self.order)

    def close(self) -> None:
        for client in (self.api, self.user, self.restaurant, self.order):
            client.close()


def build_clients(
    session_store,
    navigator,
    api_url: str = config.API_BASE_URL,
    user_url: str = config.USER_API_URL,
    restaurant_url: str = config.RESTAURANT_API_URL,
    order_url: str = config.ORDER_API_URL,
    timeout: float = config.REQUEST_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> ServiceClients:
    logger.info(
        "API URLs: base=%s user=%s restaurant=%s order=%s",
        api_url, user_url, restaurant_url, order_url,
    )
    common = dict(timeout=timeout, transport=transport)
    return ServiceClients(
        api=make_service_client("API", api_url, session_store, navigator, **common),
        user=make_service_client("User API", user_url, session_store, navigator, **common),
        restaurant=make_service_client(
            "Restaurant API", restaurant_url, session_store, navigator, **common
        ),
        order=make_service_client("Order API", order_url, session_store, navigator, **common),
    )


def check_services_health(clients: ServiceClients) -> List[Dict[str, Optional[str]]]:
    """Probe each backend's health endpoint. A failing probe marks that service DOWN only."""
    results = []
    for name, client in (
        ("User Service", clients.user),
        ("Restaurant Service", clients.restaurant),
        ("Order Service", clients.order),
    ):
        try:
            client.request("GET", HEALTH_PATH, public=True)
            results.append({"service": name, "url": client.base_url, "status": "UP", "error": None})
        except FoodClientError as e:
            results.append({"service": name, "url": client.base_url, "status": "DOWN", "error": e.message})
    return results
