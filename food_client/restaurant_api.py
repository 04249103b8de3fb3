"""Restaurant browsing and restaurant/dish administration endpoints."""

from typing import Optional

from food_client.schemas import (
    Dish,
    DishRequest,
    Page,
    Restaurant,
    RestaurantRequest,
    parse_page,
    parse_response,
)


class RestaurantApi:
    def __init__(self, client) -> None:
        self.client = client

    def list_restaurants(
        self, cuisine: Optional[str] = None, page: Optional[int] = None
    ) -> Page[Restaurant]:
        params = {}
        if cuisine:
            params["cuisine"] = cuisine
        if page is not None:
            params["page"] = page
        data = self.client.get("/restaurants", params=params or None)
        return parse_page(data, Restaurant, self.client.name)

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        data = self.client.get(f"/restaurants/{restaurant_id}")
        return parse_response(Restaurant, data, self.client.name)

    # ==========================================
    # ADMIN: RESTAURANTS
    # ==========================================
    def create_restaurant(self, restaurant: RestaurantRequest) -> Restaurant:
        data = self.client.post("/admin/restaurants", json=restaurant.model_dump(mode="json"))
        return parse_response(Restaurant, data, self.client.name)

    def update_restaurant(self, restaurant_id: int, restaurant: RestaurantRequest) -> Restaurant:
        data = self.client.put(
            f"/admin/restaurants/{restaurant_id}", json=restaurant.model_dump(mode="json")
        )
        return parse_response(Restaurant, data, self.client.name)

    def delete_restaurant(self, restaurant_id: int) -> None:
        self.client.delete(f"/admin/restaurants/{restaurant_id}")

    # ==========================================
    # ADMIN: DISHES
    # ==========================================
    def create_dish(self, restaurant_id: int, dish: DishRequest) -> Dish:
        data = self.client.post(
            f"/admin/restaurants/{restaurant_id}/dishes",
            json=dish.model_dump(mode="json", by_alias=True),
        )
        return parse_response(Dish, data, self.client.name)

    def update_dish(self, dish_id: int, dish: DishRequest) -> Dish:
        data = self.client.put(
            f"/admin/restaurants/dishes/{dish_id}",
            json=dish.model_dump(mode="json", by_alias=True),
        )
        return parse_response(Dish, data, self.client.name)

    def delete_dish(self, dish_id: int) -> None:
        self.client.delete(f"/admin/restaurants/dishes/{dish_id}")
