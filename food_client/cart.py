"""The per-restaurant cart and its totals."""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterator, Optional, Tuple

from food_client.schemas import Dish


@dataclass(frozen=True)
class CartLine:
    dish: Dish
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.dish.price * self.quantity


class Cart:
    """
    Dishes picked from one restaurant, not yet ordered.

    One line per dish; a line whose quantity drops below 1 is removed.
    Totals are computed from the current lines on every call.
    """

    def __init__(self, restaurant_id: int) -> None:
        self.restaurant_id = restaurant_id
        self._lines: Dict[int, CartLine] = {}

    def __iter__(self) -> Iterator[CartLine]:
        return iter(list(self._lines.values()))

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add(self, dish: Dish) -> CartLine:
        line = self._lines.get(dish.id)
        if line:
            line = replace(line, quantity=line.quantity + 1)
        else:
            line = CartLine(dish=dish, quantity=1)
        self._lines[dish.id] = line
        return line

    def set_quantity(self, dish_id: int, quantity: int) -> None:
        if quantity < 1:
            self.remove(dish_id)
            return
        line = self._lines.get(dish_id)
        if line:
            self._lines[dish_id] = replace(line, quantity=quantity)

    def remove(self, dish_id: int) -> None:
        self._lines.pop(dish_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def quantity_of(self, dish_id: int) -> int:
        line = self._lines.get(dish_id)
        return line.quantity if line else 0

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())


def cart_for_restaurant(cart: Optional[Cart], restaurant_id: int) -> Cart:
    """Keep the cart while the same restaurant is shown; switching restaurants starts a fresh one."""
    if cart is None or cart.restaurant_id != restaurant_id:
        return Cart(restaurant_id)
    return cart
