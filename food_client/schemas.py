"""Wire models for the user, restaurant and order services, plus form constraints."""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Generic, List, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationError,
    field_validator,
)

from food_client.exceptions import FormValidationError, UnexpectedResponseError

EMAIL_REGEX = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
URL_REGEX = r"^https?://\S+$"

# Prices travel as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _check_length(value: str, label: str, min_length: int, max_length: int) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    if not min_length <= len(value) <= max_length:
        raise ValueError(f"{label} must be between {min_length} and {max_length} characters")
    return value


def _none_as_empty(v):
    # Collections the backend serializes as null
    return [] if v is None else v


# --- ENUMS ---
class PaymentMethod(str, Enum):
    CARD = "CARD"
    CASH = "CASH"
    PAYPAL = "PAYPAL"


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CARD: "💳 Credit/Debit Card",
    PaymentMethod.CASH: "💵 Cash on Delivery",
    PaymentMethod.PAYPAL: "🔵 PayPal",
}


class OrderStatus(str, Enum):
    """Statuses the order service accepts. New orders start as PLACED."""

    PLACED = "PLACED"
    COOKING = "COOKING"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# ==========================================
# USER SERVICE
# ==========================================
class LoginRequest(WireModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Email is required")
        if not re.match(EMAIL_REGEX, v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class Address(WireModel):
    street: str
    city: str
    zip: str
    state: str
    country: str

    @field_validator("street", "city", "zip", "state", "country")
    @classmethod
    def not_blank(cls, v, info):
        if not v or not v.strip():
            label = "ZIP code" if info.field_name == "zip" else info.field_name.capitalize()
            raise ValueError(f"{label} is required")
        return v.strip()


class RegisterRequest(LoginRequest):
    full_name: str = Field(alias="fullName")
    addresses: List[Address] = []

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v):
        if len(v) > 20:
            raise ValueError("Password must be at most 20 characters")
        return v

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _check_length(v, "Full name", 2, 20)


class UpdateUserRequest(WireModel):
    full_name: str = Field(alias="fullName")
    addresses: List[Address] = []

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return _check_length(v, "Full name", 2, 20)


class RoleOut(WireModel):
    id: Optional[int] = None
    name: str


class AuthResponse(WireModel):
    access_token: str = Field(alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    roles: List[RoleOut] = []
    full_name: str = Field(default="", alias="fullName")

    @field_validator("roles", mode="before")
    @classmethod
    def null_roles(cls, v):
        return _none_as_empty(v)


class UserProfile(WireModel):
    id: int
    email: str
    full_name: str = Field(default="", alias="fullName")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    addresses: List[Address] = []
    roles: List[RoleOut] = []

    @field_validator("addresses", "roles", mode="before")
    @classmethod
    def null_lists(cls, v):
        return _none_as_empty(v)


# ==========================================
# RESTAURANT SERVICE
# ==========================================
class Dish(WireModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money = Field(ge=0)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")


class Restaurant(WireModel):
    id: int
    name: str
    cuisine: Optional[str] = None
    address: Optional[str] = None
    dishes: List[Dish] = []

    @field_validator("dishes", mode="before")
    @classmethod
    def null_dishes(cls, v):
        return _none_as_empty(v)


class RestaurantRequest(WireModel):
    name: str
    cuisine: str
    address: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_length(v, "Name", 3, 20)

    @field_validator("cuisine")
    @classmethod
    def validate_cuisine(cls, v):
        return _check_length(v, "Cuisine", 3, 20)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _check_length(v, "Address", 10, 50)


class DishRequest(WireModel):
    name: str
    description: str
    price: Money
    image_url: str = Field(alias="imageUrl")
    restaurant_id: int = Field(alias="restaurantId")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _check_length(v, "Name", 3, 20)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return _check_length(v, "Description", 10, 50)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v <= 0:
            raise ValueError("Price must be positive")
        return v

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        if not re.match(URL_REGEX, v or ""):
            raise ValueError("Image URL must be valid")
        return v


T = TypeVar("T")


class Page(WireModel, Generic[T]):
    content: List[T] = []
    total_elements: int = Field(default=0, alias="totalElements")
    total_pages: int = Field(default=1, alias="totalPages")
    size: int = 0
    number: int = 0

    @field_validator("content", mode="before")
    @classmethod
    def null_content(cls, v):
        return _none_as_empty(v)


def parse_response(model: Type[T], data: Any, service: Optional[str] = None) -> T:
    """
    Validate a response body against ``model``.

    A body of the wrong shape raises ``UnexpectedResponseError`` so callers
    handle it like any other service failure.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise UnexpectedResponseError(
            f"Unexpected response from {service or 'the server'}",
            service=service,
            body=data,
        ) from e


def parse_page(payload: Any, item_model: Type[T], service: Optional[str] = None) -> Page[T]:
    """Accept both the paged envelope and a bare list, which older endpoints still return."""
    if isinstance(payload, list):
        payload = {
            "content": payload,
            "totalElements": len(payload),
            "totalPages": 1,
            "size": len(payload),
            "number": 0,
        }
    return parse_response(Page[item_model], payload or {}, service)


# ==========================================
# ORDER SERVICE
# ==========================================
class OrderLine(WireModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    dish_id: int = Field(alias="dishId")
    quantity: int = Field(gt=0)
    price: Money = Field(ge=0)


class OrderSubmission(WireModel):
    """Snapshot of a cart sent as one order-creation request."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    restaurant_id: int = Field(alias="restaurantId")
    lines: List[OrderLine] = Field(alias="orderItems", min_length=1)
    payment_method: PaymentMethod = Field(alias="paymentMethod")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class OrderItem(WireModel):
    id: Optional[int] = None
    dish_id: int = Field(alias="dishId")
    quantity: int
    price: Money


class Payment(WireModel):
    id: Optional[int] = None
    method: Optional[str] = None
    amount: Optional[Money] = None
    status: Optional[str] = None
    order_id: Optional[int] = Field(default=None, alias="orderId")


class Order(WireModel):
    id: int
    status: str
    order_date: Optional[datetime] = Field(default=None, alias="orderDate")
    user_id: Optional[int] = Field(default=None, alias="userId")
    restaurant_id: Optional[int] = Field(default=None, alias="restaurantId")
    total_price: Optional[Money] = Field(default=None, alias="totalPrice")
    order_items: List[OrderItem] = Field(default=[], alias="orderItems")
    payment: Optional[Payment] = None

    @field_validator("order_items", mode="before")
    @classmethod
    def null_items(cls, v):
        return _none_as_empty(v)


# --- FORM VALIDATION ---
def validation_messages(error: ValidationError) -> dict:
    """Field-keyed messages, keyed the same way the backend keys its ``messages``."""
    messages = {}
    for err in error.errors():
        field = str(err["loc"][0]) if err["loc"] else "general"
        msg = err["msg"]
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.setdefault(field, msg)
    return messages


def validate_form(model: Type[T], data: dict) -> T:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise FormValidationError(validation_messages(e)) from e
