"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from the
Protean aggregates and the order service wire format.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class RestaurantSchema(BaseModel):
    restaurant_id: str
    name: str | None = None
    delivery_fee: float = Field(ge=0, default=0.0)


class MealSchema(BaseModel):
    meal_id: str
    name: str | None = None
    price: float = Field(ge=0)
    restaurant: RestaurantSchema | None = None


class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    zip_code: str | None = None
    instructions: str | None = None


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    meal: MealSchema
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "meal": {
                        "meal_id": "meal-001",
                        "name": "Margherita",
                        "price": 12.5,
                        "restaurant": {"restaurant_id": "rest-001", "name": "Luigi's", "delivery_fee": 2.99},
                    },
                    "quantity": 2,
                }
            ]
        }
    }


class ResolveConflictRequest(BaseModel):
    accept: bool


class UpdateCartQuantityRequest(BaseModel):
    # Zero or less removes the line
    quantity: int


class CartLineSchema(BaseModel):
    id: str
    meal_id: str
    name: str | None = None
    unit_price: float
    quantity: int
    restaurant_id: str | None = None


class CartResponse(BaseModel):
    lines: list[CartLineSchema]
    restaurant: RestaurantSchema | None = None
    item_count: int
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal


class AddCartItemResponse(BaseModel):
    status: str = "added"
    line_id: str | None = None
    current_restaurant_id: str | None = None
    requested_restaurant_id: str | None = None


class CheckoutRequest(BaseModel):
    delivery_address: AddressSchema
    payment_method: str | None = None


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class OrderLineSchema(BaseModel):
    meal_id: str
    name: str | None = None
    unit_price: float
    quantity: int


class OrderResponse(BaseModel):
    order_id: str
    restaurant_id: str
    status: str
    total: float
    lines: list[OrderLineSchema]
    delivery_address: AddressSchema | None = None
    payment_method: str | None = None
    created_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    counts: dict[str, int]


class UpdateOrderStatusRequest(BaseModel):
    status: str


class TrackerStepSchema(BaseModel):
    status: str
    label: str
    description: str
    completed: bool
    active: bool


class TrackerResponse(BaseModel):
    order_id: str
    current_status: str
    estimated_minutes: int
    show_estimate: bool
    driver_en_route: bool
    steps: list[TrackerStepSchema]


# ---------------------------------------------------------------------------
# Notification Schemas
# ---------------------------------------------------------------------------
class NotificationSchema(BaseModel):
    notification_id: int
    notification_type: str
    title: str
    message: str
    timestamp: datetime
    read: bool
    related_order_id: str | None = None


class NotificationListResponse(BaseModel):
    unread_count: int
    notifications: list[NotificationSchema]


class PushStatusRequest(BaseModel):
    order_id: str
    status: str


# ---------------------------------------------------------------------------
# Generic Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"
