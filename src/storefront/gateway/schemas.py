"""Pydantic wire schemas for the external order service.

These are external contracts (anti-corruption layer) — the service speaks
camelCase with Mongo-style ``_id`` keys and may embed related documents
where an id is expected.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.order.order import Order


def _ref_id(value):
    """Accept either an id or an embedded document carrying ``_id``/``id``."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value


class AddressPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    street: str
    city: str
    state: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")
    instructions: str | None = None


class OrderItemPayload(BaseModel):
    meal: str
    name: str | None = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)

    @model_validator(mode="before")
    @classmethod
    def unwrap_meal(cls, data):
        if isinstance(data, dict) and isinstance(data.get("meal"), dict):
            meal = data["meal"]
            data = {**data, "meal": _ref_id(meal), "name": data.get("name") or meal.get("name")}
        return data


class OrderPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    restaurant: str
    items: list[OrderItemPayload] = Field(default_factory=list)
    delivery_address: AddressPayload | None = Field(default=None, alias="deliveryAddress")
    status: str = "pending"
    total: float = Field(default=0.0, ge=0)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    payment_method: str | None = Field(default=None, alias="paymentMethod")

    @model_validator(mode="before")
    @classmethod
    def unwrap_restaurant(cls, data):
        if isinstance(data, dict) and isinstance(data.get("restaurant"), dict):
            data = {**data, "restaurant": _ref_id(data["restaurant"])}
        return data

    def to_order(self):
        return Order.from_service(
            order_id=self.id,
            restaurant_id=self.restaurant,
            lines=[
                {
                    "meal_id": item.meal,
                    "name": item.name,
                    "unit_price": item.price,
                    "quantity": item.quantity,
                }
                for item in self.items
            ],
            delivery_address=self.delivery_address.model_dump() if self.delivery_address else None,
            status=self.status,
            total=self.total,
            created_at=self.created_at,
            payment_method=self.payment_method,
        )


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurant: str
    items: list[OrderItemPayload]
    delivery_address: AddressPayload = Field(alias="deliveryAddress")
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    total: float | None = None

    @classmethod
    def from_lines(cls, restaurant_id, lines, delivery_address, payment_method=None, total=None):
        return cls(
            restaurant=restaurant_id,
            items=[
                OrderItemPayload(
                    meal=str(line["meal_id"]),
                    name=line.get("name"),
                    price=line["unit_price"],
                    quantity=line["quantity"],
                )
                for line in lines
            ],
            delivery_address=AddressPayload(**delivery_address),
            payment_method=payment_method,
            total=total,
        )


class UpdateStatusRequest(BaseModel):
    status: str
