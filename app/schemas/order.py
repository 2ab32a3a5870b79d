# app/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class LineItem(SQLModel):
    """
    The single line-item shape accepted at the API boundary.

    Product details (name, price, image) are always read from the
    catalog, never from the client.
    """

    model_config = ConfigDict(extra="ignore")

    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class ShippingAddress(SQLModel):
    """
    Shipping address snapshot stored on the order.
    """

    model_config = ConfigDict(extra="ignore")

    full_name: str
    street_address: str
    city: str
    state: str
    zip_code: str
    phone_number: str | None = None

    @field_validator("full_name", "street_address", "city", "state", "zip_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for placing an order directly.

    Backend derives:
      - user_id from token
      - status = 'PENDING'
      - item snapshots from the catalog
    """

    model_config = ConfigDict(extra="forbid")

    order_items: list[LineItem]
    shipping_address: ShippingAddress
    payment_result: dict[str, Any] = Field(default_factory=dict)
    total_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    price: float
    image: str
    quantity: int
    line_total: float


class OrderRead(SQLModel):
    """
    Full order view including items.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    shipping_address: dict[str, Any]
    payment_result: dict[str, Any]
    total_price: float
    status: str
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime
    items: list[OrderItemRead]


class UserOrderRead(OrderRead):
    """
    Order as listed to its owner, annotated with review status.
    """

    has_reviewed: bool


class CustomerSummary(SQLModel):
    name: str
    email: str


class AdminOrderRead(OrderRead):
    customer: CustomerSummary | None = None


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.

    Kept as a plain string so unknown values surface as InvalidStatus.
    """

    model_config = ConfigDict(extra="forbid")

    status: str
