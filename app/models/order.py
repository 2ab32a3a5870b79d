# app/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field

# Order status lifecycle
ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_SHIPPED = "SHIPPED"
ORDER_STATUS_DELIVERED = "DELIVERED"

ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_DELIVERED,
)


class Order(SQLModel, table=True):
    """
    Customer order.

    Created once by checkout, mutated only by status transitions,
    never deleted. Shipping address and payment result are stored as
    JSON snapshots.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    shipping_address: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    payment_result: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    # One order per gateway payment; NULL for orders placed without one
    gateway_payment_id: str | None = Field(
        default=None,
        unique=True,
        index=True,
    )

    total_price: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Final amount for this order",
    )

    # PENDING | SHIPPED | DELIVERED
    status: str = Field(
        default=ORDER_STATUS_PENDING,
        index=True,
        description="Order status lifecycle",
    )

    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    name / price / image are captured at order time so later catalog
    edits never change historical orders.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    name: str
    price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price at time of order",
    )
    image: str = Field(default="")

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )
