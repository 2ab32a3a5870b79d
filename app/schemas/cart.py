# app/schemas/cart.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    quantity only applies when the product is not in the cart yet;
    adding an existing product bumps its quantity by one.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for setting the absolute quantity of a cart item.
    """

    quantity: int = Field(gt=0)


class CartProductRead(SQLModel):
    id: uuid.UUID
    name: str
    price: float
    stock: int
    images: list[str]


class CartItemRead(SQLModel):
    """
    Read model for a single cart item, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    line_total: float
    product: CartProductRead
    created_at: datetime


class CartRead(SQLModel):
    """
    Full cart response model with totals.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[CartItemRead]
    total_quantity: int
    total_price: float
