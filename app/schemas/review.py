# app/schemas/review.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel


class ReviewCreate(SQLModel):
    """
    Payload for reviewing a product from a delivered order.

    rating range is checked by the service (InvalidRating).
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    order_id: uuid.UUID
    rating: int


class ReviewRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    order_id: uuid.UUID
    rating: int
    created_at: datetime
