# app/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: EmailStr
    name: str
    image_url: str | None = None
    role: Role
    created_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Only editable field is `name` here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


# ---- Addresses ----


class AddressCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    full_name: str
    street_address: str
    city: str
    state: str
    zip_code: str
    phone_number: str | None = None
    is_default: bool = False

    @field_validator("full_name", "street_address", "city", "state", "zip_code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Missing required address field")
        return v


class AddressUpdate(SQLModel):
    """
    Partial address update; omitted fields keep their value.
    """

    model_config = ConfigDict(extra="forbid")

    label: str | None = Field(default=None, max_length=50)
    full_name: str | None = None
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    phone_number: str | None = None
    is_default: bool | None = None

    @field_validator("full_name", "street_address", "city", "state", "zip_code")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class AddressRead(SQLModel):
    id: uuid.UUID
    label: str | None
    full_name: str
    street_address: str
    city: str
    state: str
    zip_code: str
    phone_number: str | None
    is_default: bool
    created_at: datetime


# ---- Wishlist ----


class WishlistAdd(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
