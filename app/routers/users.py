# app/routers/users.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository
from app.schemas.product import ProductRead
from app.schemas.user import (
    AddressCreate,
    AddressRead,
    AddressUpdate,
    UserRead,
    UserUpdate,
    WishlistAdd,
)
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo, ProductRepository())


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    The profile row is auto-created on first request (auth dependency).
    """
    return service.get_me(current_user)


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).
    """
    return service.update_me(session, current_user, payload)


# -------- Addresses --------


@router.post(
    "/addresses",
    response_model=list[AddressRead],
    status_code=status.HTTP_201_CREATED,
)
def add_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Add a shipping address; returns the updated address list.
    """
    return service.add_address(session, current_user.id, payload)


@router.get("/addresses", response_model=list[AddressRead])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.list_addresses(session, current_user.id)


@router.put("/addresses/{address_id}", response_model=list[AddressRead])
def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.update_address(session, current_user.id, address_id, payload)


@router.delete("/addresses/{address_id}", response_model=list[AddressRead])
def delete_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.delete_address(session, current_user.id, address_id)


# -------- Wishlist --------


@router.get("/wishlist", response_model=list[ProductRead])
def get_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_wishlist(session, current_user.id)


@router.post("/wishlist", response_model=list[ProductRead])
def add_to_wishlist(
    payload: WishlistAdd,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Save a product to the wishlist; returns the updated wishlist.
    """
    return service.add_to_wishlist(session, current_user.id, payload.product_id)


@router.delete("/wishlist/{product_id}", response_model=list[ProductRead])
def remove_from_wishlist(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.remove_from_wishlist(session, current_user.id, product_id)
