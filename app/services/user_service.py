# app/services/user_service.py
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import (
    AddressNotFound,
    AlreadyInWishlist,
    NotInWishlist,
    ProductNotFound,
)
from app.models.product import Product
from app.models.user import Address, User, WishlistItem
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository
from app.schemas.user import AddressCreate, AddressUpdate, UserUpdate

NULLABLE_ADDRESS_FIELDS = {"label", "phone_number"}


class UserService:
    """
    Business logic for the customer's own account.

    Responsibilities:
      - profile edits
      - address book with a single default address per user
      - wishlist (set of products)
    """

    def __init__(self, repo: UserRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    # ----- Self profile -----

    def get_me(self, current_user: User) -> User:
        """Return the current authenticated user."""
        return current_user

    def update_me(
        self,
        session: Session,
        current_user: User,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update for profile edits.
        Currently, only `name` is editable.
        """
        if payload.name is not None:
            current_user.name = payload.name

        return self.repo.update(session, current_user)

    # ----- Addresses -----

    def list_addresses(self, session: Session, user_id: uuid.UUID) -> list[Address]:
        return self.repo.list_addresses(session, user_id)

    def add_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: AddressCreate,
    ) -> list[Address]:
        """
        Insert an address. If it is flagged default, every other address of
        the user loses the flag in the same transaction.
        """
        try:
            if payload.is_default:
                self.repo.clear_default_addresses(session, user_id)
            self.repo.save_address(
                session,
                Address(user_id=user_id, **payload.model_dump()),
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.repo.list_addresses(session, user_id)

    def update_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> list[Address]:
        address = self.repo.get_address(session, user_id, address_id)
        if not address:
            raise AddressNotFound()

        changes = payload.model_dump(exclude_unset=True)
        try:
            if changes.get("is_default"):
                self.repo.clear_default_addresses(session, user_id)
            for field, value in changes.items():
                # explicit null only clears the optional fields
                if value is None and field not in NULLABLE_ADDRESS_FIELDS:
                    continue
                setattr(address, field, value)
            self.repo.save_address(session, address)
            session.commit()
        except Exception:
            session.rollback()
            raise

        return self.repo.list_addresses(session, user_id)

    def delete_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> list[Address]:
        address = self.repo.get_address(session, user_id, address_id)
        if not address:
            raise AddressNotFound()

        self.repo.delete_address(session, address)
        return self.repo.list_addresses(session, user_id)

    # ----- Wishlist -----

    def get_wishlist(self, session: Session, user_id: uuid.UUID) -> list[Product]:
        return self.repo.list_wishlist_products(session, user_id)

    def add_to_wishlist(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> list[Product]:
        if self.product_repo.get_by_id(session, product_id) is None:
            raise ProductNotFound()

        if self.repo.get_wishlist_item(session, user_id, product_id):
            raise AlreadyInWishlist()

        try:
            self.repo.add_wishlist_item(
                session, WishlistItem(user_id=user_id, product_id=product_id)
            )
        except IntegrityError as exc:
            session.rollback()
            raise AlreadyInWishlist() from exc

        return self.repo.list_wishlist_products(session, user_id)

    def remove_from_wishlist(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> list[Product]:
        item = self.repo.get_wishlist_item(session, user_id, product_id)
        if not item:
            raise NotInWishlist()

        self.repo.delete_wishlist_item(session, item)
        return self.repo.list_wishlist_products(session, user_id)
