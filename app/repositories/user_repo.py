# app/repositories/user_repo.py
import uuid

from sqlalchemy import update
from sqlmodel import Session, select

from app.models.product import Product
from app.models.user import Address, User, WishlistItem


class UserRepository:
    """
    Data access layer for User, Address and WishlistItem.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Users -----

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def list_customers(self, session: Session) -> list[User]:
        """All users, newest first."""
        stmt = select(User).order_by(User.created_at.desc())
        return session.exec(stmt).all()

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    # ----- Addresses -----

    def list_addresses(self, session: Session, user_id: uuid.UUID) -> list[Address]:
        stmt = (
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.created_at)
        )
        return session.exec(stmt).all()

    def get_address(
        self,
        session: Session,
        user_id: uuid.UUID,
        address_id: uuid.UUID,
    ) -> Address | None:
        stmt = select(Address).where(
            Address.id == address_id, Address.user_id == user_id
        )
        return session.exec(stmt).first()

    def clear_default_addresses(self, session: Session, user_id: uuid.UUID) -> None:
        """Unset is_default on every address of the user (no commit)."""
        session.exec(
            update(Address)
            .where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
            .values(is_default=False)
        )

    def save_address(self, session: Session, address: Address) -> Address:
        """Stage an insert/update (no commit)."""
        session.add(address)
        session.flush()
        return address

    def delete_address(self, session: Session, address: Address) -> None:
        session.delete(address)
        session.commit()

    # ----- Wishlist -----

    def get_wishlist_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> WishlistItem | None:
        stmt = select(WishlistItem).where(
            WishlistItem.user_id == user_id, WishlistItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def list_wishlist_products(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> list[Product]:
        stmt = (
            select(Product)
            .join(WishlistItem, WishlistItem.product_id == Product.id)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at)
        )
        return session.exec(stmt).all()

    def add_wishlist_item(self, session: Session, item: WishlistItem) -> WishlistItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete_wishlist_item(self, session: Session, item: WishlistItem) -> None:
        session.delete(item)
        session.commit()
