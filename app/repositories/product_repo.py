# app/repositories/product_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, update
from sqlmodel import Session, select

from app.models.cart import CartItem
from app.models.order import OrderItem
from app.models.product import Product
from app.models.user import WishlistItem


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    - `lock_many` / `decrement_stock` / `set_rating` do not commit;
      they run inside a transaction owned by the calling service.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def lock_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        """
        Load products with SELECT ... FOR UPDATE.

        Rows are locked in id order so two checkouts touching the same
        products cannot deadlock. Dialects without row locks (SQLite)
        ignore the clause. populate_existing refreshes rows the session
        already holds so the stock check sees the locked values.
        """
        if not product_ids:
            return {}
        stmt = (
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {p.id: p for p in session.exec(stmt).all()}

    def decrement_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Atomically subtract `quantity` from stock if enough is left.

        Returns False when the row was not updated (stock changed under us
        or product vanished); the caller must abort its transaction.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(
                stock=Product.stock - quantity,
                updated_at=datetime.now(timezone.utc),
            )
        )
        result = session.exec(stmt)
        return result.rowcount == 1

    def set_rating(
        self,
        session: Session,
        product: Product,
        average_rating: float,
        total_reviews: int,
    ) -> Product:
        product.average_rating = average_rating
        product.total_reviews = total_reviews
        session.add(product)
        session.flush()
        return product

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        stmt = (
            select(Product)
            .order_by(Product.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        product.updated_at = datetime.now(timezone.utc)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def has_order_items(self, session: Session, product_id: uuid.UUID) -> bool:
        stmt = select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
        return session.exec(stmt).first() is not None

    def delete(self, session: Session, product: Product) -> None:
        """
        Delete a product together with cart and wishlist rows pointing at it.
        """
        session.exec(delete(CartItem).where(CartItem.product_id == product.id))
        session.exec(delete(WishlistItem).where(WishlistItem.product_id == product.id))
        session.delete(product)
        session.commit()
