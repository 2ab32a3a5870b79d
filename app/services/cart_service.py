# app/services/cart_service.py
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import CartItemNotFound, InsufficientStock, ProductNotFound
from app.models.cart import Cart, CartItem
from app.models.product import Product
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartProductRead,
    CartRead,
)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - lazily create the user's single cart
      - validate product existence
      - check quantity <= stock at the time of each mutation
        (stock only changes at checkout)
      - compute line totals and cart totals from live product prices
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise ProductNotFound()
        return product

    def _get_or_create_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            try:
                cart = self.cart_repo.create_cart(session, user_id)
            except IntegrityError:
                # Another request created it first
                session.rollback()
                cart = self.cart_repo.get_for_user(session, user_id)
        return cart

    @staticmethod
    def _ensure_stock(product: Product, quantity: int) -> None:
        if product.stock < quantity:
            raise InsufficientStock(f"Insufficient stock for {product.name}")

    def _build_cart_dto(self, session: Session, cart: Cart) -> CartRead:
        items = self.cart_repo.list_items(session, cart.id)
        products = self.product_repo.get_many(session, [it.product_id for it in items])

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_price = 0.0

        for it in items:
            product = products.get(it.product_id)
            if product is None:
                continue
            line_total = float(product.price) * it.quantity
            total_qty += it.quantity
            total_price += line_total

            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    quantity=it.quantity,
                    line_total=round(line_total, 2),
                    product=CartProductRead(
                        id=product.id,
                        name=product.name,
                        price=float(product.price),
                        stock=product.stock,
                        images=product.images,
                    ),
                    created_at=it.created_at,
                )
            )

        return CartRead(
            id=cart.id,
            user_id=cart.user_id,
            items=item_reads,
            total_quantity=total_qty,
            total_price=round(total_price, 2),
        )

    # ---- public operations ----

    def get_cart(self, session: Session, user_id: uuid.UUID) -> CartRead:
        """
        Return the user's cart, creating it on first access.
        """
        cart = self._get_or_create_cart(session, user_id)
        return self._build_cart_dto(session, cart)

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartRead:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist
          - stock >= requested quantity
          - if the product is already in the cart, its quantity grows by
            exactly one (not by `payload.quantity`) and stock is checked
            against the new total
        """
        product = self._get_product(session, payload.product_id)
        self._ensure_stock(product, payload.quantity)

        cart = self._get_or_create_cart(session, user_id)
        existing = self.cart_repo.get_item(session, cart.id, payload.product_id)

        if existing is None:
            item = CartItem(
                cart_id=cart.id,
                product_id=payload.product_id,
                quantity=payload.quantity,
            )
            try:
                self.cart_repo.create_item(session, item)
            except IntegrityError:
                # Same product added concurrently: fall through to the increment
                session.rollback()
                existing = self.cart_repo.get_item(session, cart.id, payload.product_id)
            else:
                return self._build_cart_dto(session, cart)

        new_qty = existing.quantity + 1
        self._ensure_stock(product, new_qty)
        existing.quantity = new_qty
        self.cart_repo.update_item(session, existing)

        return self._build_cart_dto(session, cart)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartRead:
        """
        Set the absolute quantity of an item in the cart.
        """
        cart = self._get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise CartItemNotFound()

        product = self._get_product(session, product_id)
        self._ensure_stock(product, payload.quantity)

        item.quantity = payload.quantity
        self.cart_repo.update_item(session, item)

        return self._build_cart_dto(session, cart)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartRead:
        """
        Remove a product from the cart if present; no-op otherwise.
        """
        cart = self._get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if item:
            self.cart_repo.delete_item(session, item)
        return self._build_cart_dto(session, cart)

    def clear_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartRead:
        """
        Clear all items from the cart and return the empty cart.
        """
        cart = self._get_or_create_cart(session, user_id)
        self.cart_repo.clear(session, cart.id)
        return self._build_cart_dto(session, cart)
