# app/services/order_service.py
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlmodel import Session

from app.core.errors import (
    EmptyOrder,
    InsufficientStock,
    InvalidStatus,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
)
from app.models.order import (
    ORDER_STATUSES,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_SHIPPED,
    Order,
    OrderItem,
)
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.order import (
    AdminOrderRead,
    CustomerSummary,
    LineItem,
    OrderItemRead,
    OrderRead,
    ShippingAddress,
    UserOrderRead,
)

logger = logging.getLogger(__name__)

# Strict lifecycle: PENDING -> SHIPPED -> DELIVERED
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    ORDER_STATUS_PENDING: {ORDER_STATUS_SHIPPED},
    ORDER_STATUS_SHIPPED: {ORDER_STATUS_DELIVERED},
    ORDER_STATUS_DELIVERED: set(),
}


def merge_line_items(items: list[LineItem]) -> "OrderedDict[uuid.UUID, int]":
    """
    Collapse line items to product_id -> total quantity, keeping first-seen order.
    """
    merged: OrderedDict[uuid.UUID, int] = OrderedDict()
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return merged


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Place an order from line items in one transaction:
        lock products, check stock, snapshot items, decrement stock
      - List orders (customer view with review status, admin view)
      - Status transitions with shipped/delivered timestamps
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        review_repo: ReviewRepository,
        strict_transitions: bool = True,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.review_repo = review_repo
        self.strict_transitions = strict_transitions

    # -------- Order placement --------

    def place_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        line_items: list[LineItem],
        shipping_address: ShippingAddress,
        payment_result: dict[str, Any],
        total_price: Decimal,
        gateway_payment_id: str | None = None,
    ) -> OrderRead:
        """
        Persist an order and decrement stock atomically.

        Steps:
          1. Lock every referenced product (SELECT ... FOR UPDATE) and check
             existence + stock.
          2. Create the Order row (status='PENDING').
          3. Create OrderItem snapshots (name, price, first image).
          4. Decrement stock with a conditional UPDATE; a row that no longer
             has enough stock aborts the order.
          5. Commit and return the full order.

        Any failure rolls back everything: no partial order, no partial
        stock change.
        """
        if not line_items:
            raise EmptyOrder()

        quantities = merge_line_items(line_items)

        try:
            # 1) Lock + validate
            products = self.product_repo.lock_many(session, list(quantities))
            for product_id, quantity in quantities.items():
                product = products.get(product_id)
                if product is None:
                    raise ProductNotFound(f"Product not found: {product_id}")
                if product.stock < quantity:
                    raise InsufficientStock(f"Insufficient stock for {product.name}")

            # 2) Order row
            order = Order(
                user_id=user_id,
                shipping_address=shipping_address.model_dump(),
                payment_result=payment_result or {},
                gateway_payment_id=gateway_payment_id,
                total_price=total_price,
                status=ORDER_STATUS_PENDING,
            )
            order = self.order_repo.create_order(session, order)

            # 3) Item snapshots
            order_items = [
                OrderItem(
                    order_id=order.id,
                    product_id=product_id,
                    name=products[product_id].name,
                    price=products[product_id].price,
                    image=products[product_id].images[0] if products[product_id].images else "",
                    quantity=quantity,
                )
                for product_id, quantity in quantities.items()
            ]
            order_items = self.order_repo.create_items(session, order_items)

            # 4) Stock
            for product_id, quantity in quantities.items():
                if not self.product_repo.decrement_stock(session, product_id, quantity):
                    raise InsufficientStock(
                        f"Insufficient stock for {products[product_id].name}"
                    )

            # 5) Commit
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        logger.info(
            "Order %s placed by %s: %d item(s), total %s",
            order.id,
            user_id,
            len(order_items),
            order.total_price,
        )
        return self._build_order_dto(order, order_items)

    # -------- Customer views --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> list[UserOrderRead]:
        """
        The user's orders, newest first, each with items and `has_reviewed`.
        """
        orders = self.order_repo.list_for_user(session, user_id)
        order_ids = [o.id for o in orders]
        items_by_order = self.order_repo.list_items_for_orders(session, order_ids)
        reviewed = self.review_repo.reviewed_order_ids(session, user_id, order_ids)

        return [
            UserOrderRead(
                **self._build_order_dto(o, items_by_order[o.id]).model_dump(),
                has_reviewed=o.id in reviewed,
            )
            for o in orders
        ]

    # -------- Admin operations --------

    def list_all_orders(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 100,
    ) -> list[AdminOrderRead]:
        rows = self.order_repo.list_all_with_customers(session, skip, limit)
        items_by_order = self.order_repo.list_items_for_orders(
            session, [order.id for order, _ in rows]
        )
        return [
            AdminOrderRead(
                **self._build_order_dto(order, items_by_order[order.id]).model_dump(),
                customer=self._customer_summary(user),
            )
            for order, user in rows
        ]

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        new_status: str,
    ) -> OrderRead:
        """
        Admin-only status update.

          PENDING   -> SHIPPED
          SHIPPED   -> DELIVERED
          DELIVERED -> (no change)

        Re-applying the current status is a no-op. With strict transitions
        disabled any move among the three statuses is accepted.
        shipped_at / delivered_at are set on first entry only.
        """
        if new_status not in ORDER_STATUSES:
            raise InvalidStatus()

        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise OrderNotFound()

        current = order.status
        if (
            self.strict_transitions
            and current != new_status
            and new_status not in ALLOWED_TRANSITIONS.get(current, set())
        ):
            raise InvalidStatusTransition(
                f"Invalid status transition: {current} -> {new_status}"
            )

        now = datetime.now(timezone.utc)
        order.status = new_status
        if new_status == ORDER_STATUS_SHIPPED and order.shipped_at is None:
            order.shipped_at = now
        if new_status == ORDER_STATUS_DELIVERED:
            if order.delivered_at is None:
                order.delivered_at = now
            if order.shipped_at is None:
                order.shipped_at = now
        order.updated_at = now

        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        if current != new_status:
            logger.info("Order %s status %s -> %s", order.id, current, new_status)

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_dto(order, items)

    # -------- Helper DTO builders --------

    @staticmethod
    def _customer_summary(user: User | None) -> CustomerSummary | None:
        if user is None:
            return None
        return CustomerSummary(name=user.name, email=user.email)

    def _build_order_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderRead:
        """
        Compose OrderRead from ORM models, including line totals.
        """
        item_dtos = [
            OrderItemRead(
                id=it.id,
                product_id=it.product_id,
                name=it.name,
                price=float(it.price),
                image=it.image,
                quantity=it.quantity,
                line_total=float(it.price * it.quantity),
            )
            for it in items
        ]

        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            shipping_address=order.shipping_address,
            payment_result=order.payment_result,
            total_price=float(order.total_price),
            status=order.status,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            items=item_dtos,
        )
