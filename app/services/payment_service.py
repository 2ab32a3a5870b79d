# app/services/payment_service.py
import logging
import time
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import (
    EmptyOrder,
    InvalidSignature,
    PaymentAlreadyProcessed,
    PaymentAmountMismatch,
    ProductNotFound,
)
from app.core.payment_gateway import RazorpayGateway
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.schemas.order import LineItem
from app.schemas.payment import (
    CheckoutTotals,
    PaymentIntentCreate,
    PaymentIntentRead,
    PaymentVerify,
    PaymentVerifyRead,
    PrefillUser,
)
from app.services.order_service import OrderService, merge_line_items

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Quote:
    """Checkout totals derived from catalog prices."""

    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    @property
    def amount_minor(self) -> int:
        """Total in the currency's smallest unit (e.g. paise)."""
        return int((self.total * 100).to_integral_value(rounding=ROUND_HALF_UP))

    def as_totals(self) -> CheckoutTotals:
        return CheckoutTotals(
            subtotal=float(self.subtotal),
            shipping=float(self.shipping),
            tax=float(self.tax),
            total=float(self.total),
        )


class PaymentService:
    """
    Checkout with the external payment gateway.

    Flow:
      1. create_intent: price the cart from the catalog, open a gateway order.
      2. customer pays on the client with the gateway widget.
      3. verify: check the gateway signature, re-price the cart, compare with
         the amount the gateway order was opened for, then hand over to
         OrderService.place_order.

    Nothing is persisted between 1 and 3.
    """

    def __init__(
        self,
        product_repo: ProductRepository,
        order_service: OrderService,
        shipping_fee: Decimal,
        tax_rate: Decimal,
        currency: str,
    ):
        self.product_repo = product_repo
        self.order_service = order_service
        self.shipping_fee = shipping_fee
        self.tax_rate = tax_rate
        self.currency = currency

    def quote(self, session: Session, items: list[LineItem]) -> Quote:
        """
        subtotal = sum(price * qty) over catalog prices
        tax      = tax_rate * subtotal
        total    = subtotal + shipping + tax
        """
        if not items:
            raise EmptyOrder("No cart items provided")

        quantities = merge_line_items(items)
        products = self.product_repo.get_many(session, list(quantities))

        subtotal = Decimal("0")
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(f"Product not found: {product_id}")
            subtotal += Decimal(product.price) * quantity

        subtotal = _to_cents(subtotal)
        shipping = _to_cents(Decimal(self.shipping_fee))
        tax = _to_cents(subtotal * Decimal(self.tax_rate))
        return Quote(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=subtotal + shipping + tax,
        )

    def create_intent(
        self,
        session: Session,
        gateway: RazorpayGateway,
        user: User,
        payload: PaymentIntentCreate,
    ) -> PaymentIntentRead:
        quote = self.quote(session, payload.cart_items)

        gateway_order = gateway.create_order(
            amount=quote.amount_minor,
            currency=self.currency,
            receipt=f"receipt_{int(time.time() * 1000)}_{user.id}",
            notes={
                "userId": str(user.id),
                "itemCount": str(len(payload.cart_items)),
            },
        )

        return PaymentIntentRead(
            order_id=gateway_order["id"],
            amount=int(gateway_order.get("amount", quote.amount_minor)),
            currency=gateway_order.get("currency", self.currency),
            key_id=gateway.key_id,
            user=PrefillUser(
                name=user.name or "",
                email=user.email or "",
                phone=payload.shipping_address.phone_number or "",
            ),
            totals=quote.as_totals(),
            total_amount=float(quote.total),
            cart_items=payload.cart_items,
            shipping_address=payload.shipping_address,
        )

    def verify_and_place_order(
        self,
        session: Session,
        gateway: RazorpayGateway,
        user_id: uuid.UUID,
        payload: PaymentVerify,
    ) -> PaymentVerifyRead:
        """
        Signature-gated order creation.

        Raises:
            InvalidSignature: signature does not match order_id|payment_id.
            PaymentAlreadyProcessed: an order already exists for payment_id.
            PaymentAmountMismatch: the gateway order amount differs from the
                amount re-derived from current catalog prices.
        """
        if not gateway.verify_signature(
            payload.razorpay_order_id,
            payload.razorpay_payment_id,
            payload.razorpay_signature,
        ):
            logger.warning(
                "Rejected payment %s for gateway order %s: bad signature",
                payload.razorpay_payment_id,
                payload.razorpay_order_id,
            )
            raise InvalidSignature()

        if self.order_service.order_repo.get_by_gateway_payment_id(
            session, payload.razorpay_payment_id
        ):
            logger.warning(
                "Rejected replay of payment %s for gateway order %s",
                payload.razorpay_payment_id,
                payload.razorpay_order_id,
            )
            raise PaymentAlreadyProcessed()

        quote = self.quote(session, payload.cart_items)

        gateway_order = gateway.fetch_order(payload.razorpay_order_id)
        paid_amount = int(gateway_order.get("amount", -1))
        if paid_amount != quote.amount_minor:
            logger.warning(
                "Gateway order %s amount %s != recomputed %s",
                payload.razorpay_order_id,
                paid_amount,
                quote.amount_minor,
            )
            raise PaymentAmountMismatch()

        if payload.total_amount is not None and _to_cents(payload.total_amount) != quote.total:
            logger.warning(
                "Client total %s differs from recomputed %s for gateway order %s",
                payload.total_amount,
                quote.total,
                payload.razorpay_order_id,
            )

        try:
            order = self.order_service.place_order(
                session,
                user_id=user_id,
                line_items=payload.cart_items,
                shipping_address=payload.shipping_address,
                payment_result={
                    "gateway_order_id": payload.razorpay_order_id,
                    "gateway_payment_id": payload.razorpay_payment_id,
                    "gateway_signature": payload.razorpay_signature,
                    "status": "completed",
                },
                total_price=quote.total,
                gateway_payment_id=payload.razorpay_payment_id,
            )
        except IntegrityError as exc:
            # Concurrent verify of the same payment; place_order already rolled back
            raise PaymentAlreadyProcessed() from exc

        return PaymentVerifyRead(
            success=True,
            message="Payment verified and order created successfully",
            order=order,
        )
