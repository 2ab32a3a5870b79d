# app/schemas/payment.py
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.order import LineItem, OrderRead, ShippingAddress


class PaymentIntentCreate(SQLModel):
    """
    Checkout request: what the customer intends to buy and where to ship.
    """

    model_config = ConfigDict(extra="forbid")

    cart_items: list[LineItem]
    shipping_address: ShippingAddress


class CheckoutTotals(SQLModel):
    subtotal: float
    shipping: float
    tax: float
    total: float


class PrefillUser(SQLModel):
    """Customer info for the gateway's checkout widget."""

    name: str
    email: str
    phone: str


class PaymentIntentRead(SQLModel):
    order_id: str
    amount: int
    currency: str
    key_id: str
    user: PrefillUser
    totals: CheckoutTotals
    total_amount: float
    cart_items: list[LineItem]
    shipping_address: ShippingAddress


class PaymentVerify(SQLModel):
    """
    Gateway callback data forwarded by the client after payment.

    total_amount is informational only; the order total is re-derived
    from catalog prices.
    """

    model_config = ConfigDict(extra="forbid")

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    cart_items: list[LineItem]
    shipping_address: ShippingAddress
    total_amount: Decimal | None = None


class PaymentVerifyRead(SQLModel):
    success: bool
    message: str
    order: OrderRead
