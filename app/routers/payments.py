# app/routers/payments.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import Settings, get_settings
from app.core.payment_gateway import RazorpayGateway, get_payment_gateway
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.routers.orders import get_order_service
from app.schemas.payment import (
    PaymentIntentCreate,
    PaymentIntentRead,
    PaymentVerify,
    PaymentVerifyRead,
)
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])

product_repo = ProductRepository()


def get_payment_service(
    settings: Settings = Depends(get_settings),
    order_service: OrderService = Depends(get_order_service),
) -> PaymentService:
    return PaymentService(
        product_repo,
        order_service,
        shipping_fee=settings.SHIPPING_FEE,
        tax_rate=settings.TAX_RATE,
        currency=settings.PAYMENT_CURRENCY,
    )


@router.post("/create-order", response_model=PaymentIntentRead)
def create_payment_order(
    payload: PaymentIntentCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Price the cart and open a gateway order.

    Must be called before the client starts the payment widget.
    """
    return service.create_intent(session, gateway, current_user, payload)


@router.post("/verify", response_model=PaymentVerifyRead)
def verify_payment(
    payload: PaymentVerify,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Verify the gateway signature and create the order.
    """
    return service.verify_and_place_order(session, gateway, current_user.id, payload)
