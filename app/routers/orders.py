# app/routers/orders.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import Settings, get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.order import OrderCreate, OrderRead, UserOrderRead
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
review_repo = ReviewRepository()


def get_order_service(settings: Settings = Depends(get_settings)) -> OrderService:
    return OrderService(
        order_repo,
        product_repo,
        review_repo,
        strict_transitions=settings.STRICT_ORDER_TRANSITIONS,
    )


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order for the given line items.

    Stock is checked and decremented in the same transaction that
    writes the order.
    """
    return service.place_order(
        session,
        user_id=current_user.id,
        line_items=payload.order_items,
        shipping_address=payload.shipping_address,
        payment_result=payload.payment_result,
        total_price=payload.total_price,
    )


@router.get("", response_model=list[UserOrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: OrderService = Depends(get_order_service),
):
    """
    List the authenticated user's orders with items and review status.
    """
    return service.list_user_orders(session, current_user.id)
