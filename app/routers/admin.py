# app/routers/admin.py
import uuid
from decimal import Decimal

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    UploadFile,
    status,
)
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlmodel import Session, SQLModel

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.repositories.stats_repo import StatsRepository
from app.repositories.user_repo import UserRepository
from app.routers.orders import get_order_service
from app.schemas.order import AdminOrderRead, OrderRead, OrderStatusUpdate
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate
from app.schemas.stats import AdminDashboardStats
from app.schemas.user import UserRead
from app.services.order_service import OrderService
from app.services.product_service import ProductService
from app.services.stats_service import StatsService

# Every route here is admin only
router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

product_service = ProductService(ProductRepository())
stats_service = StatsService(StatsRepository(), UserRepository())


def _validated(model: type[SQLModel], **fields) -> SQLModel:
    """
    Build a payload model from multipart form fields.

    Form fields bypass FastAPI's body validation, so pydantic errors are
    re-raised as RequestValidationError to get the same 400 response.
    """
    data = {k: v for k, v in fields.items() if v is not None}
    try:
        return model(**data)
    except ValidationError as exc:
        raise RequestValidationError(
            exc.errors(include_url=False, include_context=False)
        ) from exc


def _read_images(files: list[UploadFile] | None) -> list[tuple[str, bytes]]:
    return [(f.content_type or "", f.file.read()) for f in files or []]


# -------- Products --------


@router.get("/products", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 100,
):
    return product_service.list_products(session, skip=skip, limit=limit)


@router.post(
    "/products",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    name: str = Form(...),
    description: str = Form(...),
    price: Decimal = Form(...),
    stock: int = Form(...),
    category: str = Form(...),
    images: list[UploadFile] = File(...),
    session: Session = Depends(get_session),
):
    """
    Create a product from multipart form fields and 1 to 3 images
    (JPEG / PNG / WEBP, 5MB each).
    """
    payload = _validated(
        ProductCreate,
        name=name,
        description=description,
        price=price,
        stock=stock,
        category=category,
    )
    return product_service.create_product(session, payload, _read_images(images))


@router.put("/products/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    name: str | None = Form(None),
    description: str | None = Form(None),
    price: Decimal | None = Form(None),
    stock: int | None = Form(None),
    category: str | None = Form(None),
    images: list[UploadFile] | None = File(None),
    session: Session = Depends(get_session),
):
    """
    Partial product update. Uploading images replaces the whole gallery.
    """
    payload = _validated(
        ProductUpdate,
        name=name,
        description=description,
        price=price,
        stock=stock,
        category=category,
    )
    return product_service.update_product(
        session, product_id, payload, _read_images(images)
    )


@router.delete("/products/{product_id}")
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
) -> dict[str, str]:
    """
    Delete a product and its stored images.

    Products referenced by past orders cannot be deleted (409).
    """
    product_service.delete_product(session, product_id)
    return {"message": "Product deleted successfully"}


# -------- Orders --------


@router.get("/orders", response_model=list[AdminOrderRead])
def list_orders(
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
    skip: int = 0,
    limit: int = 100,
):
    """
    All orders, newest first, with customer name and email.
    """
    return service.list_all_orders(session, skip=skip, limit=limit)


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Move an order along PENDING -> SHIPPED -> DELIVERED.
    """
    return service.update_status(session, order_id, payload.status)


# -------- Customers / stats --------


@router.get("/customers", response_model=list[UserRead])
def list_customers(session: Session = Depends(get_session)):
    return stats_service.list_customers(session)


@router.get("/stats", response_model=AdminDashboardStats)
def get_admin_dashboard_stats(session: Session = Depends(get_session)):
    """
    Headline totals: revenue, orders, customers, products.
    """
    return stats_service.get_admin_dashboard_stats(session)
