"""Pytest fixtures for the storefront API tests."""

import json
import os
import time
import uuid
from decimal import Decimal

# Settings are read on first use; give them test values before any app import.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.payment_gateway import RazorpayGateway, get_payment_gateway
from app.main import create_app
from app.models.order import Order, OrderItem
from app.models.product import Product
from app.models.user import User

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
GATEWAY_SECRET = os.environ["RAZORPAY_KEY_SECRET"]

SHIPPING_ADDRESS = {
    "full_name": "Jane Doe",
    "street_address": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "phone_number": "555-0100",
}


def make_token(user_id: uuid.UUID, email: str, **claims) -> str:
    """Sign an access token the way the identity provider does."""
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user.id, user.email)}"}


class FakeRazorpay:
    """
    In-process stand-in for the Razorpay Orders API, served through
    httpx.MockTransport so the real gateway client is exercised.
    """

    def __init__(self):
        self.orders: dict[str, dict] = {}
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(500, json={"error": {"description": "boom"}})

        if request.method == "POST" and request.url.path.endswith("/orders"):
            data = json.loads(request.read())
            order_id = f"order_{uuid.uuid4().hex[:14]}"
            self.orders[order_id] = {
                "id": order_id,
                "amount": data["amount"],
                "currency": data["currency"],
                "receipt": data["receipt"],
                "notes": data["notes"],
                "status": "created",
            }
            return httpx.Response(200, json=self.orders[order_id])

        if request.method == "GET" and "/orders/" in request.url.path:
            order_id = request.url.path.rsplit("/", 1)[-1]
            if order_id not in self.orders:
                return httpx.Response(404, json={"error": {"description": "not found"}})
            return httpx.Response(200, json=self.orders[order_id])

        return httpx.Response(404)

    def add_order(self, amount: int, currency: str = "INR") -> str:
        order_id = f"order_{uuid.uuid4().hex[:14]}"
        self.orders[order_id] = {"id": order_id, "amount": amount, "currency": currency}
        return order_id


@pytest.fixture
def engine():
    """In-memory SQLite shared by the app and the test session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_razorpay():
    return FakeRazorpay()


@pytest.fixture
def gateway(fake_razorpay):
    client = httpx.Client(
        base_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(fake_razorpay.handler),
    )
    return RazorpayGateway(
        key_id="rzp_test_key",
        key_secret=GATEWAY_SECRET,
        client=client,
    )


@pytest.fixture
def uploads(monkeypatch):
    """Replace Supabase Storage calls with in-memory bookkeeping."""
    state = {"uploaded": [], "deleted": []}

    def fake_upload(path, file_bytes, content_type):
        state["uploaded"].append(path)
        return f"https://cdn.example.com/storage/v1/object/public/assets/{path}"

    def fake_delete(urls):
        state["deleted"].extend(urls)

    monkeypatch.setattr("app.services.product_service.upload_to_storage", fake_upload)
    monkeypatch.setattr("app.services.product_service.delete_public_urls", fake_delete)
    return state


@pytest.fixture
def app(engine, gateway, uploads):
    app = create_app(engine=engine)
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def customer(session):
    user = User(id=uuid.uuid4(), email="jane@example.com", name="Jane", role="user")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def other_customer(session):
    user = User(id=uuid.uuid4(), email="bob@example.com", name="Bob", role="user")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session):
    user = User(id=uuid.uuid4(), email="admin@example.com", name="Admin", role="admin")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def make_product(session):
    """Factory that inserts a catalog product."""

    def _make(name="Chocolate Cake", price="25.00", stock=10, category="cakes", images=None):
        product = Product(
            name=name,
            description=f"{name} description",
            price=Decimal(price),
            stock=stock,
            category=category,
            images=images if images is not None else [f"https://cdn.example.com/{name}.png"],
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_order(session):
    """Factory that inserts an order with one item per (product, quantity)."""

    def _make(user, lines, status="PENDING"):
        total = sum(Decimal(p.price) * q for p, q in lines)
        order = Order(
            user_id=user.id,
            shipping_address=dict(SHIPPING_ADDRESS),
            payment_result={},
            total_price=total,
            status=status,
        )
        session.add(order)
        session.flush()
        for product, quantity in lines:
            session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    image=product.images[0] if product.images else "",
                    quantity=quantity,
                )
            )
        session.commit()
        session.refresh(order)
        return order

    return _make
