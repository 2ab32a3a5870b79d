"""Tests for order placement, listing and status transitions."""

import pytest
from sqlmodel import select

from app.core.config import Settings, get_settings
from app.models.order import Order, OrderItem
from app.routers import orders as orders_router

from .conftest import SHIPPING_ADDRESS, auth_headers


def order_payload(*lines, total="0.00"):
    return {
        "order_items": [
            {"product_id": str(product.id), "quantity": quantity}
            for product, quantity in lines
        ],
        "shipping_address": SHIPPING_ADDRESS,
        "payment_result": {"status": "completed"},
        "total_price": total,
    }


def stock_of(session, product):
    session.expire_all()
    session.refresh(product)
    return product.stock


class TestPlaceOrder:
    def test_place_order_decrements_stock(self, client, session, customer, make_product):
        cake = make_product(name="Cake", price="25.00", stock=10)
        pie = make_product(name="Pie", price="12.50", stock=3)

        response = client.post(
            "/api/orders",
            json=order_payload((cake, 2), (pie, 3), total="87.50"),
            headers=auth_headers(customer),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["user_id"] == str(customer.id)
        assert data["total_price"] == 87.5
        assert data["shipping_address"]["city"] == "Springfield"
        assert len(data["items"]) == 2

        assert stock_of(session, cake) == 8
        assert stock_of(session, pie) == 0

    def test_items_snapshot_catalog_details(self, client, session, customer, make_product):
        cake = make_product(name="Cake", price="25.00", stock=10)

        response = client.post(
            "/api/orders",
            json=order_payload((cake, 1), total="25.00"),
            headers=auth_headers(customer),
        )
        item = response.json()["items"][0]
        assert item["name"] == "Cake"
        assert item["price"] == 25.0
        assert item["image"] == "https://cdn.example.com/Cake.png"
        assert item["line_total"] == 25.0

        # Later catalog edits do not touch the stored snapshot
        cake.name = "Renamed Cake"
        session.add(cake)
        session.commit()
        stored = session.exec(select(OrderItem)).one()
        assert stored.name == "Cake"

    def test_duplicate_lines_are_merged(self, client, session, customer, make_product):
        cake = make_product(stock=5)

        response = client.post(
            "/api/orders",
            json=order_payload((cake, 2), (cake, 1)),
            headers=auth_headers(customer),
        )
        assert response.status_code == 201
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["quantity"] == 3
        assert stock_of(session, cake) == 2

    def test_insufficient_stock_aborts_whole_order(
        self, client, session, customer, make_product
    ):
        cake = make_product(name="Cake", stock=10)
        pie = make_product(name="Pie", stock=1)

        response = client.post(
            "/api/orders",
            json=order_payload((cake, 2), (pie, 2)),
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "InsufficientStock"
        assert "Pie" in response.json()["detail"]

        assert stock_of(session, cake) == 10
        assert stock_of(session, pie) == 1
        assert session.exec(select(Order)).all() == []

    def test_failed_decrement_rolls_back(
        self, client, session, customer, make_product, monkeypatch
    ):
        """Stock taken by a concurrent checkout after the check aborts the order."""
        cake = make_product(name="Cake", stock=10)
        pie = make_product(name="Pie", stock=10)
        pie_id = pie.id
        repo = orders_router.product_repo
        real_decrement = repo.decrement_stock

        def decrement(session, product_id, quantity):
            if product_id == pie_id:
                return False
            return real_decrement(session, product_id, quantity)

        monkeypatch.setattr(repo, "decrement_stock", decrement)

        response = client.post(
            "/api/orders",
            json=order_payload((cake, 1), (pie, 1)),
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "InsufficientStock"
        assert stock_of(session, cake) == 10
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderItem)).all() == []

    def test_empty_order_rejected(self, client, customer):
        response = client.post(
            "/api/orders",
            json={"order_items": [], "shipping_address": SHIPPING_ADDRESS, "total_price": "0"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "EmptyOrder"

    def test_unknown_product(self, client, customer, make_product):
        cake = make_product()
        payload = order_payload((cake, 1))
        payload["order_items"][0]["product_id"] = "00000000-0000-0000-0000-000000000001"

        response = client.post("/api/orders", json=payload, headers=auth_headers(customer))
        assert response.status_code == 404
        assert response.json()["error_type"] == "ProductNotFound"

    def test_zero_quantity_is_validation_error(self, client, customer, make_product):
        cake = make_product()
        response = client.post(
            "/api/orders",
            json=order_payload((cake, 0)),
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"

    def test_requires_auth(self, client, make_product):
        cake = make_product()
        response = client.post("/api/orders", json=order_payload((cake, 1)))
        assert response.status_code == 401


class TestListMyOrders:
    def test_lists_only_own_orders(
        self, client, customer, other_customer, make_product, make_order
    ):
        cake = make_product()
        mine = make_order(customer, [(cake, 1)])
        make_order(other_customer, [(cake, 2)])

        response = client.get("/api/orders", headers=auth_headers(customer))
        assert response.status_code == 200
        data = response.json()
        assert [o["id"] for o in data] == [str(mine.id)]
        assert data[0]["has_reviewed"] is False
        assert data[0]["items"][0]["quantity"] == 1

    def test_empty(self, client, customer):
        response = client.get("/api/orders", headers=auth_headers(customer))
        assert response.status_code == 200
        assert response.json() == []


class TestUpdateOrderStatus:
    def patch_status(self, client, admin, order_id, status):
        return client.patch(
            f"/api/admin/orders/{order_id}/status",
            json={"status": status},
            headers=auth_headers(admin),
        )

    def test_full_lifecycle(self, client, admin, customer, make_product, make_order):
        order = make_order(customer, [(make_product(), 1)])

        shipped = self.patch_status(client, admin, order.id, "SHIPPED")
        assert shipped.status_code == 200
        assert shipped.json()["status"] == "SHIPPED"
        assert shipped.json()["shipped_at"] is not None
        assert shipped.json()["delivered_at"] is None

        delivered = self.patch_status(client, admin, order.id, "DELIVERED")
        assert delivered.status_code == 200
        assert delivered.json()["status"] == "DELIVERED"
        assert delivered.json()["delivered_at"] is not None
        assert delivered.json()["shipped_at"] == shipped.json()["shipped_at"]

    @pytest.mark.parametrize(
        "current,target",
        [("PENDING", "DELIVERED"), ("SHIPPED", "PENDING"), ("DELIVERED", "SHIPPED")],
    )
    def test_invalid_transitions(
        self, client, admin, customer, make_product, make_order, current, target
    ):
        order = make_order(customer, [(make_product(), 1)], status=current)

        response = self.patch_status(client, admin, order.id, target)
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidStatusTransition"

    def test_same_status_is_noop(self, client, admin, customer, make_product, make_order):
        order = make_order(customer, [(make_product(), 1)])

        response = self.patch_status(client, admin, order.id, "PENDING")
        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["shipped_at"] is None

    def test_reapplying_shipped_keeps_timestamp(
        self, client, admin, customer, make_product, make_order
    ):
        order = make_order(customer, [(make_product(), 1)])
        shipped = self.patch_status(client, admin, order.id, "SHIPPED").json()

        again = self.patch_status(client, admin, order.id, "SHIPPED")
        assert again.status_code == 200
        assert again.json()["status"] == "SHIPPED"
        assert again.json()["shipped_at"] == shipped["shipped_at"]
        assert again.json()["delivered_at"] is None

    def test_relaxed_cycle_keeps_first_timestamps(
        self, app, client, admin, customer, make_product, make_order
    ):
        app.dependency_overrides[get_settings] = lambda: Settings(
            STRICT_ORDER_TRANSITIONS=False
        )
        order = make_order(customer, [(make_product(), 1)])
        first = self.patch_status(client, admin, order.id, "DELIVERED").json()

        for status in ("PENDING", "SHIPPED", "DELIVERED"):
            response = self.patch_status(client, admin, order.id, status)
            assert response.status_code == 200
            assert response.json()["status"] == status

        data = response.json()
        assert data["shipped_at"] == first["shipped_at"]
        assert data["delivered_at"] == first["delivered_at"]

    def test_unknown_status(self, client, admin, customer, make_product, make_order):
        order = make_order(customer, [(make_product(), 1)])

        response = self.patch_status(client, admin, order.id, "LOST")
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidStatus"

    def test_missing_order(self, client, admin):
        response = self.patch_status(
            client, admin, "00000000-0000-0000-0000-000000000001", "SHIPPED"
        )
        assert response.status_code == 404
        assert response.json()["error_type"] == "OrderNotFound"

    def test_relaxed_transitions(self, app, client, admin, customer, make_product, make_order):
        app.dependency_overrides[get_settings] = lambda: Settings(
            STRICT_ORDER_TRANSITIONS=False
        )
        order = make_order(customer, [(make_product(), 1)])

        response = self.patch_status(client, admin, order.id, "DELIVERED")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "DELIVERED"
        assert data["shipped_at"] is not None
        assert data["delivered_at"] is not None

    def test_customer_cannot_update(self, client, customer, make_product, make_order):
        order = make_order(customer, [(make_product(), 1)])

        response = self.patch_status(client, customer, order.id, "SHIPPED")
        assert response.status_code == 403
