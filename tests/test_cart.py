"""Tests for the shopping cart."""

import uuid

from app.routers import cart as cart_router

from .conftest import auth_headers


def add(client, user, product, quantity=None):
    body = {"product_id": str(product.id)}
    if quantity is not None:
        body["quantity"] = quantity
    return client.post("/api/cart", json=body, headers=auth_headers(user))


def item_for(cart, product):
    return next(i for i in cart["items"] if i["product_id"] == str(product.id))


class TestGetCart:
    def test_cart_created_on_first_access(self, client, customer):
        response = client.get("/api/cart", headers=auth_headers(customer))
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(customer.id)
        assert data["items"] == []
        assert data["total_quantity"] == 0
        assert data["total_price"] == 0

        again = client.get("/api/cart", headers=auth_headers(customer))
        assert again.json()["id"] == data["id"]

    def test_requires_auth(self, client):
        assert client.get("/api/cart").status_code == 401

    def test_totals_use_current_price(self, client, session, customer, make_product):
        cake = make_product(price="10.00", stock=10)
        add(client, customer, cake, quantity=3)

        cake.price = 12
        session.add(cake)
        session.commit()

        data = client.get("/api/cart", headers=auth_headers(customer)).json()
        assert data["total_quantity"] == 3
        assert data["total_price"] == 36.0
        assert item_for(data, cake)["line_total"] == 36.0
        assert item_for(data, cake)["product"]["name"] == "Chocolate Cake"


class TestAddToCart:
    def test_repeat_add_increments_until_stock_runs_out(
        self, client, session, customer, make_product
    ):
        product = make_product(stock=5)

        assert add(client, customer, product).status_code == 200
        response = add(client, customer, product)
        assert response.status_code == 200
        assert item_for(response.json(), product)["quantity"] == 2

        product.stock = 1
        session.add(product)
        session.commit()

        response = add(client, customer, product)
        assert response.status_code == 400
        assert response.json()["error_type"] == "InsufficientStock"

        cart = client.get("/api/cart", headers=auth_headers(customer)).json()
        assert item_for(cart, product)["quantity"] == 2

    def test_existing_item_grows_by_one(self, client, customer, make_product):
        product = make_product(stock=10)
        add(client, customer, product, quantity=3)

        response = add(client, customer, product, quantity=4)
        assert item_for(response.json(), product)["quantity"] == 4

    def test_new_item_uses_requested_quantity(self, client, customer, make_product):
        product = make_product(stock=10)

        response = add(client, customer, product, quantity=3)
        assert response.status_code == 200
        assert item_for(response.json(), product)["quantity"] == 3
        assert response.json()["total_quantity"] == 3

    def test_quantity_above_stock(self, client, customer, make_product):
        product = make_product(stock=2)

        response = add(client, customer, product, quantity=3)
        assert response.status_code == 400
        assert response.json()["error_type"] == "InsufficientStock"

    def test_unknown_product(self, client, customer):
        response = client.post(
            "/api/cart",
            json={"product_id": str(uuid.uuid4())},
            headers=auth_headers(customer),
        )
        assert response.status_code == 404
        assert response.json()["error_type"] == "ProductNotFound"


    def test_cart_created_by_concurrent_request(self, client, customer, make_product, monkeypatch):
        cart_id = client.get("/api/cart", headers=auth_headers(customer)).json()["id"]
        repo = cart_router.cart_repo
        real_get_for_user = repo.get_for_user
        calls = []

        def get_for_user(session, user_id):
            calls.append(user_id)
            if len(calls) == 1:
                return None
            return real_get_for_user(session, user_id)

        monkeypatch.setattr(repo, "get_for_user", get_for_user)

        response = add(client, customer, make_product(stock=5), quantity=2)
        assert response.status_code == 200
        assert response.json()["id"] == cart_id
        assert response.json()["total_quantity"] == 2

    def test_same_product_added_concurrently(self, client, customer, make_product, monkeypatch):
        cake = make_product(stock=5)
        add(client, customer, cake, quantity=1)
        repo = cart_router.cart_repo
        real_get_item = repo.get_item
        calls = []

        def get_item(session, cart_id, product_id):
            calls.append(product_id)
            if len(calls) == 1:
                return None
            return real_get_item(session, cart_id, product_id)

        monkeypatch.setattr(repo, "get_item", get_item)

        response = add(client, customer, cake, quantity=3)
        assert response.status_code == 200
        assert item_for(response.json(), cake)["quantity"] == 2


class TestUpdateCartItem:
    def test_set_quantity(self, client, customer, make_product):
        product = make_product(stock=10)
        add(client, customer, product)

        response = client.put(
            f"/api/cart/{product.id}",
            json={"quantity": 7},
            headers=auth_headers(customer),
        )
        assert response.status_code == 200
        assert item_for(response.json(), product)["quantity"] == 7

    def test_item_not_in_cart(self, client, customer, make_product):
        product = make_product()

        response = client.put(
            f"/api/cart/{product.id}",
            json={"quantity": 1},
            headers=auth_headers(customer),
        )
        assert response.status_code == 404
        assert response.json()["error_type"] == "CartItemNotFound"

    def test_quantity_above_stock(self, client, customer, make_product):
        product = make_product(stock=3)
        add(client, customer, product)

        response = client.put(
            f"/api/cart/{product.id}",
            json={"quantity": 4},
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "InsufficientStock"

    def test_zero_quantity_rejected(self, client, customer, make_product):
        product = make_product()
        add(client, customer, product)

        response = client.put(
            f"/api/cart/{product.id}",
            json={"quantity": 0},
            headers=auth_headers(customer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"


class TestRemoveFromCart:
    def test_remove_item(self, client, customer, make_product):
        cake = make_product(name="Cake")
        pie = make_product(name="Pie")
        add(client, customer, cake)
        add(client, customer, pie)

        response = client.delete(f"/api/cart/{cake.id}", headers=auth_headers(customer))
        assert response.status_code == 200
        assert [i["product_id"] for i in response.json()["items"]] == [str(pie.id)]

    def test_remove_missing_item_is_noop(self, client, customer, make_product):
        product = make_product()

        response = client.delete(f"/api/cart/{product.id}", headers=auth_headers(customer))
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_clear_cart(self, client, customer, make_product):
        add(client, customer, make_product(name="Cake"))
        add(client, customer, make_product(name="Pie"))

        response = client.delete("/api/cart", headers=auth_headers(customer))
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["total_price"] == 0

    def test_carts_are_per_user(self, client, customer, other_customer, make_product):
        add(client, customer, make_product())

        response = client.get("/api/cart", headers=auth_headers(other_customer))
        assert response.json()["items"] == []
