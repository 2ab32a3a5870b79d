"""Tests for application wiring: health, error envelope, request logging."""

import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

from .conftest import auth_headers


@pytest.fixture
def failing_client(engine):
    """Factory for a client whose app has a route that always raises."""

    def _make(environment):
        app = create_app(settings=Settings(ENVIRONMENT=environment), engine=engine)

        @app.get("/boom")
        def boom():
            raise RuntimeError("database password is hunter2")

        return TestClient(app, raise_server_exceptions=False)

    return _make


class TestHealthCheck:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data


class TestRequestLogging:
    def test_request_id_generated(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_client_errors_logged_as_warning(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="app.http"):
            client.get("/api/cart")

        record = next(r for r in caplog.records if r.name == "app.http")
        assert record.levelno == logging.WARNING
        assert "GET /api/cart -> 401" in record.getMessage()

    def test_unhandled_error_logged_with_request_id(self, failing_client, caplog):
        client = failing_client("development")

        with caplog.at_level(logging.INFO):
            response = client.get("/boom", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.headers["X-Request-ID"] == "req-500"

        access = next(r for r in caplog.records if r.name == "app.http")
        assert access.levelno == logging.ERROR
        assert "GET /boom -> 500" in access.getMessage()
        assert "request_id=req-500" in access.getMessage()

        handler = next(r for r in caplog.records if r.name == "app.main")
        assert "request_id=req-500" in handler.getMessage()
        assert handler.exc_info is not None


class TestErrorEnvelope:
    def test_validation_errors_are_400(self, client):
        response = client.get("/api/products/not-a-uuid")
        assert response.status_code == 400
        body = response.json()
        assert body["error_type"] == "ValidationError"
        assert isinstance(body["detail"], list)

    def test_domain_errors_carry_type(self, client):
        response = client.get("/api/products/00000000-0000-0000-0000-000000000001")
        assert response.json()["error_type"] == "ProductNotFound"

    def test_internal_error_hidden_in_production(self, failing_client):
        response = failing_client("production").get("/boom")
        assert response.status_code == 500
        assert response.json() == {
            "detail": "Internal server error",
            "error_type": "InternalError",
        }

    def test_internal_error_shown_outside_production(self, failing_client):
        response = failing_client("development").get("/boom")
        assert response.status_code == 500
        assert response.json()["detail"] == "database password is hunter2"
        assert response.json()["error_type"] == "InternalError"

    def test_auth_errors_carry_type(self, client, customer):
        missing = client.get("/api/cart")
        assert missing.status_code == 401
        assert missing.json() == {
            "detail": "Authentication required",
            "error_type": "Unauthorized",
        }

        bad_token = client.get("/api/cart", headers={"Authorization": "Bearer not-a-jwt"})
        assert bad_token.status_code == 401
        assert bad_token.json()["error_type"] == "Unauthorized"

        not_admin = client.get("/api/admin/stats", headers=auth_headers(customer))
        assert not_admin.status_code == 403
        assert not_admin.json() == {
            "detail": "Admin access required",
            "error_type": "AdminRequired",
        }
