# app/core/payment_gateway.py
"""
Razorpay adapter.

Only the two calls checkout needs are wrapped:

  - POST /v1/orders        create a gateway order for an amount
  - GET  /v1/orders/{id}   read back the amount the customer paid against

plus the signature scheme Razorpay uses for payment callbacks:

  hex(HMAC_SHA256(key_secret, "<order_id>|<payment_id>"))
"""

import hashlib
import hmac
import logging
from functools import lru_cache
from typing import Any

import httpx

from app.core.config import get_settings
from app.core.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Hex HMAC-SHA256 over `order_id|payment_id`."""
    body = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class RazorpayGateway:
    """
    Thin HTTP client for the Razorpay Orders API.

    Network or API failures surface as PaymentGatewayError (502).
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        client: httpx.Client | None = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self._client = client or httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Razorpay %s %s failed with %s: %s",
                method,
                path,
                exc.response.status_code,
                exc.response.text,
            )
            raise PaymentGatewayError() from exc
        except httpx.HTTPError as exc:
            logger.error("Razorpay %s %s unreachable: %s", method, path, exc)
            raise PaymentGatewayError() from exc
        return response.json()

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Create a gateway order. `amount` is in the currency's smallest unit.

        Returns the gateway payload (id, amount, currency, status, ...).
        """
        return self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )

    def fetch_order(self, order_id: str) -> dict[str, Any]:
        return self._request("GET", f"/orders/{order_id}")

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = compute_signature(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode(), signature.encode())


@lru_cache
def get_payment_gateway() -> RazorpayGateway:
    """
    FastAPI dependency returning the process-wide gateway client.

    Tests replace it through `app.dependency_overrides`.
    """
    settings = get_settings()
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
    )
