# app/core/errors.py
"""
Domain errors raised by services.

Every error carries the HTTP status it maps to; `app.main` registers a single
exception handler for `ShopError` that renders:

    {"detail": "<message>", "error_type": "<ClassName>"}
"""

from fastapi import status


class ShopError(Exception):
    """Base exception for all business-rule violations."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ---- Auth ----


class Unauthorized(ShopError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AdminRequired(ShopError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin access required"


# ---- Catalog / cart ----


class ProductNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Product not found"


class InsufficientStock(ShopError):
    default_message = "Insufficient stock"


class CartItemNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Item not found in cart"


class InvalidImage(ShopError):
    default_message = "Invalid image upload"


class ProductInUse(ShopError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Product appears in existing orders and cannot be deleted"


# ---- Orders ----


class EmptyOrder(ShopError):
    default_message = "No order items"


class OrderNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found"


class InvalidStatus(ShopError):
    default_message = "Invalid status"


class InvalidStatusTransition(ShopError):
    default_message = "Invalid status transition"


# ---- Payments ----


class InvalidSignature(ShopError):
    default_message = "Invalid payment signature"


class PaymentAmountMismatch(ShopError):
    default_message = "Paid amount does not match order total"


class PaymentAlreadyProcessed(ShopError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Payment has already been used for an order"


class PaymentGatewayError(ShopError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment gateway request failed"


# ---- Reviews ----


class InvalidRating(ShopError):
    default_message = "Rating must be between 1 and 5"


class OrderNotEligible(ShopError):
    """
    The order cannot be reviewed. Raised with 404 (missing),
    403 (someone else's order) or 400 (not delivered yet).
    """

    default_message = "Can only review delivered orders"


class ProductNotInOrder(ShopError):
    default_message = "Product not found in this order"


class AlreadyReviewed(ShopError):
    default_message = "You have already reviewed this product"


class ReviewNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Review not found"


class Forbidden(ShopError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to perform this action"


# ---- Users ----


class AddressNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Address not found"


class AlreadyInWishlist(ShopError):
    default_message = "Product already in wishlist"


class NotInWishlist(ShopError):
    default_message = "Product not found in wishlist"
