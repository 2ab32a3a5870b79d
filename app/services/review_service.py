# app/services/review_service.py
import logging
import uuid

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import (
    AlreadyReviewed,
    Forbidden,
    InvalidRating,
    OrderNotEligible,
    ProductNotFound,
    ProductNotInOrder,
    ReviewNotFound,
)
from app.models.order import ORDER_STATUS_DELIVERED
from app.models.review import Review
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.review_repo import ReviewRepository
from app.schemas.review import ReviewCreate

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:
    """
    Reviews and per-product rating aggregates.

    average_rating / total_reviews are recomputed as an exact mean/count
    over all reviews of the product, in the same transaction as the
    review insert/delete.
    """

    def __init__(
        self,
        review_repo: ReviewRepository,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
    ):
        self.review_repo = review_repo
        self.order_repo = order_repo
        self.product_repo = product_repo

    def _recompute_rating(self, session: Session, product_id: uuid.UUID) -> None:
        product = self.product_repo.get_by_id(session, product_id)
        if product is None:
            raise ProductNotFound()
        average, count = self.review_repo.rating_stats(session, product_id)
        self.product_repo.set_rating(session, product, average, count)
        logger.info(
            "Product %s rating recomputed: %.2f over %d review(s)",
            product_id,
            average,
            count,
        )

    def submit_review(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: ReviewCreate,
    ) -> Review:
        """
        Rules:
          - rating in [1, 5]
          - order exists, belongs to the user, and is DELIVERED
          - product is one of the order's items
          - one review per (user, product)
        """
        if not MIN_RATING <= payload.rating <= MAX_RATING:
            raise InvalidRating()

        order = self.order_repo.get_by_id(session, payload.order_id)
        if not order:
            raise OrderNotEligible("Order not found", status_code=status.HTTP_404_NOT_FOUND)
        if order.user_id != user_id:
            raise OrderNotEligible(
                "Not authorized to review this order",
                status_code=status.HTTP_403_FORBIDDEN,
            )
        if order.status != ORDER_STATUS_DELIVERED:
            raise OrderNotEligible()

        items = self.order_repo.list_items_for_order(session, order.id)
        if not any(it.product_id == payload.product_id for it in items):
            raise ProductNotInOrder()

        if self.review_repo.get_for_user_product(session, user_id, payload.product_id):
            raise AlreadyReviewed()

        review = Review(
            product_id=payload.product_id,
            user_id=user_id,
            order_id=order.id,
            rating=payload.rating,
        )
        try:
            self.review_repo.create(session, review)
            self._recompute_rating(session, payload.product_id)
            session.commit()
        except IntegrityError as exc:
            # Concurrent duplicate caught by uq_reviews_product_user
            session.rollback()
            raise AlreadyReviewed() from exc
        except Exception:
            session.rollback()
            raise

        session.refresh(review)
        return review

    def delete_review(
        self,
        session: Session,
        user_id: uuid.UUID,
        review_id: uuid.UUID,
    ) -> None:
        review = self.review_repo.get_by_id(session, review_id)
        if not review:
            raise ReviewNotFound()
        if review.user_id != user_id:
            raise Forbidden("Not authorized to delete this review")

        product_id = review.product_id
        try:
            self.review_repo.delete(session, review)
            self._recompute_rating(session, product_id)
            session.commit()
        except Exception:
            session.rollback()
            raise
