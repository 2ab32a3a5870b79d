# app/repositories/review_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.review import Review


class ReviewRepository:
    """
    Data access layer for reviews.

    No commits: review writes share a transaction with the product
    rating recompute, owned by ReviewService.
    """

    def get_by_id(self, session: Session, review_id: uuid.UUID) -> Review | None:
        return session.get(Review, review_id)

    def get_for_user_product(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Review | None:
        stmt = select(Review).where(
            Review.user_id == user_id, Review.product_id == product_id
        )
        return session.exec(stmt).first()

    def reviewed_order_ids(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_ids: list[uuid.UUID],
    ) -> set[uuid.UUID]:
        if not order_ids:
            return set()
        stmt = select(Review.order_id).where(
            Review.user_id == user_id, Review.order_id.in_(order_ids)
        )
        return set(session.exec(stmt).all())

    def rating_stats(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> tuple[float, int]:
        """
        Exact (mean rating, count) over all reviews of a product.
        Mean is 0.0 when there are no reviews.
        """
        stmt = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.product_id == product_id
        )
        average, count = session.exec(stmt).one()
        return float(average or 0.0), int(count or 0)

    def create(self, session: Session, review: Review) -> Review:
        session.add(review)
        session.flush()
        return review

    def delete(self, session: Session, review: Review) -> None:
        session.delete(review)
        session.flush()
