# app/services/stats_service.py
from sqlmodel import Session

from app.models.user import User
from app.repositories.stats_repo import StatsRepository
from app.repositories.user_repo import UserRepository
from app.schemas.stats import AdminDashboardStats


class StatsService:
    """
    Orchestrates admin reporting: dashboard totals and customer listing.
    """

    def __init__(self, repo: StatsRepository, user_repo: UserRepository):
        self.repo = repo
        self.user_repo = user_repo

    def get_admin_dashboard_stats(self, session: Session) -> AdminDashboardStats:
        return AdminDashboardStats(
            total_revenue=self.repo.total_revenue(session),
            total_orders=self.repo.count_orders(session),
            total_customers=self.repo.count_customers(session),
            total_products=self.repo.count_products(session),
        )

    def list_customers(self, session: Session) -> list[User]:
        return self.user_repo.list_customers(session)
