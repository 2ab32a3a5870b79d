# app/schemas/stats.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class AdminDashboardStats(SQLModel):
    """
    Headline numbers for the admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    total_revenue: float
    total_orders: int
    total_customers: int
    total_products: int
