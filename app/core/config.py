# app/core/config.py
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (product image storage)
      - RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET (checkout payments)
    """

    PROJECT_NAME: str = "Storefront API"
    API_PREFIX: str = "/api"

    # "production" hides internal error text from clients
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5

    # Supabase (auth + storage)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"
    STORAGE_BUCKET: str = "assets"

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_CURRENCY: str = "INR"

    # Checkout pricing
    SHIPPING_FEE: Decimal = Decimal("10.00")
    TAX_RATE: Decimal = Decimal("0.08")

    # PENDING -> SHIPPED -> DELIVERED only; False allows any-to-any
    STRICT_ORDER_TRANSITIONS: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
