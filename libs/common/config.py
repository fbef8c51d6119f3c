from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    ADMIN_EMAIL: str = "admin@admin.com"
    TIMEZONE: str = "Asia/Kolkata"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    # Placeholder keeps local/test runs from failing when no identity
    # provider is configured. Real deployments should override via env.
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Internal services
    CART_SERVICE_URL: str = "http://cart-service:8011"

    # Routing / geocoding providers
    ROUTING_PROVIDER_URL: str = "https://router.project-osrm.org"
    ROUTING_TIMEOUT_SECONDS: float = 8.0
    GEOCODING_PROVIDER_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODING_TIMEOUT_SECONDS: float = 10.0
    GEOCODING_USER_AGENT: str = "grocery-store-core/0.1"

    # Razorpay
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    RAZORPAY_TIMEOUT_SECONDS: float = 30.0
    PAYMENT_CURRENCY: str = "INR"

    # Delivery
    STORE_LATITUDE: float = 10.7870
    STORE_LONGITUDE: float = 79.1378
    FREE_DISTANCE_LIMIT_KM: float = 5.0
    FREE_DELIVERY_THRESHOLD: float = 500.0
    MAX_DELIVERY_DISTANCE_KM: float = 20.0
    DELIVERY_SLABS: list[dict] = [
        {"min_distance_km": 0, "max_distance_km": 5, "charge": 30},
        {"min_distance_km": 5, "max_distance_km": 10, "charge": 60},
        {"min_distance_km": 10, "max_distance_km": 20, "charge": 90},
    ]

    # Rate limiting
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
