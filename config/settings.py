"""
Configuration settings for the application
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Subscription constants
TIER_PRO = "pro"
PROVIDER_INTERNAL = "internal"
PROVIDER_REVENUECAT = "revenuecat"
STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"
STATUS_EXPIRED = "expired"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Core authentication and security
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    jwt_expiration_days: int = Field(default=7, alias="JWT_EXPIRATION_DAYS")

    # RevenueCat webhook shared secret (sent as "Authorization: Bearer <key>")
    revenuecat_webhook_auth_key: Optional[str] = Field(default=None, alias="REVENUECAT_WEBHOOK_AUTH_KEY")

    # Subscription configuration
    trial_period_days: int = Field(default=7, alias="TRIAL_PERIOD_DAYS")

    # Infrastructure configuration
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///./pawpa.db", alias="DATABASE_URL")
    rate_limit_per_minute: int = Field(default=120, alias="RATE_LIMIT_PER_MINUTE")

    # Frontend / CORS configuration
    frontend_url: Optional[str] = Field(default="http://localhost:8081", alias="FRONTEND_URL")
    cors_origins: Optional[str] = Field(default=None, alias="CORS_ORIGINS")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins: comma separated CORS_ORIGINS, else the frontend URL."""
        if self.cors_origins:
            return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        return [self.frontend_url] if self.frontend_url else []


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.env and settings.env.lower() == "production")
