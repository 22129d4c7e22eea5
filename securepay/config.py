"""SecurePay Portal: Configuration via pydantic-settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Persistence (empty URL selects the in-memory store)
    DATABASE_URL: str = ""
    STORE_FALLBACK_TO_MEMORY: bool = False
    DATABASE_POOL_TIMEOUT: int = 10

    # HTTP
    PORT: int = 3001
    CORS_ORIGIN: str = "*"
    JSON_BODY_LIMIT: int = 10 * 1024

    # Security
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60
    SESSION_TTL_HOURS: int = 24
    SESSION_STRICT_BINDING: bool = False
    SESSION_REAPER_INTERVAL_MINUTES: int = 15
    PASSWORD_BCRYPT_ROUNDS: int = 12

    # Rate limits (max requests per window)
    RATE_LIMIT_REGISTER_MAX: int = 3
    RATE_LIMIT_REGISTER_WINDOW_SECONDS: int = 5 * 60
    RATE_LIMIT_LOGIN_MAX: int = 5
    RATE_LIMIT_LOGIN_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_PAYMENTS_MAX: int = 10
    RATE_LIMIT_PAYMENTS_WINDOW_SECONDS: int = 60 * 60

    # Payments
    TRANSACTION_FEE_RATE: Decimal = Field(default=Decimal("0.02"), ge=0, lt=1, decimal_places=4)

    # Staff account seeded whenever the in-memory store is in use
    BOOTSTRAP_STAFF_EMAIL: str = "staff@securepay.io"
    BOOTSTRAP_STAFF_PASSWORD: str = "P@ssw0rd!"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
