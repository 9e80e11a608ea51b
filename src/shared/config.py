from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "test", "staging", "production"] = "development"
    LOG_LEVEL: str | None = None
    CORS_ORIGINS: list[str] = ["*"]

    # Database. Without a URL the domains run on protean's in-memory provider.
    DATABASE_URL: str | None = None

    # Auth
    JWT_SECRET: str = "dev-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7

    # Storefront rules
    LOW_STOCK_THRESHOLD: int = 5
    CART_TTL_DAYS: int = 7
    ORDER_CANCEL_FROM_READY: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_db_scheme(cls, v: str | None) -> str | None:
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT in ("production", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
