"""
Configuration management for the LoadShop backend.

Loads settings from .env via pydantic-settings.

Notes:
    - STORAGE_BACKEND=memory keeps catalog and orders in process (no DB)
    - validate_production_settings() refuses insecure combinations in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/loadshop.db"
    storage_backend: str = "sql"  # "sql" | "memory"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "loadshop-api"
    jwt_access_ttl_minutes: int = 480
    auth_cookie_name: str = "candidate_jwt"

    # ── Checkout ────────────────────────────────────────────────────
    checkout_work_ms: int = 5            # simulated payment latency per order
    checkout_max_lines: int = 100
    checkout_compensate_on_conflict: bool = True

    # ── Catalog seeding ─────────────────────────────────────────────
    catalog_seed_file: str = ""

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.storage_backend not in ("sql", "memory"):
            raise ValueError(
                f"STORAGE_BACKEND must be 'sql' or 'memory', got '{self.storage_backend}'"
            )

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify caller access tokens."
                )
            if self.storage_backend == "memory":
                raise ValueError(
                    "STORAGE_BACKEND=memory is not durable and must not be used in production."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (every authenticated request will fail)")
            if self.storage_backend == "memory":
                warnings.append("STORAGE_BACKEND=memory (orders are lost on restart)")
            if not self.checkout_compensate_on_conflict:
                warnings.append("CHECKOUT_COMPENSATE_ON_CONFLICT=false (partial reservations are not released)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
