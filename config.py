"""
Application configuration — environment-aware settings.

All environment variables are documented here. A local .env file is loaded
if present.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / ".env")


# Seconds between client refreshes. Views built from polled endpoints may be
# up to this stale.
POLL_INTERVALS: dict[str, int] = {
    "dashboard": 3,
    "admin": 5,
    "chat": 2,
}


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")

    # Storage: "sqlite" (durable) or "memory" (process-local, for demos)
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sqlite")
    DATABASE = os.environ.get("DATABASE_URL", str(BASE_DIR / "edugroup.db"))

    # Registering as ADMIN requires this substring in the email address
    ADMIN_EMAIL_MARKER = os.environ.get("ADMIN_EMAIL_MARKER", "seacet")

    POLL_INTERVALS = POLL_INTERVALS

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = 86400

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rate limiting (in-memory unless REDIS_URL is set)
    RATELIMIT_STORAGE_URI = os.environ.get("REDIS_URL", "") or "memory://"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")
    SESSION_COOKIE_SECURE = True

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if cls.STORE_BACKEND != "sqlite":
            errors.append("STORE_BACKEND must be 'sqlite' in production.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
