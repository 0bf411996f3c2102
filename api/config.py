"""
Environment-aware configuration.
Values come from the process environment (and .env via python-dotenv).
The database URL is read by models.storage (DATABASE_URL).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEFAULT_JWT_SECRET = "dev-secret-change-me"


def _get_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS: cookies travel cross-origin, so origins must be explicit in prod
    CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS", "http://localhost:5173"))

    # JWT / session
    JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "soft-connect-api")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "86400")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "604800")))
    REFRESH_TOKEN_ROTATION = _get_bool(os.getenv("REFRESH_TOKEN_ROTATION"), default=False)
    LOGOUT_SCOPE = os.getenv("LOGOUT_SCOPE", "global")
    COOKIE_SECURE = _get_bool(os.getenv("COOKIE_SECURE"), default=False)
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Strict")

    # Registration is limited to institutional addresses
    ALLOWED_EMAIL_DOMAINS = _get_list(os.getenv("ALLOWED_EMAIL_DOMAINS", "ueb.edu.ec,mailes.ueb.edu.ec"))

    # Bootstrap admin, created when the users table is empty
    ADMIN_EMAIL = os.getenv("CREDENTIALS_ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("CREDENTIALS_ADMIN_PASS")

    # Flask-Limiter
    RATELIMIT_ENABLED = _get_bool(os.getenv("RATELIMIT_ENABLED"), default=True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "fixed-window"
    RATELIMIT_HEADERS_ENABLED = True


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "testing"
    JWT_SECRET = "test-secret-key-for-testing-only"
    RATELIMIT_ENABLED = False
    ADMIN_EMAIL = None
    ADMIN_PASSWORD = None
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "production"
    COOKIE_SECURE = _get_bool(os.getenv("COOKIE_SECURE"), default=True)


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def validate_runtime_config(config) -> None:
    if config.get("APP_ENV", "").lower() in ("prod", "production") and config["JWT_SECRET"] == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production.")
    if config["LOGOUT_SCOPE"] not in ("global", "session"):
        raise RuntimeError("LOGOUT_SCOPE must be 'global' or 'session'.")
