"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

PLACEHOLDER_PREFIX: Final[str] = "CHANGE_ME"

# Load .env in development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Blank or non-numeric values fall back to ``default`` rather than failing
    at import time.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering versioned API blueprints.
    AUTH_PREFIX: str
        Mount point of the session endpoints (exchange/refresh/logout).
    SECRET_KEY: str
        Flask secret. Must be overridden in production.
    JWT_SECRET_KEY: str
        HS256 key used by ``flask-jwt-extended`` to sign access tokens.
    ACCESS_TOKEN_TTL_SECONDS: int
        Access-token lifetime (env ``ACCESS_TOKEN_EXPIRY``, default 900).
    REFRESH_TOKEN_TTL_SECONDS: int
        Refresh-token lifetime (env ``REFRESH_TOKEN_EXPIRY``, default 180 days).
    REFRESH_TOKEN_SECRET: str
        HMAC key used to hash refresh bearers before persistence.
    REFRESH_TOKEN_BACKEND: str
        ``"sql"`` or ``"redis"``. Defaults to Redis when ``REDIS_URL`` is set.
    ENCRYPTION_KDF_ITERATIONS: int
        PBKDF2-SHA256 rounds for per-snippet key derivation.
    IDENTITY_PROVIDER: str
        ``"firebase"`` (production) or ``"static"`` (local/testing doubles).
    AUDIT_ASYNC: bool
        Dispatch audit writes to a worker pool instead of inline.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    AUTH_PREFIX = "/auth"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = "HS256"
    REQUIRE_STRONG_SECRETS = False

    # Access tokens
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_EXPIRY", 900)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=ACCESS_TOKEN_TTL_SECONDS)

    # Refresh tokens
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_EXPIRY", 15_552_000)
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "CHANGE_ME_REFRESH")
    REDIS_URL = os.getenv("REDIS_URL")
    REFRESH_TOKEN_BACKEND = os.getenv(
        "REFRESH_TOKEN_BACKEND", "redis" if os.getenv("REDIS_URL") else "sql"
    )

    # Field encryption
    ENCRYPTION_KDF_ITERATIONS = env_int("ENCRYPTION_KDF_ITERATIONS", 100_000)

    # Identity provider
    IDENTITY_PROVIDER = os.getenv("IDENTITY_PROVIDER", "firebase")
    FIREBASE_SERVICE_ACCOUNT_KEY = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY")
    FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
    FIREBASE_CHECK_REVOKED = env_bool("FIREBASE_CHECK_REVOKED", True)

    # Audit trail
    AUDIT_ASYNC = env_bool("AUDIT_ASYNC", True)
    AUDIT_MAX_WORKERS = env_int("AUDIT_MAX_WORKERS", 4)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", False)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Runs audit writes inline and verifies identities with the static double.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    SECRET_KEY = "testing-secret-key"
    JWT_SECRET_KEY = "testing-jwt-secret-key-with-enough-length"
    REFRESH_TOKEN_SECRET = "testing-refresh-secret"
    REFRESH_TOKEN_BACKEND = "sql"
    REDIS_URL = None
    IDENTITY_PROVIDER = "static"
    AUDIT_ASYNC = False
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and refuses to boot with the
    placeholder secrets shipped in :class:`BaseConfig`.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REQUIRE_STRONG_SECRETS = True
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def ensure_secure_secrets(config: Mapping[str, Any]) -> None:
    """Reject placeholder secrets when the config demands real ones.

    :param config: Loaded Flask config mapping.
    :raises RuntimeError: If a signing/HMAC secret still holds a placeholder
        or the KDF iteration count is below the 100k floor.
    """
    if not config.get("REQUIRE_STRONG_SECRETS"):
        return
    weak = [
        key
        for key in ("SECRET_KEY", "JWT_SECRET_KEY", "REFRESH_TOKEN_SECRET")
        if not config.get(key) or str(config.get(key)).startswith(PLACEHOLDER_PREFIX)
    ]
    if weak:
        raise RuntimeError(f"Refusing to start with placeholder secrets: {', '.join(weak)}")
    if int(config.get("ENCRYPTION_KDF_ITERATIONS", 0)) < 100_000:
        raise RuntimeError("ENCRYPTION_KDF_ITERATIONS must be at least 100000.")
