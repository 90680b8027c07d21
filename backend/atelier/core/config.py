"""Application settings, read from the environment and an optional ``.env``."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List

INSECURE_DEFAULT_SECRET = "dev-insecure-key-change-me"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Settings are unsafe for the current environment."""


class Settings(BaseSettings):
    """
    Every field maps to the upper-cased environment variable of the same
    name (``MEDIA_ROOT``, ``AUTH_ENABLED``, ...).
    """

    environment: Environment = Field(default=Environment.DEVELOPMENT)

    # -- HTTP ---------------------------------------------------------------
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated origins of the admin frontend"
    )
    rate_limit_per_minute: int = Field(
        default=120,
        description="Requests per client per minute; 0 disables throttling"
    )

    # -- Database -----------------------------------------------------------
    database_url: str = Field(
        default="sqlite:///./atelier.db",
        description="SQLAlchemy URL (SQLite or PostgreSQL)"
    )
    db_pool_size: int = Field(default=5, description="PostgreSQL pool size")
    db_max_overflow: int = Field(default=10, description="PostgreSQL burst connections")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a pooled connection is replaced")

    # -- Auth ---------------------------------------------------------------
    auth_enabled: bool = Field(
        default=False,
        description="Require an admin bearer token on /api routes"
    )
    jwt_secret_key: str = Field(
        default=INSECURE_DEFAULT_SECRET,
        description="HMAC key for access tokens"
    )
    jwt_algorithm: str = Field(default="HS256")

    # -- Media library ------------------------------------------------------
    media_root: str = Field(
        default="./storage/media",
        description="Directory holding uploaded media payloads"
    )
    media_max_upload_mb: int = Field(
        default=10,
        description="Largest accepted upload, in megabytes"
    )

    # -- Housekeeping -------------------------------------------------------
    audit_retention_days: int = Field(
        default=365,
        description="Audit entries older than this are purged at startup; 0 keeps all"
    )
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="'json' or 'text'")

    @property
    def media_max_upload_bytes(self) -> int:
        return self.media_max_upload_mb * 1024 * 1024

    def get_cors_origins(self) -> List[str]:
        """Parsed origin list. A ``*`` wildcard is refused."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("Wildcard CORS (*) is not allowed; list origins in CORS_ALLOWED_ORIGINS")
        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator('media_max_upload_mb')
    @classmethod
    def validate_upload_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MEDIA_MAX_UPLOAD_MB must be positive")
        return v

    def validate_production_config(self) -> List[str]:
        """List the settings that are unsafe outside development.

        Raises:
            ConfigurationError: if any are found and ENVIRONMENT=production.
        """
        localhost = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        checks = [
            (self.jwt_secret_key == INSECURE_DEFAULT_SECRET,
             "JWT_SECRET_KEY still has its default value (generate one: openssl rand -hex 32)"),
            (not self.auth_enabled,
             "AUTH_ENABLED is false: every /api route is open"),
            (bool(localhost),
             f"CORS allows localhost origins: {localhost}"),
        ]
        problems = [message for failed, message in checks if failed]

        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(problems)
            )
        return problems

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
