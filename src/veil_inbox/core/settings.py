"""Application settings and configuration.

This module defines all configuration options for the Veil Inbox service.
Settings are loaded from environment variables with sensible defaults.
Secrets that protect sender privacy have no defaults: the process refuses to
start when they are missing.
"""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or a `.env` file.
    """

    # Application metadata
    app_name: str = Field(default="Veil Inbox", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    app_url: str = Field(default="http://localhost:3000", alias="APP_URL")
    debug: bool = Field(default=False, alias="DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="plain", alias="LOG_FORMAT")

    # Database configuration
    database_url: str = Field(default="sqlite:///./veil.db", alias="DATABASE_URL")
    database_pool_timeout: float = Field(default=10.0, alias="DATABASE_POOL_TIMEOUT")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Sender fingerprinting. Required: a missing secret is a startup error.
    ip_salt_secret: SecretStr = Field(alias="IP_SALT_SECRET")

    # Tokens issued by the external identity provider
    auth_jwt_secret: SecretStr = Field(alias="AUTH_JWT_SECRET")
    auth_jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    auth_jwt_audience: str | None = Field(default=None, alias="AUTH_JWT_AUDIENCE")

    # Anonymous send limits
    message_rate_limit: int = Field(default=10, alias="MESSAGE_RATE_LIMIT")
    message_rate_window_hours: int = Field(default=1, alias="MESSAGE_RATE_WINDOW_HOURS")
    max_message_length: int = Field(default=500, alias="MAX_MESSAGE_LENGTH")

    # Behaviour of the block/rate checks when the database is unavailable
    rate_limit_fail_open: bool = Field(default=True, alias="RATE_LIMIT_FAIL_OPEN")
    block_check_fail_open: bool = Field(default=True, alias="BLOCK_CHECK_FAIL_OPEN")

    # Push notification gateway
    push_gateway_url: str | None = Field(default=None, alias="PUSH_GATEWAY_URL")
    push_gateway_token: SecretStr | None = Field(default=None, alias="PUSH_GATEWAY_TOKEN")
    push_timeout_seconds: float = Field(default=5.0, alias="PUSH_TIMEOUT_SECONDS")
    notification_preview_max_length: int = Field(
        default=100,
        alias="NOTIFICATION_PREVIEW_MAX_LENGTH",
    )
    subscription_max_age_days: int = Field(default=90, alias="SUBSCRIPTION_MAX_AGE_DAYS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("ip_salt_secret", "auth_jwt_secret")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("must not be empty")
        return value

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def salt_secret(self) -> str:
        """Return the plain daily-salt secret."""
        return self.ip_salt_secret.get_secret_value()

    @property
    def push_enabled(self) -> bool:
        """Return True when a push gateway is configured."""
        return bool(self.push_gateway_url)


settings = Settings()
