# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for SchoolDesk.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration.

    The school database holds users, role profiles, schools, classes and
    every academic record. Any SQLAlchemy async driver works; MySQL,
    PostgreSQL and SQLite dialects are supported by the bulk writer.

    Attributes:
        driver: SQLAlchemy async driver name used when building the URL.
        user: Database username.
        password: Database password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL, takes precedence when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        pool_timeout: Seconds to wait for a pooled connection.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    driver: str = "postgresql+asyncpg"
    user: str = "schooldesk"
    password: SecretStr = SecretStr("schooldesk_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "schooldesk"
    url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: float = 10.0

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"{self.driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured URL targets SQLite."""
        return self.url.startswith("sqlite")


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Tokens are issued elsewhere; this service only verifies them.

    Attributes:
        secret_key: Secret key for verifying tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Lifetime used when tokens are minted
            by tooling and tests.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=60,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limiting is applied.
        requests_per_minute: Maximum requests per minute per client.
        storage_uri: slowapi storage backend URI.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    requests_per_minute: int = 120
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = 2
    reload: bool = False


class QuerySettings(BaseSettings):
    """List endpoint paging configuration.

    Attributes:
        default_limit: Page size used when a request gives no limit.
        max_limit: Upper bound applied to client supplied limits.
        notification_limit: Number of notifications returned per fetch.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERY_",
        extra="ignore",
    )

    default_limit: int = Field(default=25, ge=1)
    max_limit: int = Field(default=100, ge=1)
    notification_limit: int = Field(default=10, ge=1)


class GradingSettings(BaseSettings):
    """Score report grading configuration.

    Grade bands are (ratio of max_score, label) pairs checked from the
    highest ratio down; a score below every band gets fallback_grade.

    Attributes:
        max_score: Highest score an assessment can receive.
        pass_ratio: Fraction of max_score needed to pass.
        grade_bands: Ordered grade thresholds.
        fallback_grade: Label for scores below the lowest band.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADING_",
        extra="ignore",
    )

    max_score: float = Field(default=10.0, gt=0)
    pass_ratio: float = Field(default=0.5, ge=0, le=1)
    grade_bands: list[tuple[float, str]] = [
        (0.9, "Excellent"),
        (0.8, "Very Good"),
        (0.7, "Good"),
        (0.6, "Fair"),
        (0.5, "Average"),
    ]
    fallback_grade: str = "Weak"

    @field_validator("grade_bands")
    @classmethod
    def sort_bands(cls, value: list[tuple[float, str]]) -> list[tuple[float, str]]:
        """Keep bands ordered from the highest threshold down."""
        return sorted(value, key=lambda band: band[0], reverse=True)

    @property
    def pass_mark(self) -> float:
        """Lowest average that counts as a pass."""
        return self.max_score * self.pass_ratio


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    This is the primary configuration class for SchoolDesk.
    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        db: Database settings.
        jwt: JWT authentication settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        api: API server settings.
        query: List paging settings.
        grading: Score report settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    grading: GradingSettings = Field(default_factory=GradingSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing.
    """
    get_settings.cache_clear()
