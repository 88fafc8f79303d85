"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default=["*"])


class JWTConfig(BaseModel):
    """Bearer token settings used by the identity source."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256", "HS384", "HS512"],
        description="JWT algorithms allowed for token validation",
    )
    gen_issuer: str = Field(
        default="book-registry", description="Issuer name to use when generating tokens"
    )
    audiences: list[str] = Field(
        default_factory=lambda: ["api://book-registry"],
        description="JWT audiences that this API accepts",
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")
    token_ttl_seconds: int = Field(
        default=3600, description="Lifetime of tokens minted by the registry"
    )
    identity_claim: str = Field(
        default="sub", description="Claim holding the caller identity"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./book_registry.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @computed_field
    @property
    def is_memory(self) -> bool:
        """True for throwaway in-process SQLite databases."""
        return self.is_sqlite and (":memory:" in self.url or self.url == "sqlite://")


class RegistryConfig(BaseModel):
    """Validation limits and storage backend of the book registry."""

    store: Literal["memory", "sql"] = Field(
        default="sql", description="Backing store for registry state"
    )
    isbn_min_length: int = Field(
        default=13, ge=1, description="Minimum number of characters in an ISBN"
    )
    max_royalty_percent: int = Field(
        default=100, ge=0, description="Upper bound (inclusive) for royalty rates"
    )
    title_max_length: int = Field(
        default=256, ge=1, description="Longest title accepted at the API boundary"
    )
    isbn_max_length: int = Field(
        default=32, ge=1, description="Longest ISBN accepted at the API boundary"
    )
    content_hash_max_bytes: int = Field(
        default=32, ge=1, description="Largest content fingerprint accepted"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    token_signing_secret: str | None = Field(
        default=None, description="Secret for signing caller identity tokens"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"

    def signing_secret(self) -> str:
        """Return the token secret, refusing the development fallback in production."""
        if self.token_signing_secret:
            return self.token_signing_secret
        if self.environment == "production":
            raise ValueError("app.token_signing_secret must be set in production")
        logger.warning("No token signing secret configured; using development secret")
        return "dev-book-registry-secret"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT validation configuration"
    )
    registry: RegistryConfig = Field(
        default_factory=RegistryConfig, description="Book registry configuration"
    )
