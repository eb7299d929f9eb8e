"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    public_url: str = Field(
        default="http://localhost:8000",
        description="Externally visible base URL of the service",
    )


class DatabaseConfig(BaseModel):
    """Record store connection and credential configuration.

    The same username and password are tried against the database, namespace
    and root scopes in that order, so the operator never states which scope
    the credential belongs to.
    """

    endpoint: str = Field(
        default="memory://",
        description="Record store endpoint (ws://, wss://, http://, https:// or memory://)",
    )
    namespace: str = Field(default="shortlinks", description="Namespace to bind to")
    database: str = Field(default="shortlinks", description="Database to bind to")
    username: str = Field(default="root", description="Username for sign-in")
    password: str | None = Field(default=None, description="Password for sign-in")
    password_file: str | None = Field(
        default=None, description="Path to file containing the password"
    )

    @property
    def resolved_password(self) -> str:
        """Password from the secrets file when configured, else the inline value."""
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        return self.password or ""

    @property
    def is_in_memory(self) -> bool:
        return self.endpoint.startswith("memory://")


class SessionConfig(BaseModel):
    """Browser session configuration."""

    cookie_name: str = Field(default="session_id", description="Session cookie name")
    expiry_days: int = Field(
        default=7, description="Inactivity window before a session expires"
    )
    sweep_interval_seconds: int = Field(
        default=300, description="Interval between expired-session sweeps"
    )
    secure_cookies: bool = Field(
        default=False, description="Mark the session cookie as Secure"
    )
    same_site: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie attribute"
    )

    @property
    def max_age_seconds(self) -> int:
        return self.expiry_days * 24 * 60 * 60


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=False, description="Enable Redis session storage")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url


class OIDCConfig(BaseModel):
    """Identity provider settings used to verify bearer ID tokens."""

    issuer: str = Field(
        default="http://localhost:8080/realms/shortlinks", description="OIDC issuer URL"
    )
    client_id: str = Field(default="shortlinks", description="Client ID at the IdP")
    audiences: list[str] = Field(
        default_factory=list,
        description="Accepted audiences (empty = client_id only)",
    )
    jwks_uri: str | None = Field(
        default=None, description="JWKS endpoint (default: <issuer>/protocol/openid-connect/certs)"
    )
    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["RS256", "RS512", "ES256", "ES384"],
        description="JWT algorithms allowed for token validation",
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")

    @property
    def resolved_jwks_uri(self) -> str:
        if self.jwks_uri:
            return self.jwks_uri
        return f"{self.issuer.rstrip('/')}/protocol/openid-connect/certs"

    @property
    def accepted_audiences(self) -> list[str]:
        return self.audiences or [self.client_id]


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Record store configuration"
    )
    session: SessionConfig = Field(
        default_factory=SessionConfig, description="Session configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    oidc: OIDCConfig = Field(
        default_factory=OIDCConfig, description="OIDC configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
