"""Configuration management using Pydantic."""

from __future__ import annotations

import warnings

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blinkit_checkout.exceptions import ConfigurationError


class BrowserSettings(BaseSettings):
    """Browser configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_",
        env_file=".env",
        extra="ignore",
    )

    headless: bool = True
    action_timeout_seconds: float = Field(
        default=30.0, description="Upper bound for a single click/fill/read"
    )
    navigation_timeout_seconds: float = Field(
        default=60.0, description="Upper bound for a page navigation"
    )
    launch_timeout_seconds: float = Field(
        default=45.0, description="Upper bound for starting Chrome"
    )
    lang: str = Field(default="en-IN", description="Browser UI language")


class SiteSettings(BaseSettings):
    """Target site configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SITE_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = Field(default="https://blinkit.com", description="Site root")
    pin_code: str = Field(default="110001", description="Delivery location query")
    cart_settle_seconds: float = Field(
        default=1.5, description="Pause after each add-to-cart click"
    )
    otp_ttl_seconds: int = Field(
        default=300, description="Lifetime of a submitted OTP on the record"
    )


class PoolSettings(BaseSettings):
    """Browser handle pool bounds."""

    model_config = SettingsConfigDict(
        env_prefix="POOL_",
        env_file=".env",
        extra="ignore",
    )

    max_handles: int = Field(
        default=5, ge=1, description="Maximum live browsers in this process"
    )
    idle_timeout_seconds: int = Field(
        default=600, description="Close handles idle for longer than this"
    )
    reap_interval_seconds: int = Field(
        default=60, description="Interval between idle-reaper passes"
    )


class CacheSettings(BaseSettings):
    """Redis cache tier configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for session records",
    )
    redis_pool_size: int = Field(
        default=10,
        description="Maximum connections in Redis pool",
    )
    redis_pool_timeout: int = Field(
        default=20,
        description="Socket timeout for Redis operations (seconds)",
    )
    session_ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached session records (default: 1 hour)",
    )


class DatabaseSettings(BaseSettings):
    """PostgreSQL durable tier configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = Field(default=False, description="Enable the durable tier")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="checkout", description="Database user")
    password: str = Field(default="checkout_secret", description="Database password")
    name: str = Field(default="blinkit-checkout", description="Database name")

    @property
    def url(self) -> str:
        """Build async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class CORSSettings(BaseSettings):
    """CORS configuration for API."""

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enable/disable CORS")
    allow_origins: str = Field(
        default="*",
        description="Comma-separated allowed origins (use * for all)",
    )
    allow_methods: str = Field(
        default="GET,POST,OPTIONS",
        description="Comma-separated allowed HTTP methods",
    )

    def get_origins_list(self) -> list[str]:
        """Convert comma-separated origins to list."""
        if self.allow_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allow_origins.split(",") if o.strip()]

    def get_methods_list(self) -> list[str]:
        """Convert comma-separated methods to list."""
        if self.allow_methods == "*":
            return ["*"]
        return [m.strip() for m in self.allow_methods.split(",") if m.strip()]

    def is_permissive(self) -> bool:
        """Check if CORS allows all origins."""
        return self.allow_origins == "*"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHECKOUT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    env: str = "development"
    debug: bool = Field(default=False, description="Debug mode")
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)
    pool: PoolSettings = Field(default_factory=PoolSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def validate_production_security(self) -> Settings:
        """Warn about unsafe settings in production."""
        if self.env == "production":
            for warning_msg in self.get_security_warnings():
                warnings.warn(warning_msg, UserWarning, stacklevel=2)
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    def get_security_warnings(self) -> list[str]:
        """Get list of security warnings for current configuration."""
        warnings_list: list[str] = []

        if self.is_production:
            if self.cors.is_permissive():
                warnings_list.append("CORS allows all origins in production")
            if self.debug:
                warnings_list.append("Debug mode enabled in production")
            if not self.database.enabled:
                warnings_list.append(
                    "Durable session tier disabled in production; "
                    "sessions will not outlive the cache TTL"
                )

        return warnings_list


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get cached settings instance (singleton).

    Raises:
        ConfigurationError: If an environment value does not validate
    """
    global _settings  # noqa: PLW0603
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings  # noqa: PLW0603
    _settings = None
