"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.

Two knobs change observable behavior and deserve a mention here:
    - STRICT_STATUS_TRANSITIONS: forward-only order status machine
      (NEW -> PREPARING -> READY -> COMPLETED) instead of the permissive
      default where any known status can be set from any other.
    - BROADCAST_BACKEND: "memory" keeps the observer fan-out inside this
      process; "redis" relays events over a pub/sub channel so several
      API workers share one stream.

Usage:
    from orderdesk.core.config import get_settings

    settings = get_settings()
    if settings.strict_status_transitions:
        ...

Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local work, verbose errors allowed
        PRODUCTION: Live environment
        STAGING: Pre-production testing
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class BroadcastBackend(str, Enum):
    """Where order events are fanned out."""
    MEMORY = "memory"
    REDIS = "redis"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Database
        database_url: SQLAlchemy async connection string
        seed_catalog: Insert the default menu when the store is empty

        # Orders
        strict_status_transitions: Forward-only status machine
        currency_code: Display currency for minor-unit prices

        # Fan-out
        broadcast_backend: memory or redis
        observer_queue_size: Pending events kept per observer before dropping
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Order Desk",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=3000,
        description="API server port"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # DATABASE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./orders.db",
        description="SQLAlchemy async connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    seed_catalog: bool = Field(
        default=True,
        description="Seed the default menu when no categories exist"
    )

    # ==========================================================================
    # ORDERS
    # ==========================================================================

    currency_code: str = Field(
        default="ZAR",
        description="Currency of all prices (stored as integer minor units)"
    )
    strict_status_transitions: bool = Field(
        default=False,
        description="Only allow NEW -> PREPARING -> READY -> COMPLETED, one step at a time"
    )

    # ==========================================================================
    # LIVE UPDATES
    # ==========================================================================

    broadcast_backend: BroadcastBackend = Field(
        default=BroadcastBackend.MEMORY,
        description="Fan-out backend for order events"
    )
    broadcast_channel: str = Field(
        default="orderdesk:orders",
        description="Redis pub/sub channel used by the redis backend"
    )
    observer_queue_size: int = Field(
        default=100,
        ge=1,
        description="Events buffered per observer before new ones are dropped"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("broadcast_backend", mode="before")
    @classmethod
    def validate_broadcast_backend(cls, v: str) -> BroadcastBackend:
        if isinstance(v, BroadcastBackend):
            return v
        try:
            return BroadcastBackend(v.lower())
        except ValueError:
            valid = [e.value for e in BroadcastBackend]
            raise ValueError(f"Invalid broadcast_backend. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process. Tests build their own
    ``Settings`` instances and hand them to ``create_app`` instead.

    Returns:
        Settings: Configured application settings
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    if not settings.database_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("orderdesk")
