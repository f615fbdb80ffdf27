"""
wa_gateway/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (backend callback URL, sessions root, engine)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Server
    HOST: str = Field(
        default="0.0.0.0",
        description="Interface the control API binds to"
    )
    PORT: int = Field(
        default=3000,
        description="Port the control API listens on"
    )

    # Backend control plane (Laravel)
    BACKEND_BASE_URL: str = Field(
        default="http://localhost/sorin/api",
        description="Base URL for outbound status/QR/message callbacks"
    )
    BACKEND_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for a single backend callback"
    )
    BACKEND_TOKEN: Optional[str] = Field(
        default=None,
        description="Shared secret sent as X-Gateway-Token on callbacks"
    )

    # Session storage
    SESSIONS_DIR: str = Field(
        default="./sessions",
        description="Root directory holding one engine session folder per user"
    )
    CLEANUP_MAX_RETRIES: int = Field(
        default=5,
        description="Retries after the first failed session folder removal"
    )
    CLEANUP_RETRY_DELAY_SECONDS: float = Field(
        default=2.0,
        description="Fixed delay between session folder removal attempts"
    )

    # Automation engine
    ENGINE_FACTORY: Optional[str] = Field(
        default=None,
        description="Dotted path 'module:callable' building one engine client per user"
    )
    ENGINE_HEADLESS: bool = Field(
        default=True,
        description="Run the engine's browser headless"
    )
    ENGINE_ARGS: list = Field(
        default=["--no-sandbox", "--disable-setuid-sandbox"],
        description="Extra browser arguments passed to the engine"
    )

    # Pairing code rendering
    QR_BOX_SIZE: int = Field(
        default=10,
        description="Pixel size of one QR module"
    )
    QR_BORDER: int = Field(
        default=4,
        description="QR quiet zone width in modules"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("CLEANUP_MAX_RETRIES")
    def validate_cleanup_retries(cls, v):
        """Retry budget can't be negative."""
        if v < 0:
            raise ValueError("CLEANUP_MAX_RETRIES must be >= 0")
        return v

    @validator("BACKEND_BASE_URL")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.BACKEND_BASE_URL:
        errors.append("BACKEND_BASE_URL is required")

    if not settings.SESSIONS_DIR:
        errors.append("SESSIONS_DIR is required")

    if settings.ENGINE_FACTORY and ":" not in settings.ENGINE_FACTORY:
        errors.append("ENGINE_FACTORY must look like 'package.module:callable'")

    # Production-specific validations
    if settings.is_production:
        if not settings.ENGINE_FACTORY:
            errors.append("ENGINE_FACTORY is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
