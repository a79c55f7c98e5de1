"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="TablePOS", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Database settings - PostgreSQL (tables, order history)
    postgres_db_url: str = Field(
        default="postgresql+psycopg2://user@localhost:5432/tablepos",
        description="PostgreSQL connection URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database initialization retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB init attempts"
    )

    # MongoDB settings (menu catalog)
    mongo_uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection URI"
    )
    mongo_db_name: str = Field(default="tablepos", description="MongoDB database name")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="", description="API route prefix")
    api_title: str = Field(default="TablePOS API", description="API documentation title")
    api_description: str = Field(
        default="Restaurant point-of-sale order sessions, totals and payments",
        description="API documentation description",
    )

    # Point-of-sale settings
    tax_rate: Decimal = Field(
        default=Decimal("0.0825"), ge=0, lt=1, description="Sales tax rate applied to orders"
    )
    currency: str = Field(default="USD", min_length=3, max_length=3, description="ISO currency code")
    default_guest_count: int = Field(
        default=1, ge=1, description="Guest count assigned when a table is opened"
    )
    payment_confirmation_timeout_sec: float = Field(
        default=30.0, gt=0, description="How long to wait for a gateway to settle a charge"
    )

    # Helcim card gateway
    helcim_api_url: str = Field(
        default="https://api.helcim.com/v2", description="Helcim API base URL"
    )
    helcim_api_token: Optional[str] = Field(default=None, description="Helcim API token")
    helcim_terminal_id: Optional[str] = Field(default=None, description="Helcim terminal ID")
    helcim_test_mode: bool = Field(default=True, description="Send charges in test mode")
    helcim_request_timeout_sec: float = Field(
        default=20.0, gt=0, description="HTTP timeout for a single Helcim request"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT


# Global settings instance
settings = Settings()
