"""
Application configuration using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Supports loading from .env file for local development.
    """

    # Database Configuration
    DATABASE_URL: str = Field(
        description="PostgreSQL database URL (use postgresql+asyncpg:// for async)"
    )

    # Supabase Auth Configuration
    SUPABASE_URL: str = Field(
        description="Supabase project URL (e.g., https://xyz.supabase.co)"
    )
    SUPABASE_ANON_KEY: str = Field(
        description="Supabase anon/publishable key used to verify user tokens"
    )

    # Anthropic API Configuration (optional - AI endpoints fall back without it)
    ANTHROPIC_API_KEY: Optional[str] = Field(
        default=None,
        description="Anthropic API key for Claude AI"
    )

    # Ticket numbering
    TICKET_NUMBER_PREFIX: str = Field(
        default="P57",
        description="Prefix for human-readable ticket numbers"
    )

    # Escalation sweep
    ESCALATION_SWEEP_ENABLED: bool = Field(
        default=True,
        description="Run the periodic escalation rule sweep"
    )
    ESCALATION_SWEEP_MINUTES: int = Field(
        default=15,
        description="Interval between escalation sweeps in minutes"
    )

    # CORS Configuration
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Rate Limiting Configuration
    AI_RATE_LIMIT: int = Field(
        default=10,
        description="Maximum Claude-backed requests (analysis, ticket creation) per minute per IP"
    )

    GENERAL_RATE_LIMIT: int = Field(
        default=300,
        description="Maximum general API requests per minute per IP"
    )

    # Request Size Limits
    MAX_REQUEST_SIZE: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        description="Maximum request body size in bytes"
    )

    # Environment
    ENVIRONMENT: str = Field(
        default="development",
        description="Application environment: development, staging, production"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def supabase_auth_url(self) -> str:
        """Get the Supabase Auth REST base URL."""
        return f"{self.SUPABASE_URL.rstrip('/')}/auth/v1"

    @property
    def database_url_sync(self) -> str:
        """Get synchronous database URL for Alembic migrations."""
        return self.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def __repr__(self) -> str:
        """
        Custom repr that masks sensitive values.

        Prevents accidental exposure of credentials in logs.
        """
        sensitive_fields = {
            "ANTHROPIC_API_KEY",
            "SUPABASE_ANON_KEY",
            "DATABASE_URL",
        }

        fields = []
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if field_name in sensitive_fields and value:
                if isinstance(value, str) and len(value) > 8:
                    masked = value[:4] + "***" + value[-4:]
                else:
                    masked = "***"
                fields.append(f"{field_name}={masked!r}")
            else:
                fields.append(f"{field_name}={value!r}")

        return f"Settings({', '.join(fields)})"


# Create singleton settings instance
settings = Settings()
