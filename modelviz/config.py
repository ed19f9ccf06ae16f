"""Configuration management for the modelviz engine."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_CALL_TIMEOUT,
    MAX_SAVED_SESSIONS,
    METRICS_RETENTION_DAYS,
    QUALITY_THRESHOLD,
)
from .types import Environment

# OpenAI-compatible chat completion endpoints per provider
DEFAULT_PROVIDER_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai",
    "mistral": "https://api.mistral.ai/v1",
    "perplexity": "https://api.perplexity.ai",
    "groq": "https://api.groq.com/openai/v1",
    "deepseek": "https://api.deepseek.com/v1",
}


class Settings(BaseModel):
    """Application settings."""

    # Environment
    version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production/testing)",
    )

    # API Settings
    api_title: str = Field(default="ModelViz API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    cors_allow_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Storage
    db_path: Path | None = Field(
        default=None, description="Custom SQLite database path"
    )

    # Provider calls
    call_timeout_seconds: float = Field(
        default=DEFAULT_CALL_TIMEOUT,
        gt=0,
        description="Wall-clock timeout for a single provider call",
    )
    provider_max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries performed by the provider client itself",
    )
    provider_base_urls: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PROVIDER_BASE_URLS),
        description="OpenAI-compatible base URL per provider",
    )
    provider_api_keys: dict[str, str] = Field(
        default_factory=dict, description="API key per provider"
    )

    # Comparison
    quality_threshold: float = Field(
        default=QUALITY_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum quality for the fastest-acceptable recommendation",
    )
    error_cost_placeholder: float = Field(
        default=0.0,
        ge=0.0,
        description="Cost used to rank models whose call failed",
    )
    max_saved_sessions: int = Field(
        default=MAX_SAVED_SESSIONS, ge=1, description="Saved comparison sessions kept"
    )

    # Metrics
    metrics_retention_days: int = Field(
        default=METRICS_RETENTION_DAYS, ge=1, description="Days of metrics to keep"
    )
    metrics_cleanup_interval: int = Field(
        default=24 * 3600,
        ge=1,
        description="Interval in seconds between retention cleanups",
    )
    metrics_cleanup_enabled: bool = Field(
        default=True, description="Whether the retention cleanup task runs"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == Environment.TESTING

    @property
    def configured_providers(self) -> list[str]:
        """Providers that have both an endpoint and an API key."""
        return sorted(
            name for name in self.provider_base_urls if name in self.provider_api_keys
        )


def _parse_bool(value: str) -> bool:
    return value.lower() in ["true", "1", "yes", "on"]


def load_settings() -> Settings:
    """Load settings from environment variables."""

    # Load .env file if it exists
    load_dotenv()

    cors_origins_str = os.getenv("MODELVIZ_CORS_ORIGINS", "*")
    if cors_origins_str == "*":
        cors_origins = ["*"]
    else:
        cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

    # <PROVIDER>_BASE_URL overrides the default endpoint, <PROVIDER>_API_KEY enables it
    base_urls: dict[str, str] = {}
    api_keys: dict[str, str] = {}
    for provider, default_url in DEFAULT_PROVIDER_BASE_URLS.items():
        prefix = provider.upper()
        base_urls[provider] = os.getenv(f"{prefix}_BASE_URL", default_url)
        api_key = os.getenv(f"{prefix}_API_KEY")
        if api_key:
            api_keys[provider] = api_key

    db_path = os.getenv("MODELVIZ_DB_PATH")

    return Settings(
        environment=Environment(os.getenv("MODELVIZ_ENV", "development")),
        api_title=os.getenv("MODELVIZ_API_TITLE", "ModelViz API"),
        api_version=os.getenv("MODELVIZ_API_VERSION", "1.0.0"),
        cors_allow_origins=cors_origins,
        log_level=os.getenv("MODELVIZ_LOG_LEVEL", "INFO").upper(),
        db_path=Path(db_path) if db_path else None,
        call_timeout_seconds=float(
            os.getenv("MODELVIZ_CALL_TIMEOUT", str(DEFAULT_CALL_TIMEOUT))
        ),
        provider_max_retries=int(os.getenv("MODELVIZ_PROVIDER_MAX_RETRIES", "0")),
        provider_base_urls=base_urls,
        provider_api_keys=api_keys,
        quality_threshold=float(
            os.getenv("MODELVIZ_QUALITY_THRESHOLD", str(QUALITY_THRESHOLD))
        ),
        error_cost_placeholder=float(
            os.getenv("MODELVIZ_ERROR_COST_PLACEHOLDER", "0.0")
        ),
        max_saved_sessions=int(
            os.getenv("MODELVIZ_MAX_SAVED_SESSIONS", str(MAX_SAVED_SESSIONS))
        ),
        metrics_retention_days=int(
            os.getenv("MODELVIZ_METRICS_RETENTION_DAYS", str(METRICS_RETENTION_DAYS))
        ),
        metrics_cleanup_interval=int(
            os.getenv("MODELVIZ_METRICS_CLEANUP_INTERVAL", str(24 * 3600))
        ),
        metrics_cleanup_enabled=_parse_bool(
            os.getenv("MODELVIZ_METRICS_CLEANUP_ENABLED", "true")
        ),
    )


# Global settings instance
settings = load_settings()
