"""
Open Graph Parser Configuration Management Module

This module loads and validates the service configuration using Pydantic
Settings. Every value can be overridden through environment variables or a
``.env`` file:

- Application settings (name, environment, debug mode, logging)
- HTTP server binding and CORS origins
- Response cache backend selection and TTL
- Outbound fetch defaults (user agent, timeout)
- Video metadata API endpoint used by the site-specific enricher
"""

from functools import lru_cache

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Allowed values for enumerated settings
_CHOICES: dict[str, frozenset[str]] = {
    "log_level": frozenset({"debug", "info", "warning", "error", "critical"}),
    "app_env": frozenset({"development", "staging", "production", "testing"}),
    "cache_backend": frozenset({"memory", "redis"}),
}


class Settings(BaseSettings):
    """
    Configuration settings for the Open Graph parser service.

    Example usage:
        ```python
        from app.config import get_settings

        settings = get_settings()
        print(f"Cache backend: {settings.cache_backend}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="OpenGraphParser",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode and hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit structured JSON log lines instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8000, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["*"],
        description="List of allowed CORS origins",
    )

    # =========================================================================
    # Response Cache Configuration
    # =========================================================================

    cache_backend: str = Field(
        default="memory",
        description="Response cache backend (memory, redis)",
    )

    cache_ttl_seconds: int = Field(
        default=3600,
        description="Sliding expiration for cached parse results in seconds (1 hour)",
        ge=1,
    )

    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL, used when cache_backend is 'redis'",
    )

    # =========================================================================
    # Fetch Configuration
    # =========================================================================

    default_user_agent: str = Field(
        default="bastyon",
        description="User-Agent sent when the caller does not supply one",
    )

    default_timeout_ms: int = Field(
        default=10000,
        description="Request timeout in milliseconds when the caller does not supply one",
        ge=1,
    )

    refetch_for_fallback: bool = Field(
        default=False,
        description=(
            "Fetch the page again for meta-tag fallback and enrichment instead of "
            "reusing the document fetched for Open Graph parsing"
        ),
    )

    # =========================================================================
    # Video Metadata API
    # =========================================================================

    video_api_url: str = Field(
        default="https://api.bitchute.com/api/beta/video/media",
        description="Endpoint queried with {'video_id': ...} when a page exposes no media link",
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", "app_env", "cache_backend")
    @classmethod
    def validate_choice(cls, v: str, info: ValidationInfo) -> str:
        """Lower-case an enumerated setting and check it against its allowed values."""
        allowed = _CHOICES[info.field_name]
        normalized = v.strip().lower()
        if normalized not in allowed:
            raise ValueError(
                f"Invalid {info.field_name} '{v}'. Must be one of: {', '.join(sorted(allowed))}"
            )
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept ``CORS_ORIGINS=https://a.example,https://b.example``."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def uses_redis_cache(self) -> bool:
        return self.cache_backend == "redis"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    Configuration is read from the environment once and reused for the
    lifetime of the process.
    """
    return Settings()
