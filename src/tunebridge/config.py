"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from tunebridge.backends.node import BackendConfig


class TunebridgeSettings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TUNEBRIDGE_",
    )

    # Spotify catalog
    spotify_client_id: str | None = Field(
        default=None,
        description="Spotify application client ID",
    )
    spotify_client_secret: str | None = Field(
        default=None,
        description="Spotify application client secret",
    )
    spotify_market: str | None = Field(
        default=None,
        description="ISO 3166-1 market used for track relinking",
    )

    # Lavalink backends
    lavalink_nodes: list[BackendConfig] = Field(
        default_factory=list,
        description='JSON list of nodes, e.g. [{"url": "http://localhost:2333", "password": "youshallnotpass"}]',
    )
    search_prefix: str = Field(
        default="ytsearch",
        description="Search source prefix sent with every query",
    )
    backend_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout for backend queries in seconds",
    )
    backend_cooldown: float = Field(
        default=30.0,
        ge=0,
        description="Initial exclusion window after a non-transient backend error",
    )
    backend_max_cooldown: float = Field(
        default=600.0,
        ge=0,
        description="Upper bound for the backend exclusion window",
    )

    # Redis
    redis_url: RedisDsn | None = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (optional)",
    )
    cache_ttl: int = Field(
        default=3600 * 24 * 7,
        description="TTL of resolved tracks in seconds",
    )

    # Pipeline
    default_limit: int = Field(
        default=20,
        gt=0,
        description="Limit applied when a request gives none or a non-positive one",
    )
    pipeline_timeout: float | None = Field(
        default=None,
        description="Timeout for a whole conversion in seconds (optional)",
    )

    # App settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> TunebridgeSettings:
    """Get cached settings instance."""
    return TunebridgeSettings()
