"""Configuration settings for the subscription dashboard."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and config.yaml."""

    model_config = SettingsConfigDict(  # type: ignore[assignment]
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Document store
    store_backend: Literal["mongodb", "memory"] = "mongodb"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "yt_dashboard"

    # Redis
    redis_url: str = "redis://localhost:6379"
    redis_db: int = 0
    redis_enabled: bool = True

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_storage: str = "redis"  # "redis" or "memory"
    rate_limit_per_minute: int = 120

    # Prometheus
    prometheus_enabled: bool = True
    prometheus_path: str = "/metrics"

    # Query cache (seconds)
    cache_enabled: bool = True
    cache_ttl_videos: float = 120.0
    cache_ttl_channels: float = 300.0
    cache_ttl_stats: float = 600.0

    # Pagination
    default_video_page_size: int = 20
    default_channel_page_size: int = 50
    max_page_size: int = 200
    stats_enumeration_cap: int = 1000

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def uses_memory_store(self) -> bool:
        """Whether documents live in process memory instead of MongoDB."""
        return self.store_backend == "memory"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_yaml_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ./config.yaml or ./config.yml

    Returns:
        Dictionary with configuration values
    """
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = path
                break

    if config_path is None or not Path(config_path).exists():
        return {}

    try:
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config file %s: %s", config_path, e)
        return {}


def apply_yaml_config(settings: Settings, config: dict[str, Any]) -> Settings:
    """
    Apply YAML configuration to settings object.

    Environment variables take precedence over YAML config: a YAML value is
    only applied while the field still holds its default.

    Args:
        settings: Settings object to update
        config: Configuration dictionary from YAML

    Returns:
        Updated Settings object
    """
    defaults = Settings.model_fields

    def _apply(field: str, value: Any, cast: Any) -> None:
        if getattr(settings, field) == defaults[field].default:
            setattr(settings, field, cast(value))

    if "cache" in config:
        cache = config["cache"] or {}
        if "enabled" in cache:
            _apply("cache_enabled", cache["enabled"], bool)
        ttl = cache.get("ttl", {}) or {}
        if "videos" in ttl:
            _apply("cache_ttl_videos", ttl["videos"], float)
        if "channels" in ttl:
            _apply("cache_ttl_channels", ttl["channels"], float)
        if "stats" in ttl:
            _apply("cache_ttl_stats", ttl["stats"], float)

    if "pagination" in config:
        pagination = config["pagination"] or {}
        if "video_page_size" in pagination:
            _apply("default_video_page_size", pagination["video_page_size"], int)
        if "channel_page_size" in pagination:
            _apply("default_channel_page_size", pagination["channel_page_size"], int)
        if "max_page_size" in pagination:
            _apply("max_page_size", pagination["max_page_size"], int)
        if "stats_enumeration_cap" in pagination:
            _apply("stats_enumeration_cap", pagination["stats_enumeration_cap"], int)

    return settings


def get_settings_with_yaml(config_path: Path | str | None = None) -> Settings:
    """
    Get settings with YAML configuration applied.

    Priority: Environment Variables > YAML Config > Defaults

    Args:
        config_path: Optional path to config file

    Returns:
        Settings object with YAML configuration applied
    """
    settings = get_settings()
    config = load_yaml_config(config_path)
    return apply_yaml_config(settings, config)
