"""Configuration management for Linkstash."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    ConfigModel,
    IngestionConfig,
    LoggingConfig,
    PostgresConfig,
    ScraperConfig,
    ServerConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "DEFAULT_CONFIG_PATH",
    "IngestionConfig",
    "LoggingConfig",
    "PostgresConfig",
    "ScraperConfig",
    "ServerConfig",
    "load_config",
    "save_config",
]
