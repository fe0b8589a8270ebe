"""Configuration loader."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "linkstash" / "config.yaml"


class Config:
    """Configuration manager."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[ConfigModel] = None,
    ) -> None:
        """Initialize config manager."""
        if config_path is None:
            env_path = os.environ.get("LINKSTASH_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        self.config_path = config_path
        self._config: Optional[ConfigModel] = config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config

    def get_auth_key(self) -> Optional[str]:
        """Get the shared bearer secret, environment first."""
        server = self.config.server
        if server.auth_key_env:
            key = os.environ.get(server.auth_key_env)
            if key:
                return key
        return server.auth_key

    def get_scraper_config(self) -> Dict[str, Any]:
        """Get scraper configuration dict with env overrides resolved."""
        scraper_config = self.config.scraper.model_dump()

        if scraper_config.get("base_url_env"):
            base_url = os.environ.get(scraper_config["base_url_env"])
            if base_url:
                scraper_config["base_url"] = base_url

        if scraper_config.get("api_key_env"):
            api_key = os.environ.get(scraper_config["api_key_env"])
            if api_key:
                scraper_config["api_key"] = api_key

        # Upstream shares the server secret unless told otherwise
        if not scraper_config.get("api_key"):
            scraper_config["api_key"] = self.get_auth_key()

        return scraper_config


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
