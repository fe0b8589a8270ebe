"""Configuration models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("linkstash", description="Database name")
    user: str = Field("linkstash", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    min_size: int = Field(1, description="Minimum pool size", ge=1)
    max_size: int = Field(10, description="Maximum pool size", ge=1)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(8000, description="Bind port", ge=1, le=65535)
    auth_key: Optional[str] = Field(None, description="Shared bearer secret (prefer auth_key_env)")
    auth_key_env: Optional[str] = Field("LINKSTASH_AUTH_KEY", description="Environment variable for the shared secret")


class ScraperConfig(BaseModel):
    """Scrape/extraction service configuration."""

    base_url: Optional[str] = Field(None, description="Scraper base URL")
    base_url_env: Optional[str] = Field("LINKSTASH_SCRAPER_URL", description="Environment variable for the base URL")
    api_key: Optional[str] = Field(None, description="Bearer token sent upstream (defaults to the server auth key)")
    api_key_env: Optional[str] = Field(None, description="Environment variable for the upstream token")
    timeout: float = Field(60.0, description="Request timeout in seconds", gt=0)
    parser: str = Field("jsdom", description="Parser requested from the scraper")
    return_format: str = Field("json", description="Return format requested from the scraper")


class IngestionConfig(BaseModel):
    """Ingestion engine policy."""

    tag_policy: Literal["replace", "merge"] = Field(
        "replace",
        description="How re-submitted tags combine with stored tags",
    )
    dedupe_tags: bool = Field(True, description="Drop repeated tags, keeping first occurrence")
    batch_deadline_seconds: Optional[float] = Field(
        30.0,
        description="Upper bound on one ingestion batch (None disables)",
        gt=0,
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")
    console: bool = Field(True, description="Log to the console through rich")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
