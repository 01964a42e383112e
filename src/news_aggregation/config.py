"""
Configuration management for news aggregation.

Uses Pydantic for validation and pydantic-settings for environment variable support.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseSettings):
    """Key-value store configuration.

    The store keeps the merged collection, one record per item and the run
    metadata, each under its own key with its own expiration.

    For SQLite:
        - Only `path` is required
        - Use ":memory:" for a throwaway in-process store
        - Environment variable: STORE_PATH
    """

    model_config = SettingsConfigDict(env_prefix="STORE_")

    path: str = Field(default="data/news_aggregation.db", description="Database file path (SQLite) or SQLAlchemy URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    # Key layout
    collection_key: str = Field(default="latest-news", description="Key of the merged collection")
    metadata_key: str = Field(default="fetch-metadata", description="Key of the run metadata")
    item_key_prefix: str = Field(default="news-", description="Prefix of per-item keys")
    lock_key: str = Field(default="lock:acquisition", description="Key of the acquisition run lock")

    # Expirations (in seconds)
    collection_ttl_seconds: int = Field(default=86400 * 7, ge=60, description="Collection expiration")
    item_ttl_seconds: int = Field(default=86400 * 30, ge=60, description="Per-item expiration")
    metadata_ttl_seconds: int = Field(default=86400 * 30, ge=60, description="Run metadata expiration")
    lock_ttl_seconds: int = Field(default=600, ge=1, description="Run lock expiration")

    @field_validator("path")
    @classmethod
    def ensure_directory_exists(cls, v: str) -> str:
        """Ensure the database directory exists."""
        if v != ":memory:" and "://" not in v:
            Path(v).parent.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator("item_ttl_seconds")
    @classmethod
    def validate_item_ttl(cls, v: int, info) -> int:
        """Per-item records must outlive the collection key."""
        collection_ttl = info.data.get("collection_ttl_seconds")
        if collection_ttl is not None and v < collection_ttl:
            raise ValueError("item_ttl_seconds must be >= collection_ttl_seconds")
        return v


class FetcherConfig(BaseSettings):
    """HTTP fetcher configuration for source adapters."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    # HTTP settings
    timeout_seconds: int = Field(default=30, ge=1, le=300, description="Request timeout")
    user_agent: str = Field(
        default="News-Aggregation/0.1.0 (+https://github.com/news-aggregation)",
        description="User-Agent header"
    )

    # Retry settings
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_delay_seconds: float = Field(default=2.0, ge=0)

    # Content settings
    max_document_bytes: int = Field(
        default=2_000_000,
        ge=1_000,
        le=50_000_000,
        description="Maximum size of a fetched document in bytes"
    )

    # Follow redirects
    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)


class PipelineConfig(BaseSettings):
    """Acquisition pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    max_collection_size: int = Field(default=100, ge=1, le=10_000, description="Maximum merged collection size")

    # Politeness delays between upstream requests
    source_delay_seconds: float = Field(default=1.0, ge=0, description="Delay after each source")
    category_delay_seconds: float = Field(default=0.5, ge=0, description="Delay after each source category")

    sources_file: Optional[str] = Field(
        default=None,
        description="YAML file with source categories (built-in sources when unset)"
    )


class SchedulerConfig(BaseSettings):
    """Scheduled acquisition configuration."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    enabled: bool = Field(default=True, description="Enable scheduler")
    timezone: str = Field(default="UTC", description="Scheduler timezone")
    interval_minutes: int = Field(default=360, ge=1, description="Acquisition interval")
    misfire_grace_time: int = Field(default=300, ge=0, description="Misfire grace time in seconds")
    coalesce: bool = Field(default=True, description="Coalesce misfired runs")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=True, description="Enable file logging")
    file_path: str = Field(default="logs/news_aggregation.log", description="Log file path")
    rotation: str = Field(default="100 MB", description="Log rotation size")
    retention: str = Field(default="30 days", description="Log retention period")
    compression: Optional[str] = Field(default=None, description="Compression for rotated files, e.g. zip")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    diagnose: bool = Field(default=False, description="Show variable values in console tracebacks")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class WebConfig(BaseSettings):
    """Web API configuration."""

    model_config = SettingsConfigDict(env_prefix="WEB_")

    host: str = Field(default="127.0.0.1", description="Web server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Web server port")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origin: str = Field(default="*", description="Access-Control-Allow-Origin value")


class ClientConfig(BaseSettings):
    """Client retrieval configuration."""

    model_config = SettingsConfigDict(env_prefix="CLIENT_")

    base_url: str = Field(default="http://127.0.0.1:8000", description="Aggregation service URL")
    timeout_seconds: float = Field(default=30.0, gt=0, le=300, description="Live request time bound")
    tick_interval_seconds: float = Field(default=1.0, gt=0, description="Elapsed-time indicator interval")
    offline: bool = Field(default=False, description="Skip the live service and use the snapshot")
    snapshot_path: str = Field(default="data/news_fixture.json", description="Bundled snapshot document")
    scoreboard_path: str = Field(default="data/scoreboard.json", description="Relevance weight tables")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL."""
        return v.rstrip("/")


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NEWS_",
        case_sensitive=False,
    )

    # Application
    version: str = Field(default="0.1.0", description="Application version")
    app_name: str = Field(default="News Aggregation", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Sub-configurations
    store: StoreConfig = Field(default_factory=StoreConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


_SECTION_CLASSES = {
    "store": StoreConfig,
    "fetcher": FetcherConfig,
    "pipeline": PipelineConfig,
    "scheduler": SchedulerConfig,
    "logging": LoggingConfig,
    "web": WebConfig,
    "client": ClientConfig,
}

# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the global configuration instance (None resets it)."""
    global _config
    _config = config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Note: Values loaded from YAML take precedence over environment variables.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with yaml_file.open("r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    main_config = {}
    for key, value in config_dict.items():
        if key not in _SECTION_CLASSES:
            main_config[key] = value

    # Nested sections are built individually so env vars fill unset fields
    for key, config_class in _SECTION_CLASSES.items():
        main_config[key] = config_class(**(config_dict.get(key) or {}))

    return Config(**main_config)
