"""Configuration management for card generation, logging and export."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")
    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")
    max_bytes: int = Field(default=10_485_760, description="Max size of log file in bytes")
    backup_count: int = Field(default=5, description="Number of backup log files to keep")

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable overrides."""
        data["level"] = os.environ.get("LOG_LEVEL", data.get("level", "INFO"))
        data["format"] = os.environ.get("LOG_FORMAT", data.get("format", "json"))
        if log_dir := os.environ.get("LOG_DIR"):
            data["log_dir"] = Path(log_dir)
        if max_bytes := os.environ.get("LOG_MAX_BYTES"):
            data["max_bytes"] = int(max_bytes)
        if backup_count := os.environ.get("LOG_BACKUP_COUNT"):
            data["backup_count"] = int(backup_count)
        super().__init__(**data)


class MetadataConfig(BaseModel):
    """AI metadata service configuration."""

    api_key: str | None = Field(default=None, description="Anthropic API key")
    model: str = Field(default="claude-3-5-haiku-latest", description="Model used for metadata")
    max_tokens: int = Field(default=500, description="Max tokens for the metadata response")
    page_hints: bool = Field(
        default=True, description="Fetch the page and pass its title/meta tags to the model"
    )

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable overrides."""
        data["api_key"] = (
            os.environ.get("ANTHROPIC_API_KEY")
            or os.environ.get("ANTHROPIC_API_TOKEN")
            or data.get("api_key")
        )
        if model := os.environ.get("METADATA_MODEL"):
            data["model"] = model
        if max_tokens := os.environ.get("METADATA_MAX_TOKENS"):
            data["max_tokens"] = int(max_tokens)
        if page_hints := os.environ.get("METADATA_PAGE_HINTS"):
            data["page_hints"] = page_hints.lower() in ("true", "1", "yes")
        super().__init__(**data)


class HttpConfig(BaseModel):
    """Outbound HTTP configuration for asset acquisition."""

    timeout: float = Field(default=15.0, description="HTTP request timeout in seconds")
    user_agent: str = Field(
        default="linkcard/0.1.0 (+https://github.com/linkcard/linkcard)",
        description="User agent string for HTTP requests",
    )
    favicon_min_bytes: int = Field(
        default=100, description="Smallest response body accepted as a real favicon"
    )

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable overrides."""
        if timeout := os.environ.get("HTTP_TIMEOUT"):
            data["timeout"] = float(timeout)
        if user_agent := os.environ.get("HTTP_USER_AGENT"):
            data["user_agent"] = user_agent
        if min_bytes := os.environ.get("FAVICON_MIN_BYTES"):
            data["favicon_min_bytes"] = int(min_bytes)
        super().__init__(**data)


class ExportConfig(BaseModel):
    """Image export configuration."""

    download_pixel_density: float = Field(
        default=3.0, description="Device pixel ratio for downloaded images"
    )
    preview_pixel_density: float = Field(
        default=1.5, description="Device pixel ratio for the social preview snapshot"
    )
    timeout_ms: int = Field(default=30_000, description="Browser render timeout in milliseconds")

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable overrides."""
        if download := os.environ.get("EXPORT_DOWNLOAD_DENSITY"):
            data["download_pixel_density"] = float(download)
        if preview := os.environ.get("EXPORT_PREVIEW_DENSITY"):
            data["preview_pixel_density"] = float(preview)
        if timeout := os.environ.get("EXPORT_TIMEOUT_MS"):
            data["timeout_ms"] = int(timeout)
        super().__init__(**data)


class Settings(BaseModel):
    """Main application settings."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize settings, optionally loading from .env file."""
        if env_file := os.environ.get("ENV_FILE"):
            self._load_env_file(Path(env_file))
        super().__init__(**data)

    def _load_env_file(self, env_file: Path) -> None:
        """Load environment variables from .env file."""
        if not env_file.exists():
            return
        load_dotenv(env_file, override=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the singleton settings instance."""
    return Settings()
