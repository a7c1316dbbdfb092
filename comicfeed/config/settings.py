"""
ComicFeed Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_RELAY_TEMPLATES = [
    "https://api.allorigins.win/raw?url={url}",
    "https://corsproxy.io/?{url}",
    "https://api.codetabs.com/v1/proxy?quest={url}",
]

DEFAULT_FEED_LIST_URL = (
    "https://raw.githubusercontent.com/kagisearch/smallweb/main/smallcomic.txt"
)


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TransportSettings(BaseModel):
    """Document retrieval configuration."""
    relay_templates: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RELAY_TEMPLATES),
        description="Relay endpoint templates in preference order; '{url}' receives the encoded target",
    )
    request_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Total timeout per attempt in seconds (None keeps aiohttp's default)",
    )
    user_agent: str = Field(
        default="ComicFeed/1.0 (+https://github.com/comicfeed/comicfeed)",
        description="User-Agent header sent with every attempt",
    )

    @field_validator("relay_templates")
    @classmethod
    def validate_relay_templates(cls, v):
        """Every relay template needs a target placeholder."""
        for template in v:
            if "{url}" not in template:
                raise ValueError(f"Relay template is missing the {{url}} placeholder: {template}")
        return v


class FeedSettings(BaseModel):
    """Feed normalization configuration."""
    max_entries: int = Field(default=20, ge=1, le=20, description="Entries kept per feed, in document order")
    feed_list_url: str = Field(
        default=DEFAULT_FEED_LIST_URL,
        description="Newline-delimited list of feed URLs",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class ComicFeedSettings(BaseSettings):
    """Main application settings."""

    transport: TransportSettings = Field(default_factory=TransportSettings)
    feeds: FeedSettings = Field(default_factory=FeedSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Application metadata
    app_name: str = Field(default="ComicFeed", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "COMICFEED_",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if not self.feeds.feed_list_url.startswith(("http://", "https://")):
            errors.append(f"Feed list URL must be http(s): {self.feeds.feed_list_url}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> ComicFeedSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = ComicFeedSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[ComicFeedSettings] = None


def get_settings(reload: bool = False) -> ComicFeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
