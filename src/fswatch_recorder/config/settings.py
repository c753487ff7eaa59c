"""
Configuration management for the filesystem event recorder.

Holds the pipeline tuning values (channel capacity, batch size, flush
interval) and logging settings, with validation and sensible defaults.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from fswatch_recorder.models.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class RecorderConfig(BaseSettings):
    """
    Central configuration class for the event recorder.

    Values come from keyword arguments only. The command line recognizes no
    environment variables, so the env and dotenv sources are switched off.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        use_enum_values=True,
    )

    # === Pipeline Configuration ===
    channel_capacity: int = Field(default=100, ge=1, le=100_000, description="Relay channel slot count")
    max_batch_size: int = Field(default=100, ge=1, le=100_000, description="Record count that forces a flush")
    flush_interval_seconds: float = Field(
        default=2.0, gt=0.0, le=3600.0, description="Fixed flush timer period in seconds"
    )
    shutdown_timeout_seconds: float = Field(
        default=5.0, ge=0.0, le=300.0, description="Time allowed for in-flight producers to finish on shutdown"
    )

    # === Watch Configuration ===
    recursive: bool = Field(default=True, description="Watch subdirectories of the root")
    fingerprint_cache_size: int = Field(
        default=10_000, ge=0, description="Files remembered for metadata-only change detection"
    )

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)

    @model_validator(mode='after')
    def validate_flush_timing(self):
        """Ensure producers get some time to finish before the final flush."""
        if self.shutdown_timeout_seconds > 0 and self.shutdown_timeout_seconds < self.flush_interval_seconds / 100:
            raise ConfigurationError(
                "shutdown_timeout_seconds is too small relative to flush_interval_seconds",
                config_key="shutdown_timeout_seconds",
                expected_type="float >= flush_interval_seconds / 100",
                actual_value=self.shutdown_timeout_seconds,
            )
        return self

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        level = self.log_level.value if isinstance(self.log_level, LogLevel) else self.log_level
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": level,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {"fswatch_recorder": {"handlers": ["default"], "level": level, "propagate": False}},
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config


# Global configuration instance
_config: RecorderConfig | None = None


def get_config() -> RecorderConfig:
    """
    Get the global configuration instance.

    Creates a new instance on first call and reuses it for subsequent calls.
    """
    global _config
    if _config is None:
        _config = RecorderConfig()
    return _config


def reload_config() -> RecorderConfig:
    """Force a fresh configuration instance with default values."""
    global _config
    _config = RecorderConfig()
    return _config


def set_config(config: RecorderConfig) -> None:
    """
    Set a custom configuration instance.

    Primarily used for testing or embedding the pipeline in another process.
    """
    global _config
    _config = config
