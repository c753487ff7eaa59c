"""Configuration management and settings."""

from fswatch_recorder.config.settings import LogLevel, RecorderConfig, get_config, reload_config, set_config

__all__ = ["RecorderConfig", "LogLevel", "get_config", "reload_config", "set_config"]
