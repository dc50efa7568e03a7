"""Configuration file support for latencyprobe."""

from latencyprobe.config.loader import (
    CLIOverrides,
    ConfigLoader,
    DisplayConfig,
    FileConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "CLIOverrides",
    "ConfigLoader",
    "DisplayConfig",
    "FileConfig",
    "LoggingConfig",
    "load_config",
]
