"""Configuration file loader.

Handles discovery, parsing, and resolution of YAML configuration files.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from latencyprobe.exceptions import ConfigurationError
from latencyprobe.history.store import HISTORY_CAPACITY
from latencyprobe.models.config import EngineConfig, TargetConfig
from latencyprobe.models.probe import ProbeTechnique

# Pattern matches ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:-]+)(?::-([^}]*))?\}")

# Config file names searched in the working directory, in priority order
CONFIG_FILE_NAMES = [
    "latencyprobe.yaml",
    ".latencyprobe.yaml",
    "latencyprobe.yml",
    ".latencyprobe.yml",
]

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class DisplayConfig(BaseModel):
    """Settings for the live console view."""

    rows: int = Field(default=10, ge=1, le=HISTORY_CAPACITY)


class LoggingConfig(BaseModel):
    """Log output settings."""

    level: LogLevel = "WARNING"


class CLIOverrides(BaseModel):
    """CLI argument overrides for configuration.

    All fields are optional - only set values will override config file settings.
    """

    host: str | None = None
    technique: ProbeTechnique | None = None
    secure_context: bool | None = None
    rows: int | None = None
    log_level: LogLevel | None = None


class FileConfig(BaseModel):
    """Schema for latencyprobe.yaml configuration file."""

    target: TargetConfig = Field(default_factory=TargetConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigLoader:
    """Load configuration from files and merge CLI arguments over it."""

    @staticmethod
    def discover_config_file(explicit_path: Path | None = None) -> Path | None:
        """Find configuration file in priority order.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Path to config file, or None if not found.

        Raises:
            ConfigurationError: If explicit path doesn't exist.
        """
        if explicit_path is not None:
            if not explicit_path.exists():
                msg = f"Configuration file not found: {explicit_path}"
                raise ConfigurationError(msg)
            return explicit_path

        cwd = Path.cwd()
        for filename in CONFIG_FILE_NAMES:
            config_path = cwd / filename
            if config_path.exists():
                return config_path

        return None

    @staticmethod
    def load_yaml(path: Path) -> dict[str, Any]:
        """Load and parse a YAML configuration file.

        Args:
            path: Path to YAML file.

        Returns:
            Parsed mapping (empty for an empty file).

        Raises:
            ConfigurationError: If file cannot be read, parsed, or is not a mapping.
        """
        try:
            with path.open() as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Failed to parse configuration file {path}: {e}"
            raise ConfigurationError(msg) from e
        except OSError as e:
            msg = f"Failed to read configuration file {path}: {e}"
            raise ConfigurationError(msg) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            msg = f"Configuration file {path} must contain a mapping"
            raise ConfigurationError(msg)
        return content

    @staticmethod
    def interpolate_env_vars(value: Any) -> Any:
        """Recursively substitute environment variables.

        Supports ``${VAR}`` (required) and ``${VAR:-default}`` (optional).

        Args:
            value: Configuration value (string, dict, list, or other).

        Returns:
            Value with environment variables substituted.

        Raises:
            ConfigurationError: If a required environment variable is not set.
        """
        if isinstance(value, str):

            def replace(match: re.Match[str]) -> str:
                var_name = match.group(1)
                default_value = match.group(2)
                env_value = os.environ.get(var_name)
                if env_value is not None:
                    return env_value
                if default_value is not None:
                    return default_value
                msg = f"Environment variable {var_name} is not set"
                raise ConfigurationError(msg)

            return ENV_VAR_PATTERN.sub(replace, value)
        if isinstance(value, dict):
            return {k: ConfigLoader.interpolate_env_vars(v) for k, v in value.items()}
        if isinstance(value, list):
            return [ConfigLoader.interpolate_env_vars(item) for item in value]
        return value

    @staticmethod
    def load_config(explicit_path: Path | None = None) -> FileConfig | None:
        """Discover, load, and validate the configuration file.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Parsed FileConfig, or None if no config file found.

        Raises:
            ConfigurationError: If the config file exists but is invalid.
        """
        config_path = ConfigLoader.discover_config_file(explicit_path)
        if config_path is None:
            return None

        raw_config = ConfigLoader.load_yaml(config_path)
        interpolated = ConfigLoader.interpolate_env_vars(raw_config)

        try:
            return FileConfig.model_validate(interpolated)
        except Exception as e:
            msg = f"Invalid configuration in {config_path}: {e}"
            raise ConfigurationError(msg) from e

    @staticmethod
    def resolve_target_config(
        file_config: FileConfig | None,
        cli_overrides: CLIOverrides | None = None,
    ) -> TargetConfig:
        """Resolve host and technique.

        Priority order: CLI arguments, then the config file, then defaults.

        Args:
            file_config: Parsed configuration file, or None.
            cli_overrides: CLI argument overrides, or None.

        Returns:
            Resolved TargetConfig.
        """
        target = file_config.target if file_config else TargetConfig()
        host = target.host
        technique = target.technique

        if cli_overrides:
            if cli_overrides.host is not None:
                host = cli_overrides.host
            if cli_overrides.technique is not None:
                technique = cli_overrides.technique

        return TargetConfig(host=host, technique=technique)

    @staticmethod
    def resolve_engine_config(
        file_config: FileConfig | None,
        cli_overrides: CLIOverrides | None = None,
    ) -> EngineConfig:
        """Resolve engine settings.

        Args:
            file_config: Parsed configuration file, or None.
            cli_overrides: CLI argument overrides, or None.

        Returns:
            Resolved EngineConfig.
        """
        secure_context = file_config.engine.secure_context if file_config else False
        if cli_overrides and cli_overrides.secure_context is not None:
            secure_context = cli_overrides.secure_context
        return EngineConfig(secure_context=secure_context)

    @staticmethod
    def resolve_display_config(
        file_config: FileConfig | None,
        cli_overrides: CLIOverrides | None = None,
    ) -> DisplayConfig:
        """Resolve console view settings.

        Raises:
            ConfigurationError: If the CLI row count is out of range.
        """
        rows = file_config.display.rows if file_config else DisplayConfig().rows
        if cli_overrides and cli_overrides.rows is not None:
            rows = cli_overrides.rows

        try:
            return DisplayConfig(rows=rows)
        except Exception as e:
            msg = f"Invalid display rows {rows}: must be between 1 and {HISTORY_CAPACITY}"
            raise ConfigurationError(msg) from e

    @staticmethod
    def resolve_log_level(
        file_config: FileConfig | None,
        cli_overrides: CLIOverrides | None = None,
    ) -> LogLevel:
        """Resolve the log level, CLI first."""
        if cli_overrides and cli_overrides.log_level is not None:
            return cli_overrides.log_level
        if file_config:
            return file_config.logging.level
        return LoggingConfig().level


def load_config(explicit_path: Path | None = None) -> FileConfig | None:
    """Convenience function to load configuration.

    Args:
        explicit_path: Explicitly provided config file path.

    Returns:
        Parsed FileConfig, or None if no config file found.
    """
    return ConfigLoader.load_config(explicit_path)
