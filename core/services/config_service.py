"""Configuration service implementation."""

import math
import os
import re
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import asdict

from core.exceptions import ConfigurationError
from core.interfaces.config_interface import IConfigService
from core.models.config import (
    AWSConfig,
    BuildConfig,
    DEFAULT_STATE_TIMEOUT_SECONDS,
    LogLevel,
    RunMode,
)


_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) or strings such as ``"500ms"``, ``"90s"``,
    ``"5m"`` and ``"1h"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_PATTERN.match(str(value))
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        seconds = float(amount) * _DURATION_UNITS[unit]

    if not math.isfinite(seconds):
        raise ValueError(f"Duration must be finite: {value!r}")
    return seconds


class ConfigService(IConfigService):
    """Implementation of configuration service."""

    ENV_MAPPINGS = {
        "INSTANCE_INFO_ZONE": "zone",
        "INSTANCE_INFO_USE_INTERNAL_IP": "use_internal_ip",
        "INSTANCE_INFO_STATE_TIMEOUT": "state_timeout",
        "INSTANCE_INFO_LOG_LEVEL": "log_level",
        "INSTANCE_INFO_AWS_REGION": "aws.region",
    }

    def __init__(self, config_file_path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self._config_file_path = config_file_path
        self._build_config: Optional[BuildConfig] = None
        self._config_cache: Dict[str, Any] = {}
        self._environment_overrides: Dict[str, Any] = {}

        if config_file_path:
            self._load_build_config_sync(config_file_path)

    def _handle_error(self, operation: str, error: Exception) -> None:
        """Centralized error handling and logging."""
        self.logger.error(f"Error {operation}: {str(error)}")
        if isinstance(error, ConfigurationError):
            raise error
        raise ConfigurationError(f"Error {operation}: {str(error)}") from error

    async def load_build_config(self, config_path: str) -> BuildConfig:
        """Load build configuration from file.

        Args:
            config_path: Path to the configuration file

        Returns:
            BuildConfig object

        Raises:
            ConfigurationError: If config is invalid or not found
        """
        return self._load_build_config_sync(config_path)

    def _load_build_config_sync(self, config_file_path: str) -> BuildConfig:
        """Synchronous implementation of build config loading."""
        try:
            config_path = Path(config_file_path)

            if not config_path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found: {config_file_path}"
                )

            with open(config_path, "r", encoding="utf-8") as file:
                raw_config = yaml.safe_load(file)

            if not isinstance(raw_config, dict):
                raise ValueError("Configuration file is empty or invalid")

            return self.load_from_dict(raw_config, source=config_file_path)

        except Exception as e:
            self._handle_error("loading build configuration", e)

    def load_from_dict(
        self, raw_config: Dict[str, Any], source: Optional[str] = None
    ) -> BuildConfig:
        """Build and validate a BuildConfig from an already parsed mapping."""
        self._apply_environment_overrides(raw_config)
        build_config = self._parse_build_config(raw_config)

        errors = build_config.validate()
        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}"
            )

        self._build_config = build_config
        self._config_cache["raw"] = raw_config
        if source:
            self._config_file_path = source

        self.logger.debug(
            f"Loaded build configuration for zone {build_config.zone} "
            f"(use_internal_ip={build_config.use_internal_ip}, "
            f"state_timeout={build_config.state_timeout}s)"
        )
        return build_config

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a configuration setting by key path (e.g., 'aws.region')."""
        if not self._build_config:
            return default

        value: Any = asdict(self._build_config)
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_aws_config(self) -> Optional[AWSConfig]:
        """Get AWS configuration."""
        return self._build_config.aws if self._build_config else None

    def get_build_config(self) -> Optional[BuildConfig]:
        """Get the complete build configuration."""
        return self._build_config

    def set_environment_override(self, key: str, value: Any) -> None:
        """Set an override applied on top of the file on the next load."""
        self._environment_overrides[key] = value

    async def reload_config(self) -> BuildConfig:
        """Reload configuration from source."""
        if not self._config_file_path:
            raise ConfigurationError("No configuration file path available for reload")

        self._config_cache.clear()
        return await self.load_build_config(self._config_file_path)

    def _parse_build_config(self, raw_config: Dict[str, Any]) -> BuildConfig:
        """Parse raw configuration into BuildConfig object."""
        try:
            return BuildConfig(
                zone=str(raw_config.get("zone") or ""),
                use_internal_ip=self._parse_bool(raw_config.get("use_internal_ip", False)),
                state_timeout=parse_duration(
                    raw_config.get("state_timeout", DEFAULT_STATE_TIMEOUT_SECONDS)
                ),
                aws=self._parse_aws_config(raw_config.get("aws") or {}),
                log_level=self._parse_log_level(raw_config.get("log_level", "INFO")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Error parsing build configuration: {str(e)}") from e

    def _parse_aws_config(self, aws_data: Dict[str, Any]) -> AWSConfig:
        """Parse the aws section into AWSConfig object."""
        if not isinstance(aws_data, dict):
            raise TypeError(f"aws section must be a mapping, got {aws_data!r}")
        defaults = AWSConfig()
        return AWSConfig(
            region=aws_data.get("region", defaults.region),
            role_name=aws_data.get("role_name"),
            account_id=self._optional_str(aws_data.get("account_id")),
            run_mode=RunMode(aws_data.get("run_mode", defaults.run_mode.value)),
            poll_interval=parse_duration(
                aws_data.get("poll_interval", defaults.poll_interval)
            ),
        )

    def _parse_log_level(self, log_level_str: str) -> LogLevel:
        """Parse log level string into LogLevel enum."""
        try:
            return LogLevel[log_level_str.upper()]
        except (KeyError, AttributeError):
            return LogLevel.INFO

    @staticmethod
    def _parse_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    @staticmethod
    def _optional_str(value: Any) -> Optional[str]:
        # YAML reads unquoted account ids as integers
        return None if value is None else str(value)

    def _apply_environment_overrides(self, config: Dict[str, Any]) -> None:
        """Apply environment variable overrides, then programmatic ones."""
        for env_var, config_key in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                self._set_nested_value(config, config_key, env_value)

        for key, value in self._environment_overrides.items():
            self._set_nested_value(config, key, value)

    def _set_nested_value(
        self, config: Dict[str, Any], key_path: str, value: Any
    ) -> None:
        """Set a nested value in configuration dictionary."""
        keys = key_path.split(".")
        current = config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
