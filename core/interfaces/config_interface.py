"""Configuration service interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional
from core.models.config import AWSConfig, BuildConfig


class IConfigService(ABC):
    """Interface for configuration management."""

    @abstractmethod
    async def load_build_config(self, config_path: str) -> BuildConfig:
        """Load build configuration from file.

        Args:
            config_path: Path to the configuration file

        Returns:
            BuildConfig object

        Raises:
            ConfigurationError: If config is invalid or not found
        """
        pass

    @abstractmethod
    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a configuration setting by key.

        Args:
            key: Setting key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        pass

    @abstractmethod
    def get_aws_config(self) -> Optional[AWSConfig]:
        """Get AWS-specific configuration."""
        pass

    @abstractmethod
    def get_build_config(self) -> Optional[BuildConfig]:
        """Get the loaded build configuration."""
        pass

    @abstractmethod
    async def reload_config(self) -> BuildConfig:
        """Reload configuration from source."""
        pass
