"""
Configuration manager for loading and validating YAML configuration files.
"""

import yaml
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .models import BotConfig


logger = logging.getLogger(__name__)


class ConfigurationManager:
    """Manages loading and validation of YAML configuration files."""

    DEFAULT_CONFIG_FILENAME = "config.yaml"

    def load_config(self, config_path: Optional[str] = None) -> BotConfig:
        """
        Load and validate configuration from YAML file.

        Without an explicit path the default file is used when present, and
        the built-in defaults otherwise.

        Args:
            config_path: Path to configuration file. If None, uses default.

        Returns:
            Validated BotConfig instance.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid.
        """
        if config_path is None:
            config_path = self.get_default_config_path()
            if not Path(config_path).exists():
                logger.info(f"No configuration file at {config_path}; using default configuration")
                return BotConfig()

        try:
            config_dict = self._load_yaml_file(config_path)
        except (OSError, yaml.YAMLError, ValueError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e
        return self.validate_config(config_dict)

    def validate_config(self, config: Dict[str, Any]) -> BotConfig:
        """
        Validate configuration dictionary using Pydantic.

        Args:
            config: Configuration dictionary to validate.

        Returns:
            Validated BotConfig instance.

        Raises:
            ConfigurationError: If any value is missing, unknown or out of range.
        """
        try:
            return BotConfig(**config)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def get_default_config_path(self) -> str:
        """Get the default configuration file path."""
        return self.DEFAULT_CONFIG_FILENAME

    def save_config(self, config: BotConfig, config_path: str) -> None:
        """Write a configuration back out as YAML."""
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as file:
            yaml.safe_dump(config.model_dump(mode='json'), file, sort_keys=False)
        logger.info(f"Wrote configuration to {path}")

    def _load_yaml_file(self, file_path: str) -> Dict[str, Any]:
        """Load YAML file and return as dictionary."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r', encoding='utf-8') as file:
            data = yaml.safe_load(file) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
        return data
