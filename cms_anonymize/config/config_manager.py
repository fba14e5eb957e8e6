"""
Configuration manager for loading and managing application configuration.

This module handles loading configuration from YAML files and providing
access to configuration options throughout the application.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cms_anonymize.models import Config, GenerationContext

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'default_config.yaml'


class ConfigManager:
    """
    Manager for loading and accessing configuration.

    Configuration is loaded from multiple sources in this order:
    1. Default configuration (cms_anonymize/config/default_config.yaml)
    2. User-provided configuration file
    3. Environment variables (for sensitive data)
    4. CLI argument overrides
    """

    def __init__(self, default_config_path: str):
        """
        Initialize configuration manager.

        Args:
            default_config_path: Path to default configuration file
        """
        self.default_config_path = default_config_path
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        default_path: str = str(DEFAULT_CONFIG_PATH),
        user_path: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> 'ConfigManager':
        """
        Load configuration from multiple sources.

        Args:
            default_path: Path to default configuration
            user_path: Optional path to user configuration file
            cli_overrides: Optional dictionary of CLI argument overrides

        Returns:
            ConfigManager instance with loaded configuration
        """
        manager = cls(default_path)

        # Load default configuration
        manager._load_yaml(default_path)

        # Load user configuration if provided
        if user_path:
            user_config = manager._load_yaml_file(user_path)
            manager._merge_config(user_config)

        # Apply environment variable overrides
        manager._apply_env_overrides()

        # Apply CLI overrides
        if cli_overrides:
            manager._merge_config(cli_overrides)

        return manager

    def _load_yaml(self, path: str) -> None:
        """
        Load YAML configuration file.

        Args:
            path: Path to YAML file
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                self.config_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Configuration file not found: %s", path)
            self.config_data = {}

    def _load_yaml_file(self, path: str) -> Dict[str, Any]:
        """
        Load YAML file and return as dictionary.

        Args:
            path: Path to YAML file

        Returns:
            Dictionary with configuration data
        """
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """
        Merge new configuration into existing configuration.

        Args:
            new_config: New configuration dictionary to merge
        """
        self._deep_merge(self.config_data, new_config)

    def _deep_merge(self, base: Dict, update: Dict) -> None:
        """
        Deep merge update dictionary into base dictionary.

        Args:
            base: Base dictionary to update
            update: Dictionary with updates
        """
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set(self, section: str, key: str, value: Any) -> None:
        self.config_data.setdefault(section, {})
        self.config_data[section][key] = value

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        # Password hash salt from environment (kept out of config files)
        env_salt = os.getenv('CMS_ANONYMIZE_SALT')
        if env_salt:
            self._set('security', 'password_salt', env_salt)

        env_log_level = os.getenv('CMS_ANONYMIZE_LOG_LEVEL')
        if env_log_level:
            self._set('logging', 'level', env_log_level)

        env_locale = os.getenv('CMS_ANONYMIZE_LOCALE')
        if env_locale:
            self._set('generation', 'locale', env_locale)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Supports dot notation for nested keys (e.g., "generation.locale")

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key doesn't exist

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self.config_data

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_generation_config(self) -> Dict[str, Any]:
        return self.config_data.get('generation', {})

    def get_processing_config(self) -> Dict[str, Any]:
        return self.config_data.get('processing', {})

    def get_security_config(self) -> Dict[str, Any]:
        return self.config_data.get('security', {})

    def generation_context(self) -> GenerationContext:
        """
        Build the generation context from the ``generation`` section.

        Returns:
            GenerationContext instance
        """
        generation = self.get_generation_config()
        return GenerationContext(
            locale=generation.get('locale') or 'en_US',
            seed=generation.get('seed'),
            custom_email_domains=list(generation.get('custom_email_domains') or []),
            custom_fields=dict(generation.get('custom_fields') or {}),
        )

    def to_config_object(self) -> Config:
        """
        Convert to Config dataclass.

        Returns:
            Config object
        """
        return Config(
            generation=self.get_generation_config(),
            processing=self.get_processing_config(),
            security=self.get_security_config(),
            logging=self.config_data.get('logging', {})
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"ConfigManager(loaded={len(self.config_data)} sections)"
