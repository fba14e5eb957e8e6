"""Configuration loading."""

from cms_anonymize.config.config_manager import ConfigManager

__all__ = ['ConfigManager']
