"""
Configuration module for skillcast.

Uses pydantic-settings for environment variable and YAML loading.
"""

from skillcast.config.settings import Settings
from skillcast.config.sources import ConfigFileError

__all__ = ["ConfigFileError", "Settings"]
