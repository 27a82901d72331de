"""
Configuration module for layerdoc.

Uses pydantic-settings for environment variable loading and layered YAML
config files.
"""

from layerdoc.config.settings import Settings, find_project_root
from layerdoc.config.sources import ConfigFileError, LayeredYamlSettingsSource

__all__ = ["ConfigFileError", "LayeredYamlSettingsSource", "Settings", "find_project_root"]
