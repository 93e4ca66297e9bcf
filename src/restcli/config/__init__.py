"""Configuration management for restcli.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for the server and logging
sections.
"""

from restcli.config.settings import ConfigError, Settings, build_registry, load_settings

__all__ = ["ConfigError", "Settings", "build_registry", "load_settings"]
