"""Configuration management for restcli.

Loads the server settings and the command registry from a YAML
configuration file, with environment variable overrides for the
server and logging sections. Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from restcli.domain.models import CommandDefinition
from restcli.engine.registry import CommandRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/restcli.yaml")
SYSTEM_CONFIG_PATH = Path("/etc/restcli.yaml")


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)
    static_dir: str | None = Field(default=None, description="Directory served at /static")
    max_output_bytes: int | None = Field(
        default=None, gt=0, description="Per-stream capture limit; None buffers everything"
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the restcli service.

    The ``commands`` section maps each command ID to its definition;
    the ID is taken from the mapping key.
    """

    model_config = {
        "env_prefix": "RESTCLI_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    commands: dict[str, CommandDefinition] = Field(default_factory=dict)

    @field_validator("commands", mode="before")
    @classmethod
    def _inject_command_ids(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        commands = {}
        for command_id, definition in value.items():
            if isinstance(definition, dict):
                definition = {**definition, "id": str(command_id)}
            commands[str(command_id)] = definition
        return commands


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Without an explicit path, ``config/restcli.yaml`` is tried first,
    then ``/etc/restcli.yaml``.

    Raises:
        ConfigError: If the file cannot be parsed or a command
            definition is invalid.
    """
    if config_path:
        path = Path(config_path)
    elif DEFAULT_CONFIG_PATH.exists() or not SYSTEM_CONFIG_PATH.exists():
        path = DEFAULT_CONFIG_PATH
    else:
        path = SYSTEM_CONFIG_PATH

    yaml_data: dict[str, Any] = {}
    if path.exists():
        try:
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(yaml_data, dict):
            raise ConfigError(f"Top level of {path} must be a mapping")
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    try:
        return Settings(**yaml_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def build_registry(settings: Settings) -> CommandRegistry:
    """Freeze the configured commands into a registry."""
    return CommandRegistry(settings.commands.values())


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded."""
