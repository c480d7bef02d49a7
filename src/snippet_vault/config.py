"""
Configuration management for the snippet vault service.

Loads configuration from YAML with ZERO defaults.
Every value must be explicitly specified or startup fails.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = [
    "ConfigurationError",
    "DomainStorageConfig",
    "LoggingConfig",
    "ModelConfig",
    "ServerConfig",
    "ServiceConfig",
    "Settings",
    "StorageConfig",
    "clear_settings_cache",
    "get_config_path",
    "get_settings",
    "load_settings",
    "load_yaml_config",
    "resolve_path",
]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class ModelConfig(BaseModel):
    """Sentence embedding model configuration."""

    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    name: str
    path: str
    device: Literal["auto", "cpu", "cuda", "mps"]
    embedding_dimension: int = Field(..., gt=0)


class DomainStorageConfig(BaseModel):
    """Backing file and capacity for one snippet domain."""

    model_config = ConfigDict(extra="forbid")

    path: str
    quota_bytes: int | None = Field(..., gt=0)


class StorageConfig(BaseModel):
    """Storage configuration for snippet domains and the embedding cache."""

    model_config = ConfigDict(extra="forbid")

    domains: dict[Literal["local", "sync"], DomainStorageConfig]
    embeddings_path: str


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = ConfigDict(extra="forbid")

    host: str
    port: int


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str
    format: Literal["json", "text"]


class Settings(BaseModel):
    """
    Root configuration container.

    All fields are REQUIRED. No defaults exist.
    Missing fields cause immediate startup failure.

    Usage:
        from snippet_vault.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    model: ModelConfig
    storage: StorageConfig
    server: ServerConfig
    logging: LoggingConfig


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load and parse YAML configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigurationError: If file is missing, empty, or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}\n"
            f"Expected location: {config_path.absolute()}\n"
            f"Create the file or set CONFIG_PATH environment variable."
        )

    try:
        with config_path.open() as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        raise ConfigurationError(
            f"Configuration file is empty: {config_path}\n"
            f"All configuration values must be explicitly specified."
        )

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration must be a YAML mapping, got {type(config).__name__}"
        )

    return config


def load_settings(yaml_config: dict[str, Any]) -> Settings:
    """
    Build typed settings from raw YAML config.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        settings = Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"All configuration values must be explicitly specified.\n"
            f"No default values are allowed."
        ) from e

    missing_domains = {"local", "sync"} - set(settings.storage.domains)
    if missing_domains:
        raise ConfigurationError(
            f"Storage configuration is missing domains: {sorted(missing_domains)}"
        )

    return settings


def get_config_path() -> Path:
    """
    Determine configuration file path.

    Uses CONFIG_PATH environment variable if set, otherwise defaults
    to ./config.yaml relative to working directory.
    """
    config_path_str = os.environ.get("CONFIG_PATH")
    if config_path_str is None:
        config_path_str = "config.yaml"
    return Path(config_path_str)


def resolve_path(path_str: str) -> Path:
    """
    Resolve a configured path.

    Relative paths are resolved against the directory holding the
    configuration file, not the working directory.
    """
    path = Path(path_str)
    if not path.is_absolute():
        path = get_config_path().parent / path
    return path


@lru_cache
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    config_path = get_config_path()
    yaml_config = load_yaml_config(config_path)
    return load_settings(yaml_config)


def clear_settings_cache() -> None:
    """Clear cached settings. Used in testing."""
    get_settings.cache_clear()
