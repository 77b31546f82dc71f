"""
Configuration loader for the G-NAF Spatial Services system.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import copy
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, Optional

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..utils import get_logger
from .settings import SpatialServicesSettings, DatabaseSettings


REQUIRED_ENVIRONMENT_KEYS = ("database", "logging", "spatial")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested dictionaries merge key by key."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigLoader:
    """
    Configuration loader and validator for the spatial services.

    This class handles loading environment-specific configuration from JSON files,
    validating required fields, and providing type-safe access to configuration values.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged over shared config

        Raises:
            ConfigurationError: If configuration cannot be loaded or validated
        """
        env_config_path = self.config_dir / "environment_config.json"

        if not env_config_path.exists():
            raise ConfigurationError(
                f"Environment configuration file not found: {env_config_path}"
            )

        try:
            with open(env_config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            ) from e

        self._validate_environment_config(config_data, environment)

        env_config = _deep_merge(
            config_data.get("shared", {}),
            config_data["environments"][environment]
        )
        env_config["_validation"] = config_data.get("validation", {})

        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config

    def get_config(self, key_path: str, environment: str, default: Any = None) -> Any:
        """
        Look up a dotted key path such as ``spatial.cache.ttl_seconds``.

        Args:
            key_path: Dot separated path into the merged configuration
            environment: Environment name
            default: Value returned when any path segment is missing

        Returns:
            The configuration value, or ``default``
        """
        value: Any = self.load_environment_config(environment)
        for part in key_path.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_spatial_settings(self, environment: str) -> SpatialServicesSettings:
        """
        Build validated spatial service settings for an environment.

        Raises:
            ConfigurationError: If the ``spatial`` section fails validation
        """
        section = self.load_environment_config(environment).get("spatial", {})
        try:
            return SpatialServicesSettings(**section)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid spatial settings for {environment}: {e.error_count()} error(s)",
                {"errors": "; ".join(err["msg"] for err in e.errors())}
            ) from e

    def get_database_settings(self, environment: str) -> DatabaseSettings:
        """
        Build validated database settings, resolving the DSN from the environment when unset.

        Raises:
            ConfigurationError: If the ``database`` section fails validation
        """
        section = dict(self.load_environment_config(environment).get("database", {}))
        try:
            settings = DatabaseSettings(**section)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid database settings for {environment}: {e.error_count()} error(s)",
                {"errors": "; ".join(err["msg"] for err in e.errors())}
            ) from e

        if settings.dsn is None:
            settings = settings.model_copy(update={"dsn": os.getenv(settings.dsn_env_var)})
        return settings

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])

        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise ConfigurationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise ConfigurationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = config_data["environments"][environment]
        shared_config = config_data.get("shared", {})

        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config and key not in shared_config:
                raise ConfigurationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.logger.info("Configuration cache cleared")
