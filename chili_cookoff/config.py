"""
Configuration management for the chili cook-off service.
Supports both JSON file configuration and environment variable overrides.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)


class CookoffConfig:
    """Configuration management for the cook-off service."""

    DEFAULT_CONFIG = {
        "competition_name": "Chili Cook-Off",
        "environment": "development",  # development or production
        "server": {
            "app_url": None,
        },
        "database": {
            "busy_timeout_ms": 5000,
        },
        "cors": {
            "enabled": None,  # None follows the environment (off in production)
            "allowed_origin": "*",
        },
        "features": {
            "request_logging": True,
            "debug_endpoints": False,
            "require_active_bonus_round": False,
        },
        "logging": {
            "level": "INFO",
        },
    }

    ENVIRONMENTS = ("development", "production")
    LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    def __init__(
        self,
        config_path: str = "cookoff_config.json",
    ) -> None:
        """Initialize configuration from file, environment variables, or defaults."""
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._apply_env_overrides()
        self._validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from JSON file or create default.

        @return: Dictionary containing the loaded configuration
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded_config = json.load(f)

                # Merge with defaults to ensure all keys exist
                config = copy.deepcopy(self.DEFAULT_CONFIG)
                self._deep_merge(config, loaded_config)
                return config

            except (json.JSONDecodeError, IOError) as e:
                logger.error("Error loading config from %s: %s", self.config_path, e)
                logger.warning("Using default configuration")
                return copy.deepcopy(self.DEFAULT_CONFIG)
        else:
            self._create_default_config()
            return copy.deepcopy(self.DEFAULT_CONFIG)

    def _deep_merge(
        self,
        base_dict: Dict[str, Any],
        update_dict: Dict[str, Any],
    ) -> None:
        """
        Recursively merge dictionaries.

        @param base_dict: Base dictionary to merge into
        @param update_dict: Dictionary with updates to merge
        """
        for key, value in update_dict.items():
            if (
                key in base_dict
                and isinstance(base_dict[key], dict)
                and isinstance(value, dict)
            ):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to configuration.

        DOCKER=true or NODE_ENV=production select the production environment
        unless ENVIRONMENT names one explicitly.
        """
        if os.getenv("DOCKER", "").lower() == "true" or os.getenv("NODE_ENV") == "production":
            self.config["environment"] = "production"

        env_mappings = {
            "COMPETITION_NAME": ("competition_name",),
            "ENVIRONMENT": ("environment",),
            "APP_URL": ("server", "app_url"),
            "BUSY_TIMEOUT_MS": ("database", "busy_timeout_ms"),
            "CORS_ENABLED": ("cors", "enabled"),
            "CORS_ALLOWED_ORIGIN": ("cors", "allowed_origin"),
            "REQUEST_LOGGING": ("features", "request_logging"),
            "DEBUG_ENDPOINTS": ("features", "debug_endpoints"),
            "REQUIRE_ACTIVE_BONUS_ROUND": ("features", "require_active_bonus_round"),
            "LOG_LEVEL": ("logging", "level"),
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                converted_value = self._convert_env_value(env_value)
                self._set_nested_config(config_path, converted_value)

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        @param value: String value from environment variable
        @return: Converted value (bool, int, or string)
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_config(self, path: tuple, value: Any) -> None:
        """
        Set a nested configuration value using a path tuple.

        @param path: Tuple representing the nested path (e.g., ("cors", "enabled"))
        @param value: Value to set
        """
        current = self.config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _create_default_config(self) -> None:
        """Write the default configuration to the configured file path."""
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.DEFAULT_CONFIG, f, indent=2)
            logger.info("Created default configuration file: %s", self.config_path)
        except IOError as e:
            logger.warning("Could not create config file %s: %s", self.config_path, e)

    def _validate_config(self) -> None:
        """
        Validate configuration values.

        Checks configuration values for validity and sets defaults for invalid values.
        """
        if self.config["environment"] not in self.ENVIRONMENTS:
            logger.warning("Invalid environment, using 'development'")
            self.config["environment"] = "development"

        busy_timeout = self.config["database"]["busy_timeout_ms"]
        if isinstance(busy_timeout, bool) or not isinstance(busy_timeout, int) or busy_timeout < 0:
            logger.warning("Invalid busy_timeout_ms, using 5000")
            self.config["database"]["busy_timeout_ms"] = 5000

        level = str(self.config["logging"]["level"]).upper()
        if level not in self.LOG_LEVELS:
            logger.warning("Invalid logging level, using 'INFO'")
            level = "INFO"
        self.config["logging"]["level"] = level

    def get(
        self,
        *keys: str,
    ) -> Any:
        """
        Get nested configuration value.

        @param keys: Variable arguments representing nested keys to traverse
        @return: Configuration value at the specified path, None if not found
        """
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        return value

    def is_feature_enabled(
        self,
        feature_name: str,
    ) -> bool:
        """
        Check if a feature is enabled.

        @param feature_name: Name of the feature to check
        @return: True if feature is enabled, False otherwise
        """
        return self.get("features", feature_name) is True

    def is_production(self) -> bool:
        return self.get("environment") == "production"

    def is_cors_enabled(self) -> bool:
        """
        Whether cross-origin requests are allowed.

        @return: The explicit cors.enabled value, or True outside production
        """
        enabled = self.get("cors", "enabled")
        if enabled is None:
            return not self.is_production()
        return enabled is True
