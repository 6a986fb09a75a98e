"""
Configuration management system for PIP Assist.
Handles YAML configuration loading, validation, and default values.
"""

import os
import yaml
from typing import Dict, Any, Optional

from pipassist.interfaces import ConfigurationInterface
from pipassist.exceptions import ConfigurationError
from pipassist.models import SUPPORTED_LANGUAGES


class ConfigurationManager(ConfigurationInterface):
    """Manages PIP Assist configuration with YAML support."""

    DEFAULT_CONFIG_NAME = "pipassist-config.yaml"
    DEFAULT_CONFIG_PATHS = [
        "./pipassist-config.yaml",
        "~/.pipassist/config.yaml",
        "/etc/pipassist/config.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager."""
        self.config_path = config_path
        self._config: Optional[Dict[str, Any]] = None

    def load_config(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Load configuration from file."""
        if config_path:
            self.config_path = config_path

        config_file = self._find_config_file()

        if config_file and os.path.exists(config_file):
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid YAML in config file {config_file}: {e}"
                )
            except OSError as e:
                raise ConfigurationError(
                    f"Error reading config file {config_file}: {e}"
                )
        else:
            config = {}

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Config file {config_file} must contain a mapping at the top level"
            )

        default_config = self.get_default_config()
        merged_config = self._deep_merge(default_config, config)

        if not self.validate_config(merged_config):
            raise ConfigurationError("Configuration validation failed")

        self._config = merged_config
        return merged_config

    def save_config(
        self, config: Dict[str, Any], config_path: Optional[str] = None
    ) -> None:
        """Save configuration to file."""
        if config_path:
            self.config_path = config_path

        if not self.config_path:
            self.config_path = self.DEFAULT_CONFIG_PATHS[0]

        config_dir = os.path.dirname(os.path.expanduser(self.config_path))
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        try:
            with open(os.path.expanduser(self.config_path), "w", encoding="utf-8") as f:
                yaml.safe_dump(config, f, default_flow_style=False, indent=2)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Error saving config file {self.config_path}: {e}"
            )

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "ai": {
                "provider": "aws-bedrock",
                "region": "us-east-1",
                "model": "anthropic.claude-3-sonnet-20240229-v1:0",
                "max_tokens": 2000,
                "temperature": 0.3,
                "retry_attempts": 3,
                "debounce_seconds": 1.0,
                "form_checker": {"max_tokens": 4000, "temperature": 0.1},
            },
            "app": {"default_language": "fa"},
            "content": {"directory": None},
            "logging": {"file": None, "level": "INFO"},
            "payment": {
                "provider": "stripe",
                "currency": "gbp",
                "app_url": "http://localhost:3000",
                "prices": {"pip": 29.99, "form_checker": 9.99, "default": 14.99},
                "uses": {"form_checker": 5, "default": 1},
            },
            "storage": {"path": "~/.pipassist/storage.yaml"},
        }

    def validate_config(self, config: Dict[str, Any]) -> bool:
        """Validate configuration structure and values."""
        required_sections = ["ai", "app", "content", "logging", "payment", "storage"]

        for section in required_sections:
            if not isinstance(config.get(section), dict):
                return False

        ai_config = config["ai"]
        if not ai_config.get("model") or not ai_config.get("region"):
            return False

        if (
            not isinstance(ai_config.get("max_tokens"), int)
            or ai_config["max_tokens"] <= 0
        ):
            return False

        debounce = ai_config.get("debounce_seconds")
        if not isinstance(debounce, (int, float)) or debounce < 0:
            return False

        if config["app"].get("default_language") not in SUPPORTED_LANGUAGES:
            return False

        payment_config = config["payment"]
        prices = payment_config.get("prices", {})
        if not isinstance(prices, dict) or "default" not in prices:
            return False
        for price in prices.values():
            if not isinstance(price, (int, float)) or price <= 0:
                return False

        uses = payment_config.get("uses", {})
        if not isinstance(uses, dict) or "default" not in uses:
            return False
        for count in uses.values():
            if not isinstance(count, int) or count <= 0:
                return False

        if not config["storage"].get("path"):
            return False

        return True

    def get_config(self) -> Dict[str, Any]:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self.load_config()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key."""
        config = self.get_config()
        keys = key.split(".")

        current = config
        for k in keys:
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                return default

        return current

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations."""
        if self.config_path:
            return os.path.expanduser(self.config_path)

        for path in self.DEFAULT_CONFIG_PATHS:
            expanded_path = os.path.expanduser(path)
            if os.path.exists(expanded_path):
                return expanded_path

        return None

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
