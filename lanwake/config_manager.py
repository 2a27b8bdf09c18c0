"""Configuration management for lanwake."""

import copy
import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

from .utils import validate_ip_address, validate_port


logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.json"):
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._default_config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "network": {
                "broadcast_address": "255.255.255.255",
                "port": 4000,
                "dry_run": False
            },
            "aliases": {
                "file": None,
                "repair_on_error": True
            },
            "logging": {
                "level": "WARNING",
                "file": None,
                "max_size_mb": 10,
                "backup_count": 3,
                "console_output": True
            }
        }

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file with validation."""
        if not self.config_path.exists():
            logger.debug(f"Config file {self.config_path} not found, using defaults")
            self._config = copy.deepcopy(self._default_config)
            return self._config

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)
        except json.JSONDecodeError as e:
            logger.debug(f"Invalid JSON in config file: {e}")
            raise ValueError(f"Configuration file contains invalid JSON: {e}") from e

        if not isinstance(loaded_config, dict):
            raise ValueError("Configuration file must contain a JSON object")

        # Merge with defaults to ensure all keys exist
        self._config = self._merge_config(self._default_config, loaded_config)
        self._validate_config()

        logger.debug(f"Configuration loaded successfully from {self.config_path}")
        return self._config

    def apply_overrides(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Apply dot-path overrides (e.g. {'network.port': 9}) and revalidate.

        ``None`` values are ignored so unset command line options keep the file value.
        """
        if not self._config:
            self._config = copy.deepcopy(self._default_config)

        for key_path, value in overrides.items():
            if value is None:
                continue
            keys = key_path.split('.')
            section = self._config
            for key in keys[:-1]:
                section = section.setdefault(key, {})
            section[keys[-1]] = value

        self._validate_config()
        return self._config

    def _merge_config(self, default: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge loaded config with defaults."""
        result = copy.deepcopy(default)

        for key, value in loaded.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self) -> None:
        """Validate configuration values."""
        errors = [f"Invalid {section} section: expected an object, got {self._config[section]!r}"
                  for section in ("network", "aliases", "logging")
                  if not isinstance(self._config[section], dict)]
        if errors:
            self._raise_errors(errors)

        network = self._config["network"]
        broadcast_address = network["broadcast_address"]
        if not isinstance(broadcast_address, str) or not validate_ip_address(broadcast_address):
            errors.append(f"Invalid broadcast address: {broadcast_address!r}")

        if not self._validate_port(network["port"]):
            errors.append(f"Invalid port: {network['port']}")

        if not isinstance(network["dry_run"], bool):
            errors.append(f"Invalid dry_run value: {network['dry_run']}")

        alias_config = self._config["aliases"]
        alias_file = alias_config["file"]
        if alias_file is not None and not isinstance(alias_file, str):
            errors.append(f"Invalid alias file path: {alias_file}")

        if not isinstance(alias_config["repair_on_error"], bool):
            errors.append(f"Invalid repair_on_error value: {alias_config['repair_on_error']}")

        log_config = self._config["logging"]
        if log_config["file"] is not None and not isinstance(log_config["file"], str):
            errors.append(f"Invalid log file path: {log_config['file']}")

        if not isinstance(log_config["console_output"], bool):
            errors.append(f"Invalid console_output value: {log_config['console_output']}")

        log_level = str(log_config["level"]).upper()
        if log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {log_level}. Must be one of {VALID_LOG_LEVELS}")

        for key in ("max_size_mb", "backup_count"):
            value = log_config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(f"Invalid logging value for {key}: {value}")

        if errors:
            self._raise_errors(errors)

    def _raise_errors(self, errors: List[str]) -> None:
        error_msg = "Configuration validation failed:\n" + "\n".join(errors)
        # Reported by the caller; logging is usually not configured yet
        logger.debug(error_msg)
        raise ValueError(error_msg)

    def _validate_port(self, port: int) -> bool:
        """Validate port number."""
        return isinstance(port, int) and validate_port(port)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'network.port')."""
        keys = key_path.split('.')
        value = self._config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def save_example_config(self, path: Optional[str] = None) -> None:
        """Save an example configuration file with comments."""
        if path is None:
            path = "config.json.example"

        example_config = {
            "_comment_network": "Where magic packets are sent",
            "network": {
                "_comment": "Limited broadcast address and UDP port",
                "broadcast_address": "255.255.255.255",
                "port": 4000,
                "dry_run": False
            },
            "_comment_aliases": "Alias file mapping names to MAC addresses",
            "aliases": {
                "_comment": "null uses wol_aliases.json next to the lanwake package",
                "file": None,
                "repair_on_error": True
            },
            "_comment_logging": "Logging configuration",
            "logging": {
                "level": "WARNING",
                "file": None,
                "max_size_mb": 10,
                "backup_count": 3,
                "console_output": True
            }
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(example_config, f, indent=2, ensure_ascii=False)

        logger.info(f"Example configuration saved to {path}")
