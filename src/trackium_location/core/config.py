"""
Configuration module for the Trackium location agent.

Loads configuration from built-in defaults, an optional JSON file and
environment variables, in that order of precedence.
"""

import copy
import json
import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from . import constants
from .exceptions import ConfigurationError


DEFAULTS: Dict[str, Any] = {
    "device_id": None,
    "node": {
        "base_url": constants.DEFAULT_NODE_URL,
    },
    "processing": {
        "update_interval_ms": constants.DEFAULT_UPDATE_INTERVAL_MS,
    },
    "delivery": {
        "strategy": constants.STRATEGY_DIRECT,
    },
    "storage": {
        "data_dir": constants.DEFAULT_DATA_DIR,
    },
    "api": {
        "timeout": constants.DEFAULT_API_TIMEOUT,
        "max_retries": constants.DEFAULT_API_MAX_RETRIES,
        "verify_ssl": True,
    },
    "providers": {
        "order": list(constants.DEFAULT_PROVIDER_ORDER),
    },
    "logging": {
        "level": "INFO",
        "file": constants.DEFAULT_LOG_FILE,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` (in place)."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses CONFIG_FILE env var
                        or defaults to 'config.json'. Only an explicitly requested file
                        has to exist.
        """
        self._explicit_file = bool(config_file or os.getenv("CONFIG_FILE"))
        self.config_file = config_file or os.getenv("CONFIG_FILE", "config.json")
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self._load_config()
        self._override_from_env()
        self._validate_config()

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        config_path = Path(self.config_file)
        if not config_path.exists():
            if self._explicit_file:
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
            return

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in configuration file {self.config_file}: {e}"
                )

        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Configuration file {self.config_file} must contain a JSON object"
            )
        _merge(self.config, file_config)

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        if os.getenv("TRACKIUM_DEVICE_ID"):
            self.config["device_id"] = os.getenv("TRACKIUM_DEVICE_ID").strip()

        if os.getenv("MINIMA_NODE_URL"):
            self.config["node"]["base_url"] = os.getenv("MINIMA_NODE_URL")

        if os.getenv("UPDATE_INTERVAL"):
            self.config["processing"]["update_interval_ms"] = self._env_int("UPDATE_INTERVAL")

        if os.getenv("DELIVERY_STRATEGY"):
            self.config["delivery"]["strategy"] = os.getenv("DELIVERY_STRATEGY")

        if os.getenv("TRACKIUM_DATA_DIR"):
            self.config["storage"]["data_dir"] = os.getenv("TRACKIUM_DATA_DIR")

        if os.getenv("API_TIMEOUT"):
            self.config["api"]["timeout"] = self._env_int("API_TIMEOUT")

        # Logging
        if os.getenv("LOG_LEVEL"):
            self.config["logging"]["level"] = os.getenv("LOG_LEVEL")

        if os.getenv("LOG_FILE"):
            self.config["logging"]["file"] = os.getenv("LOG_FILE")

    @staticmethod
    def _env_int(name: str) -> int:
        """Read an integer environment variable."""
        raw = os.getenv(name, "")
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}")

    def _validate_config(self) -> None:
        """Validate configuration values."""
        interval = self.get("processing.update_interval_ms")
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ConfigurationError(
                f"processing.update_interval_ms must be a positive integer, got {interval!r}"
            )

        timeout = self.get("api.timeout")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError(f"api.timeout must be a positive number, got {timeout!r}")

        if not self.node_base_url:
            raise ConfigurationError("node.base_url must not be empty")

        unknown = [s for s in self.delivery_strategies if s not in constants.DELIVERY_STRATEGIES]
        if unknown or not self.delivery_strategies:
            raise ConfigurationError(
                f"Unknown delivery strategy: {', '.join(unknown) or '(empty)'}. "
                f"Available: {', '.join(constants.DELIVERY_STRATEGIES)}"
            )

        unknown = [p for p in self.provider_order if p not in constants.DEFAULT_PROVIDER_ORDER]
        if unknown:
            raise ConfigurationError(
                f"Unknown location provider: {', '.join(unknown)}. "
                f"Available: {', '.join(constants.DEFAULT_PROVIDER_ORDER)}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'node.base_url')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key (supports dot notation).

        Call validate() after a batch of changes.
        """
        keys = key.split(".")
        target = self.config
        for k in keys[:-1]:
            target = target.setdefault(k, {})
        target[keys[-1]] = value

    def validate(self) -> None:
        """
        Re-validate after programmatic changes.

        Raises:
            ConfigurationError: On invalid values
        """
        self._validate_config()

    @property
    def device_id(self) -> Optional[str]:
        """Get device identifier (None until provided)."""
        return self.get("device_id") or None

    @device_id.setter
    def device_id(self, value: str) -> None:
        self.set("device_id", value)

    @property
    def node_base_url(self) -> str:
        """Get remote node base URL."""
        return self.get("node.base_url", constants.DEFAULT_NODE_URL)

    @property
    def update_interval_ms(self) -> int:
        """Get update interval in milliseconds."""
        return self.get("processing.update_interval_ms", constants.DEFAULT_UPDATE_INTERVAL_MS)

    @property
    def update_interval_seconds(self) -> float:
        """Get update interval in seconds."""
        return self.update_interval_ms / 1000.0

    @property
    def delivery_strategies(self) -> List[str]:
        """Get ordered delivery strategy names ('direct,keypair' style string or list)."""
        strategy = self.get("delivery.strategy", constants.STRATEGY_DIRECT)
        if isinstance(strategy, str):
            strategy = strategy.split(",")
        return [s.strip().lower() for s in strategy if s and s.strip()]

    @property
    def data_dir(self) -> str:
        """Get local storage directory."""
        return self.get("storage.data_dir", constants.DEFAULT_DATA_DIR)

    @property
    def api_timeout(self) -> float:
        """Get HTTP request timeout in seconds."""
        return self.get("api.timeout", constants.DEFAULT_API_TIMEOUT)

    @property
    def api_max_retries(self) -> int:
        """Get maximum HTTP retry attempts."""
        return self.get("api.max_retries", constants.DEFAULT_API_MAX_RETRIES)

    @property
    def api_verify_ssl(self) -> bool:
        """Get SSL verification setting."""
        return self.get("api.verify_ssl", True)

    @property
    def provider_order(self) -> List[str]:
        """Get provider names in priority order."""
        return list(self.get("providers.order", constants.DEFAULT_PROVIDER_ORDER))

    @property
    def log_level(self) -> str:
        """Get logging level."""
        return self.get("logging.level", "INFO")

    @property
    def log_file(self) -> str:
        """Get log file path."""
        return self.get("logging.file", constants.DEFAULT_LOG_FILE)

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(file={self.config_file}, node={self.node_base_url}, "
            f"strategy={','.join(self.delivery_strategies)})"
        )
