"""Layered configuration for clockbill.

Supports:
- Built-in defaults
- User overrides from clockbill.yaml
- Environment variable overrides (CLOCKBILL_*)
- Nested key access with dot notation
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from ..observability import get_logger

__all__ = ["DEFAULTS", "ENV_MAPPINGS", "Config"]

log = get_logger("clockbill")

DEFAULTS: dict[str, Any] = {
    "rounding": {"minutes": 15},
    "rollups": {"root": "Rollups", "recompute_always": False},
    "clock": {"root": "Tasks"},
    "paths": {"case_sensitive": True},
    "billing": {"currency": "USD", "hourly_rate": 0.0},
    "invoice": {
        "start": 1,
        "counter_path": ".clockbill/invoice-counter.yaml",
        "lock_timeout": 10.0,
    },
    "logging": {"level": "INFO", "dir": None},
}

ENV_MAPPINGS: dict[str, str] = {
    "CLOCKBILL_ROUNDING_MINUTES": "rounding.minutes",
    "CLOCKBILL_RECOMPUTE_ALWAYS": "rollups.recompute_always",
    "CLOCKBILL_ROLLUP_ROOT": "rollups.root",
    "CLOCKBILL_CLOCK_ROOT": "clock.root",
    "CLOCKBILL_CASE_SENSITIVE": "paths.case_sensitive",
    "CLOCKBILL_CURRENCY": "billing.currency",
    "CLOCKBILL_HOURLY_RATE": "billing.hourly_rate",
    "CLOCKBILL_INVOICE_START": "invoice.start",
    "CLOCKBILL_COUNTER_PATH": "invoice.counter_path",
    "CLOCKBILL_LOCK_TIMEOUT": "invoice.lock_timeout",
    "CLOCKBILL_LOG_LEVEL": "logging.level",
    "CLOCKBILL_LOG_DIR": "logging.dir",
}


class Config:
    """Configuration with defaults, file overrides and env vars.

    Configuration priority (highest to lowest):
    1. Environment variables (CLOCKBILL_*)
    2. User config (clockbill.yaml)
    3. Built-in defaults

    Example:
        >>> config = Config.load()
        >>> minutes = config.get("rounding.minutes", 15)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> Config:
        """Load configuration from file and environment.

        Parameters
        ----------
        config_path
            Path to user config file (default: $CLOCKBILL_CONFIG or clockbill.yaml)

        Returns
        -------
        Config
            Loaded configuration instance
        """
        if config_path is None:
            config_path = Path(os.environ.get("CLOCKBILL_CONFIG", "clockbill.yaml"))

        user_config = cls._load_yaml_file(config_path) if Path(config_path).exists() else {}

        merged = cls._deep_merge(copy.deepcopy(DEFAULTS), user_config)
        merged = cls._apply_env_overrides(merged)

        return cls(merged)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dotted key (e.g. ``"rounding.minutes"``)."""
        value: Any = self._data

        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    @staticmethod
    def _load_yaml_file(path: str | Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.warning("Failed to load config, using defaults", path=str(path), error=str(e))
            return {}

        if not isinstance(data, dict):
            log.warning("Config file is not a mapping, ignoring it", path=str(path))
            return {}
        return data

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
        """Apply CLOCKBILL_* environment overrides.

        Values are kept as strings here; ``Settings`` converts and validates
        them.
        """
        result = config.copy()

        for env_var, config_key in ENV_MAPPINGS.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            parts = config_key.split(".")
            data = result
            for part in parts[:-1]:
                data[part] = dict(data.get(part) or {})
                data = data[part]
            data[parts[-1]] = value

        return result

