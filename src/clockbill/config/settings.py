"""Typed settings for clockbill.

Settings are read from the layered configuration (defaults, clockbill.yaml,
CLOCKBILL_* environment variables). A ``.env`` file, when present, is loaded
into the environment first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.config import Config
from ..core.errors import ClockbillError
from ..core.rounding import DEFAULT_GRANULARITY_MINUTES

__all__ = [
    "ConfigError",
    "Settings",
    "get_settings",
    "load_env_file",
    "load_settings",
]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ClockbillError):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Centralized settings.

    Attributes
    ----------
    rounding_minutes : int
        Rounding granularity in minutes (1-60)
    recompute_always : bool
        Recompute rollups on every run instead of only when missing
    rollup_root : str
        Heading under which rollups are written
    clock_root : str
        Heading under which raw clock entries live
    case_sensitive : bool
        Compare heading labels case-sensitively
    currency : str
        Default currency code (documents may override it per invoice)
    hourly_rate : float
        Billing rate per hour
    invoice_start : int
        First invoice number when no counter has been persisted yet
    counter_path : Path
        Invoice counter file
    lock_timeout : float
        Seconds to wait for the counter lock
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSONL log files
    """

    rounding_minutes: int = DEFAULT_GRANULARITY_MINUTES
    recompute_always: bool = False
    rollup_root: str = "Rollups"
    clock_root: str = "Tasks"
    case_sensitive: bool = True
    currency: str = "USD"
    hourly_rate: float = 0.0
    invoice_start: int = 1
    counter_path: Path = Path(".clockbill/invoice-counter.yaml")
    lock_timeout: float = 10.0
    log_level: str = "INFO"
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if isinstance(self.counter_path, str):
            self.counter_path = Path(self.counter_path)
        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        if isinstance(self.rounding_minutes, bool) or not isinstance(self.rounding_minutes, int):
            raise ConfigError(f"rounding.minutes must be an integer, got {self.rounding_minutes!r}")
        if not 1 <= self.rounding_minutes <= 60:
            raise ConfigError(
                f"rounding.minutes must be within 1-60, got {self.rounding_minutes}. "
                "Set CLOCKBILL_ROUNDING_MINUTES or rounding.minutes in clockbill.yaml"
            )
        if self.invoice_start < 0:
            raise ConfigError(f"invoice.start must not be negative, got {self.invoice_start}")
        if self.hourly_rate < 0:
            raise ConfigError(f"billing.hourly_rate must not be negative, got {self.hourly_rate}")
        if not self.rollup_root or not self.clock_root:
            raise ConfigError("rollups.root and clock.root must be non-empty heading labels")

        self.currency = self.currency.strip().upper()
        self.log_level = self.log_level.upper()

    @classmethod
    def from_config(cls, config: Config) -> Settings:
        """Build settings from a loaded configuration.

        Raises
        ------
        ConfigError
            If a value cannot be converted or fails validation
        """
        try:
            log_dir = config.get("logging.dir")
            return cls(
                rounding_minutes=_to_int(config.get("rounding.minutes", DEFAULT_GRANULARITY_MINUTES)),
                recompute_always=_to_bool(config.get("rollups.recompute_always", False)),
                rollup_root=str(config.get("rollups.root", "Rollups")),
                clock_root=str(config.get("clock.root", "Tasks")),
                case_sensitive=_to_bool(config.get("paths.case_sensitive", True)),
                currency=str(config.get("billing.currency", "USD")),
                hourly_rate=float(config.get("billing.hourly_rate", 0.0)),
                invoice_start=_to_int(config.get("invoice.start", 1)),
                counter_path=Path(config.get("invoice.counter_path", ".clockbill/invoice-counter.yaml")),
                lock_timeout=float(config.get("invoice.lock_timeout", 10.0)),
                log_level=str(config.get("logging.level", "INFO")),
                log_dir=Path(log_dir) if log_dir else None,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def from_env(
        cls,
        env_file: Path | str | None = None,
        config_path: Path | str | None = None,
    ) -> Settings:
        """Load settings from .env, clockbill.yaml and the environment.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)
        config_path
            Path to YAML config file (default: clockbill.yaml)
        """
        env_file = Path(env_file) if env_file is not None else Path(".env")
        if env_file.exists():
            load_env_file(env_file)

        return cls.from_config(Config.load(config_path))


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    return int(str(value).strip())


def load_env_file(env_file: Path) -> None:
    """Load KEY=VALUE lines from a .env file into the environment."""
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                value = value[1:-1]

            os.environ[key] = value


_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None, config_path: Path | str | None = None) -> Settings:
    """Load settings and make them the global instance."""
    global _settings
    _settings = Settings.from_env(env_file, config_path)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings have not been loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings
