"""Configuration management - Centralized configuration for IPVerify.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ipverify.common.constants import SpeedConstants
from ipverify.common.exceptions import ConfigurationError
from ipverify.store.policy import TieBreak


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Event store backend types."""
    SQLITE = "sqlite"
    MEMORY = "memory"


def _parse_enum(enum_cls, env_var: str, default: str):
    raw = os.getenv(env_var, default)
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {env_var}: {raw!r}",
            details={"variable": env_var, "value": raw},
        ) from e


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, str(default))
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid integer for {env_var}: {raw!r}",
            details={"variable": env_var, "value": raw},
        ) from e


def _parse_log_level() -> LogLevel:
    # A value starting with "d" selects debug output, as with the
    # development logger switch of the original service.
    raw = os.getenv("IPVERIFY_LOG_LEVEL", "INFO").upper()
    if raw.startswith("D"):
        return LogLevel.DEBUG
    try:
        return LogLevel(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for IPVERIFY_LOG_LEVEL: {raw!r}",
            details={"variable": "IPVERIFY_LOG_LEVEL", "value": raw},
        ) from e


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> ipverify -> src -> project_root
    return Path(__file__).resolve().parent.parent.parent.parent.parent


@dataclass
class Config:
    """Central configuration object for IPVerify.

    All settings can be overridden via environment variables prefixed
    with IPVERIFY_.

    Example:
        IPVERIFY_ENVIRONMENT=production
        IPVERIFY_STORE_BACKEND=memory
        IPVERIFY_MAX_SPEED=600
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: _parse_enum(
            Environment, "IPVERIFY_ENVIRONMENT", "development"
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("IPVERIFY_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(default_factory=_parse_log_level)

    # Paths
    project_root: Path = field(default_factory=_get_project_root)

    # API settings
    api_host: str = field(
        default_factory=lambda: os.getenv("IPVERIFY_API_HOST", "0.0.0.0")
    )
    api_port: int = field(
        default_factory=lambda: _parse_int("IPVERIFY_API_PORT", 8080)
    )
    timeout_seconds: int = field(
        default_factory=lambda: _parse_int("IPVERIFY_TIMEOUT", 30)
    )
    enable_docs: Optional[bool] = field(
        default_factory=lambda: (
            None if os.getenv("IPVERIFY_ENABLE_DOCS") is None
            else os.getenv("IPVERIFY_ENABLE_DOCS", "").lower() == "true"
        )
    )

    # Store settings
    store_backend: StoreBackend = field(
        default_factory=lambda: _parse_enum(
            StoreBackend, "IPVERIFY_STORE_BACKEND", "sqlite"
        )
    )
    db_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("IPVERIFY_DB_PATH", "./db/requests.db")
        )
    )

    # Geolocation settings
    mmdb_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("IPVERIFY_MMDB_PATH", "mmdb/GeoLite2-City.mmdb")
        )
    )

    # Classification settings
    max_speed: int = field(
        default_factory=lambda: _parse_int(
            "IPVERIFY_MAX_SPEED", SpeedConstants.MAX_SPEED_MPH
        )
    )
    tie_break: TieBreak = field(
        default_factory=lambda: _parse_enum(
            TieBreak, "IPVERIFY_TIE_BREAK", TieBreak.PREDECESSOR.value
        )
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.max_speed <= 0:
            raise ConfigurationError(
                "IPVERIFY_MAX_SPEED must be positive",
                details={"value": self.max_speed},
            )
        if not 0 < self.api_port < 65536:
            raise ConfigurationError(
                "IPVERIFY_API_PORT must be a valid TCP port",
                details={"value": self.api_port},
            )

        if self.enable_docs is None:
            self.enable_docs = not self.is_production

        # Warn about debug in production
        if self.is_production and self.debug:
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
