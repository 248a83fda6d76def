"""
Settings for the App Tracking System API.

Simple, reliable environment variable configuration. The MongoDB URL is read
on demand so that a connection attempt always sees the current environment.
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Load .env file for local development - look in current working directory
load_dotenv(".env")


def _get_version_from_pyproject() -> str:
    """
    Read version from pyproject.toml file.

    Returns:
        Version string from pyproject.toml, or fallback version
    """
    current_path = Path(__file__)
    for parent in [current_path.parent, *current_path.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            try:
                with open(pyproject_path, "rb") as f:
                    pyproject_data = tomllib.load(f)
                    version = pyproject_data.get("project", {}).get("version")
                    if version:
                        return version
            except (OSError, tomllib.TOMLDecodeError):
                continue

    return "0.1.0"


def _get_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Application settings with environment-based configuration."""

    def __init__(self):
        # ================================================================
        # Version
        # ================================================================
        self.version: str = _get_version_from_pyproject()

        # ================================================================
        # Environment & General Configuration
        # ================================================================
        self.port: int = _get_int("PORT", 8080)
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: str = os.getenv("LOG_DIR", "./logs")
        self.environment: str = os.getenv("ENVIRONMENT", "DEV")

        # ================================================================
        # MongoDB driver options
        # ================================================================
        self.mongodb_server_selection_timeout_ms: int = _get_int(
            "MONGODB_SERVER_SELECTION_TIMEOUT_MS", 10000
        )
        self.mongodb_socket_timeout_ms: int = _get_int(
            "MONGODB_SOCKET_TIMEOUT_MS", 45000
        )
        self.mongodb_connect_timeout_ms: int = _get_int(
            "MONGODB_CONNECT_TIMEOUT_MS", 10000
        )
        self.mongodb_min_pool_size: int = _get_int("MONGODB_MIN_POOL_SIZE", 2)
        self.mongodb_max_pool_size: int = _get_int("MONGODB_MAX_POOL_SIZE", 10)
        self.mongodb_max_idle_time_ms: int = _get_int(
            "MONGODB_MAX_IDLE_TIME_MS", 30000
        )
        self.mongodb_heartbeat_frequency_ms: int = _get_int(
            "MONGODB_HEARTBEAT_FREQUENCY_MS", 10000
        )

        # ================================================================
        # Connection retry policy
        # ================================================================
        self.db_max_retry_attempts: int = _get_int("DB_MAX_RETRY_ATTEMPTS", 5)
        self.db_retry_base_delay: float = _get_float("DB_RETRY_BASE_DELAY", 5.0)

        self._validate_settings()

    def _validate_settings(self):
        """Validate settings values."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        self.log_level = self.log_level.upper()

        valid_environments = ["DEV", "PROD"]
        if self.environment.upper() not in valid_environments:
            self.environment = "DEV"  # Default fallback
        self.environment = self.environment.upper()

        if self.mongodb_min_pool_size > self.mongodb_max_pool_size:
            raise ValueError(
                "MONGODB_MIN_POOL_SIZE must not exceed MONGODB_MAX_POOL_SIZE"
            )
        if self.db_max_retry_attempts < 0:
            raise ValueError("DB_MAX_RETRY_ATTEMPTS must be >= 0")
        if self.db_retry_base_delay <= 0:
            raise ValueError("DB_RETRY_BASE_DELAY must be positive")

    @property
    def mongodb_url(self) -> str | None:
        """
        MongoDB connection URL, read from the environment on every access.

        An empty value is treated the same as a missing one.
        """
        url = os.getenv("MONGODB_URL")
        if url is None or not url.strip():
            return None
        return url.strip()

    @property
    def has_mongodb(self) -> bool:
        """Check if a MongoDB URL is configured."""
        return self.mongodb_url is not None

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "DEV"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "PROD"


# Global settings instance
settings = Settings()
