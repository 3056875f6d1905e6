"""
Environment-based settings management.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from insight_engine.utils.config import ForecastConfig, ClusterConfig

# Load .env file from project root
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = None, cast: type = str) -> any:
    """Get environment variable with type casting."""
    value = os.getenv(key, default)
    if value is None:
        return None

    if cast == bool:
        return value.lower() in ("true", "1", "yes", "on")
    elif cast == int:
        return int(value)
    elif cast == float:
        return float(value)
    return value


@dataclass
class AppSettings:
    """Application settings loaded from environment."""

    debug: bool = False

    # Request limits
    max_rows: int = 50000

    # Holt-Winters smoothing constants
    hw_alpha: float = 0.5
    hw_beta: float = 0.4
    hw_gamma: float = 0.6

    # Clustering
    kmeans_max_iterations: int = 50

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: str = None

    @classmethod
    def from_env(cls) -> "AppSettings":
        """Create settings from environment variables."""
        return cls(
            debug=get_env("DEBUG", "false", bool),

            max_rows=get_env("MAX_ROWS", "50000", int),

            hw_alpha=get_env("HW_ALPHA", "0.5", float),
            hw_beta=get_env("HW_BETA", "0.4", float),
            hw_gamma=get_env("HW_GAMMA", "0.6", float),

            kmeans_max_iterations=get_env("KMEANS_MAX_ITERATIONS", "50", int),

            log_level=get_env("LOG_LEVEL", "INFO"),
            log_format=get_env("LOG_FORMAT", "text"),
            log_file=get_env("LOG_FILE") or None,
        )

    def forecast_config(self) -> ForecastConfig:
        """Forecast configuration with the smoothing constants from the environment."""
        return ForecastConfig(alpha=self.hw_alpha, beta=self.hw_beta, gamma=self.hw_gamma)

    def cluster_config(self) -> ClusterConfig:
        return ClusterConfig(max_iterations=self.kmeans_max_iterations)


@lru_cache()
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings.from_env()
