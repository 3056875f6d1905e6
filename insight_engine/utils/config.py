"""
Configuration and constants for the Insight Engine analytics core.
"""
from dataclasses import dataclass

from insight_engine.utils.exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class ForecastConfig:
    """Configuration for forecasting models."""
    # Holt-Winters smoothing constants (not fitted)
    alpha: float = 0.5  # level
    beta: float = 0.4  # trend
    gamma: float = 0.6  # seasonal

    # Holt-Winters season length heuristic
    monthly_season_length: int = 12
    monthly_min_points: int = 24  # >= 24 points assumes monthly cadence
    weekly_season_length: int = 7
    weekly_min_points: int = 14  # below this, seasonality is disabled

    # Decomposition season length heuristic
    decomposition_min_season: int = 7
    decomposition_long_series: int = 20  # above this, season = max(7, n // 4)

    def __post_init__(self):
        for name in ("alpha", "beta", "gamma"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigurationError(
                    name, value, "Smoothing constants must lie in [0, 1]."
                )


@dataclass(frozen=True)
class AnomalyConfig:
    """Configuration for anomaly detection."""
    z_threshold: float = 3.0  # standard deviations
    iqr_multiplier: float = 1.5  # Tukey fence

    # Severity is graded on score / threshold
    medium_ratio: float = 1.5
    high_ratio: float = 2.0


@dataclass(frozen=True)
class ClusterConfig:
    """Configuration for K-Means clustering."""
    max_iterations: int = 50
    tolerance: float = 0.001  # summed centroid movement


# Default configurations
DEFAULT_FORECAST_CONFIG = ForecastConfig()
DEFAULT_ANOMALY_CONFIG = AnomalyConfig()
DEFAULT_CLUSTER_CONFIG = ClusterConfig()
