"""Utility modules."""
from .config import (
    ForecastConfig,
    AnomalyConfig,
    ClusterConfig,
    DEFAULT_FORECAST_CONFIG,
    DEFAULT_ANOMALY_CONFIG,
    DEFAULT_CLUSTER_CONFIG,
)

__all__ = [
    "ForecastConfig",
    "AnomalyConfig",
    "ClusterConfig",
    "DEFAULT_FORECAST_CONFIG",
    "DEFAULT_ANOMALY_CONFIG",
    "DEFAULT_CLUSTER_CONFIG",
]
