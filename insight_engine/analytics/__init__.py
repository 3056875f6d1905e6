"""
Tabular analytics core.
Forecasting, anomaly detection and clustering over plain row sets.
"""
from .forecasting import ForecastModel, ForecastOptions, ForecastResult, forecast
from .anomaly import AnomalyMethod, AnomalyOptions, AnomalyResult, detect
from .clustering import ClusterOptions, ClusterResult, cluster

__all__ = [
    "ForecastModel",
    "ForecastOptions",
    "ForecastResult",
    "forecast",
    "AnomalyMethod",
    "AnomalyOptions",
    "AnomalyResult",
    "detect",
    "ClusterOptions",
    "ClusterResult",
    "cluster",
]
