"""
Insight Engine.
Tabular analytics core of the BI application: forecasts, anomaly flags and
clusters computed from plain result sets.
"""
__version__ = "1.0.0"

from insight_engine.analytics import (  # noqa: E402
    AnomalyMethod,
    AnomalyOptions,
    ClusterOptions,
    ForecastModel,
    ForecastOptions,
    cluster,
    detect,
    forecast,
)

__all__ = [
    "__version__",
    "AnomalyMethod",
    "AnomalyOptions",
    "ClusterOptions",
    "ForecastModel",
    "ForecastOptions",
    "cluster",
    "detect",
    "forecast",
]
