"""
API module for the Insight Engine.
Provides REST endpoints for the forecasting, anomaly and clustering routines.
"""
from .routes import create_app

__all__ = ["create_app"]
