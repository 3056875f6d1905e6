"""Shared fixtures for the engine tests."""
import numpy as np
import pandas as pd
import pytest

from insight_engine.api import create_app


@pytest.fixture
def linear_rows():
    """y = 2x + 5 sampled daily."""
    dates = pd.date_range("2024-01-01", periods=10, freq="D")
    return [
        {"date": d.strftime("%Y-%m-%d"), "value": 2 * i + 5}
        for i, d in enumerate(dates)
    ]


@pytest.fixture
def seasonal_rows():
    """Three weeks of a weekly pattern on top of a gentle trend."""
    pattern = [10, 12, 15, 11, 9, 20, 25]
    dates = pd.date_range("2024-01-01", periods=21, freq="D")
    return [
        {"date": d.isoformat(), "value": pattern[i % 7] + 0.5 * i}
        for i, d in enumerate(dates)
    ]


@pytest.fixture
def blob_rows():
    """Three well separated groups of 20 rows in (revenue, orders)."""
    rng = np.random.default_rng(7)
    centers = [(100.0, 5.0), (500.0, 50.0), (900.0, 95.0)]
    rows = []
    for group, (revenue, orders) in enumerate(centers):
        for _ in range(20):
            rows.append({
                "revenue": revenue + rng.normal(0, 10),
                "orders": orders + rng.normal(0, 1),
                "group": group,
            })
    return rows


@pytest.fixture
def app():
    return create_app({"TESTING": True, "MAX_ROWS": 100})


@pytest.fixture
def client(app):
    return app.test_client()
