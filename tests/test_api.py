"""
API tests for the Insight Engine endpoints.

Runs against the Flask test client:
    pytest tests/test_api.py -v
"""
import pytest

from insight_engine import __version__


# ===========================================
# HEALTH
# ===========================================

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route(client):
    response = client.get("/api/engine/unknown")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"


# ===========================================
# FORECAST
# ===========================================

def test_forecast_linear(client, linear_rows):
    response = client.post("/api/engine/forecast", json={
        "data": linear_rows,
        "dateColumn": "date",
        "valueColumn": "value",
        "periods": 2,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["model"] == "linear"
    assert [p["value"] for p in data["forecast"]] == pytest.approx([25.0, 27.0])
    assert data["forecast"][0]["date"] == "2024-01-11T00:00:00.000Z"
    assert data["forecast"][0]["_isForecast"] is True
    assert "confidenceInterval" not in data


def test_forecast_unknown_model_defaults_to_linear(client, linear_rows):
    response = client.post("/api/engine/forecast", json={
        "data": linear_rows,
        "dateColumn": "date",
        "valueColumn": "value",
        "periods": 1,
        "model": "arima",
        "confidenceLevel": 0.95,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["model"] == "linear"
    assert len(data["confidenceInterval"]["lower"]) == 1


def test_forecast_holt_winters(client, seasonal_rows):
    response = client.post("/api/engine/forecast", json={
        "data": seasonal_rows,
        "dateColumn": "date",
        "valueColumn": "value",
        "periods": 7,
        "model": "exponential_smoothing",
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["model"] == "exponential_smoothing"
    assert len(data["forecast"]) == 7


@pytest.mark.parametrize("body, status", [
    ({"dateColumn": "date", "valueColumn": "value", "periods": 2}, 400),
    ({"data": [], "dateColumn": "date", "valueColumn": "value", "periods": 2}, 400),
    ({"data": [{"date": "2024-01-01", "value": 1}], "dateColumn": "date", "valueColumn": "value", "periods": 0}, 400),
    ({"data": [{"date": "2024-01-01", "value": 1}], "dateColumn": "date", "valueColumn": "sales", "periods": 2}, 400),
    ({"data": [{"date": "2024-01-01", "value": 1}], "valueColumn": "value", "periods": 2}, 400),
])
def test_forecast_validation(client, body, status):
    response = client.post("/api/engine/forecast", json=body)
    assert response.status_code == status
    assert "error_code" in response.get_json()


def test_non_json_body_rejected(client):
    response = client.post("/api/engine/forecast", data="not json", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "DATA_VALIDATION_ERROR"


def test_row_limit(client):
    rows = [{"date": "2024-01-01", "value": 1}] * 101
    response = client.post("/api/engine/forecast", json={
        "data": rows, "dateColumn": "date", "valueColumn": "value", "periods": 1,
    })
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "DATA_TOO_LARGE"


def test_unexpected_failure_is_generic_500(client, linear_rows, monkeypatch):
    from insight_engine.api import routes

    def boom(*args, **kwargs):
        raise RuntimeError("kaputt")

    monkeypatch.setattr(routes, "forecast", boom)
    response = client.post("/api/engine/forecast", json={
        "data": linear_rows, "dateColumn": "date", "valueColumn": "value", "periods": 1,
    })
    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to compute forecast"}


# ===========================================
# ANOMALY
# ===========================================

def test_anomaly_defaults_to_iqr(client):
    rows = [{"value": v} for v in [1, 2, 3, 4, 5, 100]]
    response = client.post("/api/engine/anomaly", json={"data": rows, "valueColumn": "value"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["method"] == "iqr"
    assert [a["index"] for a in data["anomalies"]] == [5]
    assert len(data["results"]) == 6


def test_anomaly_z_score(client):
    rows = [{"value": v} for v in [10] * 20 + [100]]
    response = client.post("/api/engine/anomaly", json={
        "data": rows, "valueColumn": "value", "method": "z-score", "sensitivity": 1,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["method"] == "z-score"
    assert [a["value"] for a in data["anomalies"]] == [100.0]


def test_anomaly_integer_beyond_float_range(client):
    response = client.post(
        "/api/engine/anomaly",
        data='{"data": [{"v": 1}, {"v": 2}, {"v": 1' + "0" * 400 + '}], "valueColumn": "v"}',
        content_type="application/json",
    )
    assert response.status_code == 200
    assert [r["value"] for r in response.get_json()["results"]] == [1.0, 2.0, 0.0]


def test_anomaly_rejects_bad_sensitivity(client):
    response = client.post("/api/engine/anomaly", json={
        "data": [{"value": 1}], "valueColumn": "value", "sensitivity": -1,
    })
    assert response.status_code == 400


# ===========================================
# CLUSTERING
# ===========================================

def test_clustering(client, blob_rows):
    response = client.post("/api/engine/clustering", json={
        "data": blob_rows, "features": ["revenue", "orders"], "k": 3, "seed": 42,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert len(data["clusters"]) == len(blob_rows)
    assert len(data["centroids"]) == 3
    assert sum(data["sizes"]) == len(blob_rows)


def test_clustering_is_reproducible_with_seed(client, blob_rows):
    body = {"data": blob_rows, "features": ["revenue", "orders"], "k": 3, "seed": 7}
    first = client.post("/api/engine/clustering", json=body).get_json()
    second = client.post("/api/engine/clustering", json=body).get_json()
    assert first["clusters"] == second["clusters"]


def test_clustering_more_clusters_than_rows(client):
    response = client.post("/api/engine/clustering", json={
        "data": [{"x": 1}, {"x": 2}], "features": ["x"], "k": 5,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert [c["clusterId"] for c in data["clusters"]] == [0, 0]
    assert [c["centroidDistance"] for c in data["clusters"]] == [0.0, 0.0]


@pytest.mark.parametrize("body", [
    {"data": [{"x": 1}], "features": [], "k": 1},
    {"data": [{"x": 1}], "features": ["y"], "k": 1},
    {"data": [{"x": 1}], "features": ["x"], "k": 0},
    {"data": [{"x": 1}], "features": ["x"], "k": 1, "maxIterations": -3},
])
def test_clustering_validation(client, body):
    response = client.post("/api/engine/clustering", json=body)
    assert response.status_code == 400
