"""
REST API routes for the Insight Engine.
Thin Flask boundary: validates requests, calls the analytics core and
serializes its results.
"""
from datetime import datetime, timezone
from functools import wraps

from flask import Flask, request, jsonify

from insight_engine import __version__
from insight_engine.analytics.anomaly import AnomalyOptions, detect
from insight_engine.analytics.clustering import ClusterOptions, cluster
from insight_engine.analytics.forecasting import ForecastOptions, forecast
from insight_engine.data import validator
from insight_engine.utils.config import DEFAULT_ANOMALY_CONFIG
from insight_engine.utils.exceptions import ComputationError, DataError, DataValidationError
from insight_engine.utils.logging_config import get_logger
from insight_engine.utils.settings import get_settings

logger = get_logger("insight_engine.api")


def engine_endpoint(operation: str):
    """
    Wrap an endpoint so validation errors become 400 responses and any
    other failure a generic 500.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except DataError as e:
                logger.warning(f"Rejected {operation} request: {e.message}", extra={"details": e.details})
                return jsonify(e.to_dict()), 400
            except Exception as e:
                error = ComputationError(operation, str(e))
                logger.exception(error.message, extra={"operation": operation})
                return jsonify({"error": error.user_message}), 500
        return wrapper
    return decorator


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise DataValidationError("body", "Request body must be a JSON object.")
    return payload


def create_app(config: dict = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary. ``MAX_ROWS``,
            ``FORECAST_CONFIG``, ``ANOMALY_CONFIG`` and ``CLUSTER_CONFIG``
            override the values derived from settings.

    Returns:
        Configured Flask app
    """
    settings = get_settings()

    app = Flask(__name__)
    app.config.update({
        "MAX_ROWS": settings.max_rows,
        "FORECAST_CONFIG": settings.forecast_config(),
        "ANOMALY_CONFIG": DEFAULT_ANOMALY_CONFIG,
        "CLUSTER_CONFIG": settings.cluster_config(),
    })
    app.config.update(config or {})

    # ===========================================
    # MIDDLEWARE
    # ===========================================

    @app.before_request
    def log_request():
        """Log incoming requests."""
        logger.info(f"API Request: {request.method} {request.path}")

    @app.after_request
    def add_headers(response):
        """Add common headers."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ===========================================
    # ERROR HANDLERS
    # ===========================================

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            "error": "Not Found",
            "message": "Resource not found"
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "error": "Method Not Allowed",
            "message": str(error.description)
        }), 405

    # ===========================================
    # HEALTH
    # ===========================================

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        })

    # ===========================================
    # ENGINE ENDPOINTS
    # ===========================================

    @app.route("/api/engine/forecast", methods=["POST"])
    @engine_endpoint("forecast")
    def forecast_endpoint():
        """
        Forecast a value column.

        Request body:
        {
            "data": [{"date": "2024-01-01", "sales": 10}, ...],
            "dateColumn": "date",
            "valueColumn": "sales",
            "periods": 6,
            "model": "linear" | "exponential_smoothing" | "decomposition",
            "confidenceLevel": 0.95
        }
        """
        payload = _payload()
        data = validator.validate_dataset(payload.get("data"), app.config["MAX_ROWS"])
        options = ForecastOptions(
            date_column=validator.require_string(payload, "dateColumn"),
            value_column=validator.require_string(payload, "valueColumn"),
            periods=validator.require_positive_int(payload, "periods"),
            model=payload.get("model"),
            confidence_level=validator.optional_fraction(payload, "confidenceLevel"),
        )
        validator.require_columns(data, [options.date_column, options.value_column])

        result = forecast(data, options, app.config["FORECAST_CONFIG"])
        return jsonify(result.to_dict())

    @app.route("/api/engine/anomaly", methods=["POST"])
    @engine_endpoint("anomalies")
    def anomaly_endpoint():
        """
        Detect anomalies in a value column.

        Request body:
        {
            "data": [...],
            "valueColumn": "sales",
            "method": "z-score" | "iqr",
            "sensitivity": 1.5
        }
        """
        payload = _payload()
        data = validator.validate_dataset(payload.get("data"), app.config["MAX_ROWS"])
        options = AnomalyOptions(
            value_column=validator.require_string(payload, "valueColumn"),
            method=payload.get("method"),
            sensitivity=validator.optional_positive_number(payload, "sensitivity"),
        )
        validator.require_columns(data, [options.value_column])

        results = detect(data, options, app.config["ANOMALY_CONFIG"])
        return jsonify({
            "method": options.method.value,
            "anomalies": [r.to_dict() for r in results if r.is_anomaly],
            "results": [r.to_dict() for r in results],
        })

    @app.route("/api/engine/clustering", methods=["POST"])
    @engine_endpoint("clusters")
    def clustering_endpoint():
        """
        Cluster rows with K-Means.

        Request body:
        {
            "data": [...],
            "features": ["revenue", "orders"],
            "k": 3,
            "maxIterations": 50,
            "seed": 42
        }
        """
        payload = _payload()
        data = validator.validate_dataset(payload.get("data"), app.config["MAX_ROWS"])
        options = ClusterOptions(
            features=validator.require_string_list(payload, "features"),
            k=validator.require_positive_int(payload, "k"),
            max_iterations=validator.require_positive_int(
                payload, "maxIterations", app.config["CLUSTER_CONFIG"].max_iterations
            ),
        )
        validator.require_columns(data, options.features)
        seed = validator.optional_seed(payload, "seed")

        result = cluster(data, options, rng=seed, config=app.config["CLUSTER_CONFIG"])
        return jsonify(result.to_dict())

    return app


def run_api(host: str = "0.0.0.0", port: int = 5000, debug: bool = False):
    """
    Run the API server.

    Args:
        host: Host to bind to
        port: Port number
        debug: Enable debug mode
    """
    app = create_app()

    logger.info(f"Starting API server on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_api(debug=get_settings().debug)
