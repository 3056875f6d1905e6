"""Tests for configuration, settings and logging."""
import json
import logging

import pytest

from insight_engine.utils.config import ForecastConfig
from insight_engine.utils.exceptions import InvalidConfigurationError
from insight_engine.utils.logging_config import JSONFormatter, setup_logging
from insight_engine.utils.settings import AppSettings, get_env


def test_smoothing_constants_must_be_fractions():
    with pytest.raises(InvalidConfigurationError) as exc_info:
        ForecastConfig(alpha=1.5)
    assert exc_info.value.details["config_key"] == "alpha"


def test_get_env_casts(monkeypatch):
    monkeypatch.setenv("IE_FLAG", "yes")
    monkeypatch.setenv("IE_COUNT", "12")
    monkeypatch.setenv("IE_RATE", "0.25")
    assert get_env("IE_FLAG", cast=bool) is True
    assert get_env("IE_COUNT", cast=int) == 12
    assert get_env("IE_RATE", cast=float) == 0.25
    assert get_env("IE_UNSET") is None


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MAX_ROWS", "10")
    monkeypatch.setenv("HW_ALPHA", "0.3")
    monkeypatch.setenv("KMEANS_MAX_ITERATIONS", "20")
    settings = AppSettings.from_env()

    assert settings.max_rows == 10
    assert settings.forecast_config().alpha == 0.3
    assert settings.forecast_config().beta == 0.4
    assert settings.cluster_config().max_iterations == 20


def test_json_formatter():
    record = logging.LogRecord("insight_engine.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.operation = "forecast"
    data = json.loads(JSONFormatter().format(record))
    assert data["message"] == "hello world"
    assert data["level"] == "INFO"
    assert data["operation"] == "forecast"
    assert data["location"].endswith(":1")
    assert "details" not in data


def test_text_console_format(capsys):
    logger = setup_logging(level="bogus", log_format="text", app_name="insight_engine.text_test")
    logger.info("plain")

    assert logger.level == logging.INFO
    assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
    assert capsys.readouterr().out.rstrip().endswith("| INFO     | insight_engine.text_test | plain")
    logger.handlers.clear()


def test_setup_logging_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "engine.log"
    logger = setup_logging(level="DEBUG", log_format="json", log_file=str(log_file), app_name="insight_engine.test")
    logger.debug("written")
    for handler in logger.handlers:
        handler.flush()

    assert json.loads(log_file.read_text().strip())["message"] == "written"
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
