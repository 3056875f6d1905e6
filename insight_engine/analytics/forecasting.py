"""
Forecast Engine.
Extrapolates a numeric column into future periods with a linear trend,
additive Holt-Winters smoothing, or a trend + seasonal decomposition.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from itertools import accumulate
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
from scipy.stats import norm
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from insight_engine.data.ingestion import (
    Dataset,
    format_timestamp,
    numeric_column,
    parse_timestamp,
)
from insight_engine.utils.config import DEFAULT_FORECAST_CONFIG, ForecastConfig

logger = logging.getLogger(__name__)

FORECAST_FLAG = "_isForecast"


class ForecastModel(Enum):
    """Available forecasting models."""
    LINEAR = "linear"
    EXPONENTIAL_SMOOTHING = "exponential_smoothing"
    DECOMPOSITION = "decomposition"

    @classmethod
    def from_value(cls, value: Any) -> "ForecastModel":
        """Resolve a model name; unknown or missing names select LINEAR."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        logger.debug("Unrecognized forecast model %r, using linear", value)
        return cls.LINEAR


@dataclass
class ForecastOptions:
    """Options for a forecast request."""
    date_column: str
    value_column: str
    periods: int
    model: ForecastModel = ForecastModel.LINEAR
    confidence_level: Optional[float] = None

    def __post_init__(self):
        self.model = ForecastModel.from_value(self.model)


@dataclass
class ForecastResult:
    """Container for forecast results."""
    forecast: List[Dict[str, Any]]
    model: ForecastModel
    confidence_interval: Optional[Dict[str, List[Dict[str, Any]]]] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable representation."""
        result = {
            "forecast": self.forecast,
            "model": self.model.value,
            "metrics": self.metrics,
        }
        if self.confidence_interval is not None:
            result["confidenceInterval"] = self.confidence_interval
        return result


@dataclass(frozen=True)
class LinearTrend:
    """Least-squares line over the row index."""
    slope: float
    intercept: float

    def at(self, x):
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class HoltWintersState:
    """Level, trend and per-phase seasonal indices of additive Holt-Winters."""
    level: float
    trend: float
    seasonal: Tuple[float, ...]

    @property
    def season_length(self) -> int:
        return len(self.seasonal)

    def predict(self, steps: int, phase: int) -> float:
        """Value ``steps`` ahead of the current level, using the index for ``phase``."""
        return self.level + steps * self.trend + self.seasonal[phase % self.season_length]


# ===========================================
# Shared helpers
# ===========================================

def fit_linear_trend(values: np.ndarray) -> LinearTrend:
    """Ordinary least squares of ``values`` against their index 0..n-1."""
    n = len(values)
    x = np.arange(n, dtype=float)

    sum_x = x.sum()
    sum_y = values.sum()
    sum_xy = (x * values).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator else 0.0
    intercept = (sum_y - slope * sum_x) / n
    return LinearTrend(slope=float(slope), intercept=float(intercept))


def _future_dates(dataset: Dataset, date_column: str, periods: int) -> List[Optional[str]]:
    """Stamp future points at the average observed interval after the last row."""
    n = len(dataset)
    first = parse_timestamp(dataset[0].get(date_column))
    last = parse_timestamp(dataset[-1].get(date_column))
    if first is None or last is None:
        logger.debug("Unparseable dates in '%s', forecast dates left empty", date_column)
        return [None] * periods

    interval = (last - first) / (n - 1)
    return [format_timestamp(last + h * interval) for h in range(1, periods + 1)]


def _records(
    options: ForecastOptions,
    dates: List[Optional[str]],
    values: np.ndarray,
    flag: bool = True
) -> List[Dict[str, Any]]:
    records = []
    for date, value in zip(dates, values):
        record = {options.date_column: date, options.value_column: float(value)}
        if flag:
            record[FORECAST_FLAG] = True
        records.append(record)
    return records


def _fit_metrics(actual: np.ndarray, fitted: np.ndarray) -> Dict[str, float]:
    """In-sample goodness of fit."""
    return {
        "r_squared": float(r2_score(actual, fitted)),
        "mae": float(mean_absolute_error(actual, fitted)),
        "rmse": float(np.sqrt(mean_squared_error(actual, fitted))),
    }


def _z_value(confidence_level: float) -> float:
    return float(norm.ppf((1 + confidence_level) / 2))


def _interval(
    options: ForecastOptions,
    dates: List[Optional[str]],
    predictions: np.ndarray,
    margins: np.ndarray
) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "lower": _records(options, dates, predictions - margins, flag=False),
        "upper": _records(options, dates, predictions + margins, flag=False),
    }


def _seasonal_margins(residuals: np.ndarray, confidence_level: float, periods: int) -> np.ndarray:
    """Margins widening with the square root of the horizon."""
    sigma = float(np.std(residuals))
    horizons = np.arange(1, periods + 1, dtype=float)
    return _z_value(confidence_level) * sigma * np.sqrt(horizons)


# ===========================================
# Linear trend
# ===========================================

def _forecast_linear(
    dataset: Dataset,
    values: np.ndarray,
    options: ForecastOptions,
    config: ForecastConfig
) -> ForecastResult:
    n = len(values)
    if n < 2:
        return ForecastResult(forecast=[], model=ForecastModel.LINEAR)

    trend = fit_linear_trend(values)
    future_x = np.arange(n, n + options.periods, dtype=float)
    predictions = trend.at(future_x)
    dates = _future_dates(dataset, options.date_column, options.periods)

    x = np.arange(n, dtype=float)
    fitted = trend.at(x)
    metrics = _fit_metrics(values, fitted)
    metrics.update({"slope": trend.slope, "intercept": trend.intercept})

    confidence_interval = None
    if options.confidence_level is not None:
        # Prediction interval of a simple regression
        residuals = values - fitted
        se = float(np.sqrt(np.sum(residuals ** 2) / (n - 2))) if n > 2 else 0.0
        x_mean = x.mean()
        sxx = float(np.sum((x - x_mean) ** 2))
        margins = _z_value(options.confidence_level) * se * np.sqrt(
            1 + 1 / n + (future_x - x_mean) ** 2 / sxx
        )
        confidence_interval = _interval(options, dates, predictions, margins)

    return ForecastResult(
        forecast=_records(options, dates, predictions),
        model=ForecastModel.LINEAR,
        confidence_interval=confidence_interval,
        metrics=metrics,
    )


# ===========================================
# Holt-Winters (additive)
# ===========================================

def holt_winters_season_length(n: int, config: ForecastConfig = None) -> int:
    """Season length for a series of ``n`` points; 0 disables seasonality."""
    config = config or DEFAULT_FORECAST_CONFIG
    if n >= config.monthly_min_points:
        return config.monthly_season_length
    if n >= config.weekly_min_points:
        return config.weekly_season_length
    return 0


def initial_holt_winters_state(values: np.ndarray, season_length: int) -> HoltWintersState:
    """Level from the first point, trend from the first step, seasonal offsets from the first season."""
    first_season = values[:season_length]
    season_mean = first_season.mean()
    return HoltWintersState(
        level=float(values[0]),
        trend=float(values[1] - values[0]),
        seasonal=tuple(float(v - season_mean) for v in first_season),
    )


def holt_winters_step(
    state: HoltWintersState,
    observation: Tuple[int, float],
    config: ForecastConfig = None
) -> HoltWintersState:
    """
    Apply one additive Holt-Winters update.

    Args:
        state: State before the observation
        observation: (row index, value) pair
        config: Provides the alpha/beta/gamma smoothing constants

    Returns:
        New state; the input state is left untouched
    """
    config = config or DEFAULT_FORECAST_CONFIG
    index, value = observation
    phase = index % state.season_length
    seasonal = state.seasonal[phase]

    level = config.alpha * (value - seasonal) + (1 - config.alpha) * (state.level + state.trend)
    trend = config.beta * (level - state.level) + (1 - config.beta) * state.trend
    updated = config.gamma * (value - level) + (1 - config.gamma) * seasonal

    return HoltWintersState(
        level=level,
        trend=trend,
        seasonal=state.seasonal[:phase] + (updated,) + state.seasonal[phase + 1:],
    )


def _forecast_holt_winters(
    dataset: Dataset,
    values: np.ndarray,
    options: ForecastOptions,
    config: ForecastConfig
) -> ForecastResult:
    n = len(values)
    season_length = holt_winters_season_length(n, config)
    if season_length == 0 or n < 2 * season_length:
        logger.debug("Holt-Winters needs more history than %d points, falling back to linear", n)
        return _forecast_linear(dataset, values, options, config)

    initial = initial_holt_winters_state(values, season_length)
    step = partial(holt_winters_step, config=config)
    states = list(accumulate(enumerate(float(v) for v in values), step, initial=initial))
    final = states[-1]

    # One-step-ahead fit: the state before each observation predicts it
    fitted = np.array([states[i].predict(1, i) for i in range(n)])
    predictions = np.array([
        final.predict(h, n + h - 1) for h in range(1, options.periods + 1)
    ])
    dates = _future_dates(dataset, options.date_column, options.periods)

    metrics = _fit_metrics(values, fitted)
    metrics["season_length"] = season_length

    confidence_interval = None
    if options.confidence_level is not None:
        margins = _seasonal_margins(values - fitted, options.confidence_level, options.periods)
        confidence_interval = _interval(options, dates, predictions, margins)

    return ForecastResult(
        forecast=_records(options, dates, predictions),
        model=ForecastModel.EXPONENTIAL_SMOOTHING,
        confidence_interval=confidence_interval,
        metrics=metrics,
    )


# ===========================================
# Trend + seasonal decomposition
# ===========================================

def decomposition_season_length(n: int, config: ForecastConfig = None) -> int:
    config = config or DEFAULT_FORECAST_CONFIG
    if n > config.decomposition_long_series:
        return max(config.decomposition_min_season, n // 4)
    return config.decomposition_min_season


def seasonal_pattern(residuals: np.ndarray, season_length: int) -> np.ndarray:
    """Mean residual per phase; phases without observations are 0."""
    pattern = np.zeros(season_length)
    for phase in range(season_length):
        members = residuals[phase::season_length]
        if len(members):
            pattern[phase] = members.mean()
    return pattern


def _forecast_decomposition(
    dataset: Dataset,
    values: np.ndarray,
    options: ForecastOptions,
    config: ForecastConfig
) -> ForecastResult:
    n = len(values)
    if n < 2:
        return ForecastResult(forecast=[], model=ForecastModel.DECOMPOSITION)

    trend = fit_linear_trend(values)
    x = np.arange(n)
    detrended = values - trend.at(x.astype(float))

    season_length = decomposition_season_length(n, config)
    pattern = seasonal_pattern(detrended, season_length)

    future_x = np.arange(n, n + options.periods)
    predictions = trend.at(future_x.astype(float)) + pattern[future_x % season_length]
    dates = _future_dates(dataset, options.date_column, options.periods)

    fitted = trend.at(x.astype(float)) + pattern[x % season_length]
    metrics = _fit_metrics(values, fitted)
    metrics.update({
        "slope": trend.slope,
        "intercept": trend.intercept,
        "season_length": season_length,
    })

    confidence_interval = None
    if options.confidence_level is not None:
        margins = _seasonal_margins(values - fitted, options.confidence_level, options.periods)
        confidence_interval = _interval(options, dates, predictions, margins)

    return ForecastResult(
        forecast=_records(options, dates, predictions),
        model=ForecastModel.DECOMPOSITION,
        confidence_interval=confidence_interval,
        metrics=metrics,
    )


# ===========================================
# Public API
# ===========================================

_ModelFn = Callable[[Dataset, np.ndarray, ForecastOptions, ForecastConfig], ForecastResult]

MODELS: Dict[ForecastModel, _ModelFn] = {
    ForecastModel.LINEAR: _forecast_linear,
    ForecastModel.EXPONENTIAL_SMOOTHING: _forecast_holt_winters,
    ForecastModel.DECOMPOSITION: _forecast_decomposition,
}


def _run(model: ForecastModel, dataset: Dataset, options: ForecastOptions, config: ForecastConfig):
    values = numeric_column(dataset, options.value_column)
    return MODELS[model](dataset, values, options, config or DEFAULT_FORECAST_CONFIG)


def forecast(
    dataset: Dataset,
    options: ForecastOptions,
    config: ForecastConfig = None
) -> ForecastResult:
    """
    Forecast ``options.periods`` future points of the value column.

    Rows are taken in order as the time sequence. Non-numeric values count
    as 0 and fewer than two rows yield an empty forecast.

    Args:
        dataset: Ordered rows
        options: Columns, horizon, model and optional confidence level
        config: Smoothing constants and season heuristics

    Returns:
        ForecastResult with one record per future period
    """
    logger.debug(
        "Forecasting %d periods of '%s' over %d rows with %s",
        options.periods, options.value_column, len(dataset), options.model.value,
    )
    return _run(options.model, dataset, options, config)


def linear_forecast(dataset: Dataset, options: ForecastOptions, config: ForecastConfig = None) -> ForecastResult:
    """Forecast with the linear trend model regardless of ``options.model``."""
    return _run(ForecastModel.LINEAR, dataset, options, config)


def holt_winters_forecast(dataset: Dataset, options: ForecastOptions, config: ForecastConfig = None) -> ForecastResult:
    """Forecast with Holt-Winters regardless of ``options.model``."""
    return _run(ForecastModel.EXPONENTIAL_SMOOTHING, dataset, options, config)


def decomposition_forecast(dataset: Dataset, options: ForecastOptions, config: ForecastConfig = None) -> ForecastResult:
    """Forecast with the decomposition model regardless of ``options.model``."""
    return _run(ForecastModel.DECOMPOSITION, dataset, options, config)
