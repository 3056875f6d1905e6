"""
Anomaly Detector.
Flags outlying values of a numeric column with a z-score or IQR fence test.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from insight_engine.data.ingestion import Dataset, numeric_column
from insight_engine.utils.config import DEFAULT_ANOMALY_CONFIG, AnomalyConfig

logger = logging.getLogger(__name__)


class AnomalyMethod(Enum):
    """Outlier tests."""
    Z_SCORE = "z-score"
    IQR = "iqr"

    @classmethod
    def from_value(cls, value: Any) -> "AnomalyMethod":
        """Resolve a method name; unknown or missing names select IQR."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            if name in ("zscore", "z_score"):
                return cls.Z_SCORE
            try:
                return cls(name)
            except ValueError:
                pass
        logger.debug("Unrecognized anomaly method %r, using iqr", value)
        return cls.IQR


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class AnomalyOptions:
    """Options for an anomaly detection request."""
    value_column: str
    method: AnomalyMethod = AnomalyMethod.IQR
    sensitivity: Optional[float] = None

    def __post_init__(self):
        self.method = AnomalyMethod.from_value(self.method)


@dataclass
class AnomalyResult:
    """Classification of a single row."""
    index: int
    value: float
    is_anomaly: bool
    score: float
    lower_bound: float
    upper_bound: float
    severity: Optional[Severity] = None

    @property
    def label(self) -> str:
        if self.is_anomaly and self.value > self.upper_bound:
            return "spike"
        if self.is_anomaly and self.value < self.lower_bound:
            return "dip"
        return "normal"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "value": self.value,
            "isAnomaly": self.is_anomaly,
            "score": self.score,
            "lowerBound": self.lower_bound,
            "upperBound": self.upper_bound,
            "severity": self.severity.value if self.severity else None,
            "label": self.label,
        }


def grade_severity(ratio: float, config: AnomalyConfig = None) -> Severity:
    """Grade an anomaly by how far its score exceeds the threshold."""
    config = config or DEFAULT_ANOMALY_CONFIG
    if ratio > config.high_ratio:
        return Severity.HIGH
    if ratio > config.medium_ratio:
        return Severity.MEDIUM
    return Severity.LOW


def _tuning(sensitivity: Optional[float]) -> Optional[float]:
    """A usable sensitivity, or None when absent or non-positive."""
    if sensitivity is None or not sensitivity > 0:
        return None
    return float(sensitivity)


def z_score_threshold(sensitivity: Optional[float] = None, config: AnomalyConfig = None) -> float:
    """Threshold in standard deviations; higher sensitivity lowers it."""
    config = config or DEFAULT_ANOMALY_CONFIG
    factor = _tuning(sensitivity)
    return config.z_threshold / factor if factor else config.z_threshold


def iqr_multiplier(sensitivity: Optional[float] = None, config: AnomalyConfig = None) -> float:
    """Fence multiplier; the sensitivity replaces the default when given."""
    config = config or DEFAULT_ANOMALY_CONFIG
    return _tuning(sensitivity) or config.iqr_multiplier


def quartiles(values: np.ndarray) -> Tuple[float, float]:
    """First and third quartile with linear interpolation between ranks."""
    q1, q3 = np.percentile(np.sort(values), [25, 75])
    return float(q1), float(q3)


def _detect_z_score(
    values: np.ndarray,
    sensitivity: Optional[float],
    config: AnomalyConfig
) -> List[AnomalyResult]:
    threshold = z_score_threshold(sensitivity, config)
    mean = float(values.mean())
    # Constant series: zero spread even if the mean picks up rounding error
    std = float(values.std()) if values.max() > values.min() else 0.0
    lower, upper = mean - threshold * std, mean + threshold * std

    results = []
    for index, value in enumerate(values):
        score = abs(value - mean) / std if std > 0 else 0.0
        is_anomaly = std > 0 and score > threshold
        results.append(AnomalyResult(
            index=index,
            value=float(value),
            is_anomaly=bool(is_anomaly),
            score=float(score),
            lower_bound=lower,
            upper_bound=upper,
            severity=grade_severity(score / threshold, config) if is_anomaly else None,
        ))
    return results


def _detect_iqr(
    values: np.ndarray,
    sensitivity: Optional[float],
    config: AnomalyConfig
) -> List[AnomalyResult]:
    multiplier = iqr_multiplier(sensitivity, config)
    q1, q3 = quartiles(values)
    iqr = q3 - q1
    lower, upper = q1 - multiplier * iqr, q3 + multiplier * iqr

    results = []
    for index, value in enumerate(values):
        # Distance beyond the nearest quartile, in IQR units
        distance = max(q1 - value, value - q3, 0.0)
        score = distance / iqr if iqr > 0 else distance
        is_anomaly = value < lower or value > upper
        results.append(AnomalyResult(
            index=index,
            value=float(value),
            is_anomaly=bool(is_anomaly),
            score=float(score),
            lower_bound=lower,
            upper_bound=upper,
            severity=grade_severity(score / multiplier, config) if is_anomaly else None,
        ))
    return results


_MethodFn = Callable[[np.ndarray, Optional[float], AnomalyConfig], List[AnomalyResult]]

METHODS: Dict[AnomalyMethod, _MethodFn] = {
    AnomalyMethod.Z_SCORE: _detect_z_score,
    AnomalyMethod.IQR: _detect_iqr,
}


def detect(
    dataset: Dataset,
    options: AnomalyOptions,
    config: AnomalyConfig = None
) -> List[AnomalyResult]:
    """
    Classify every row of the value column as normal or anomalous.

    Results follow the input row order. An empty dataset gives an empty
    list and a constant column never produces anomalies.
    """
    if len(dataset) == 0:
        return []

    values = numeric_column(dataset, options.value_column)
    results = METHODS[options.method](values, options.sensitivity, config or DEFAULT_ANOMALY_CONFIG)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "%s flagged %d of %d rows in '%s'",
            options.method.value, sum(r.is_anomaly for r in results), len(results), options.value_column,
        )
    return results
