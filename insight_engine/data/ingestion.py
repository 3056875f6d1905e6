"""
Ingestion of raw result-set cells.
Classifies heterogeneous cell values and coerces them to numbers or timestamps.
"""
import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

DataRecord = Mapping[str, Any]
Dataset = Sequence[DataRecord]


class CellKind(Enum):
    """Kinds of values a result-set cell can hold."""
    NUMBER = "number"
    TEXT = "text"
    DATE_LIKE = "date_like"
    MISSING = "missing"


@dataclass(frozen=True)
class Coercion:
    """Outcome of coercing a cell to a number."""
    ok: bool
    value: float = 0.0
    reason: Optional[str] = None


def classify_cell(value: Any) -> CellKind:
    """Classify a raw cell value."""
    if value is None:
        return CellKind.MISSING
    if isinstance(value, (datetime, date, pd.Timestamp, np.datetime64)):
        return CellKind.DATE_LIKE
    if isinstance(value, numbers.Number):
        if isinstance(value, numbers.Real):
            try:
                if math.isnan(value):
                    return CellKind.MISSING
            except OverflowError:
                pass
        return CellKind.NUMBER
    return CellKind.TEXT


def coerce_number(value: Any) -> Coercion:
    """
    Coerce a cell to a finite float.

    Never raises. Numbers and numeric strings succeed; everything else
    fails with a reason.
    """
    kind = classify_cell(value)

    if kind is CellKind.NUMBER:
        if isinstance(value, numbers.Complex) and not isinstance(value, numbers.Real):
            return Coercion(ok=False, reason="complex number")
        try:
            number = float(value)
        except OverflowError:
            return Coercion(ok=False, reason="not finite")
    elif kind is CellKind.TEXT:
        if not isinstance(value, str):
            return Coercion(ok=False, reason=f"unsupported type {type(value).__name__}")
        text = value.strip()
        if not text:
            return Coercion(ok=False, reason="empty text")
        try:
            number = float(text)
        except ValueError:
            return Coercion(ok=False, reason=f"not a number: {value!r}")
    else:
        return Coercion(ok=False, reason=kind.value)

    if not math.isfinite(number):
        return Coercion(ok=False, reason="not finite")
    return Coercion(ok=True, value=number)


def to_number(value: Any) -> float:
    """Coerce a cell to a float, mapping failures to zero."""
    result = coerce_number(value)
    return result.value if result.ok else 0.0


def numeric_column(dataset: Dataset, column: str) -> np.ndarray:
    """Extract a column as a float array; absent keys read as zero."""
    return np.array([to_number(record.get(column)) for record in dataset], dtype=float)


def feature_matrix(dataset: Dataset, columns: Sequence[str]) -> np.ndarray:
    """Extract several columns as an (n_rows, n_columns) float array."""
    rows = [[to_number(record.get(column)) for column in columns] for record in dataset]
    return np.array(rows, dtype=float).reshape(len(rows), len(columns))


def parse_timestamp(value: Any) -> Optional[float]:
    """
    Parse a date-like cell to epoch milliseconds (UTC).

    Numbers are taken as epoch milliseconds. Naive datetimes are read as UTC.
    Returns None when the value cannot be parsed.
    """
    kind = classify_cell(value)
    if kind is CellKind.MISSING:
        return None
    if kind is CellKind.NUMBER:
        number = coerce_number(value)
        return number.value if number.ok else None

    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None

    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    else:
        ts = ts.tz_convert("UTC")
    return ts.value / 1e6


def format_timestamp(ms: Optional[float]) -> Optional[str]:
    """Format epoch milliseconds as ISO-8601 UTC, e.g. 2024-01-08T00:00:00.000Z."""
    if ms is None or not math.isfinite(ms):
        return None
    try:
        ts = pd.Timestamp(int(ms), unit="ms", tz="UTC")
    except (ValueError, OverflowError):
        return None
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def column_names(dataset: Dataset) -> List[str]:
    """Union of column names across records, in first-seen order."""
    seen: Dict[str, None] = {}
    for record in dataset:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)
