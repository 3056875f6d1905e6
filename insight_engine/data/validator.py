"""
Request validation for the engine boundary.
Checks datasets and options before they reach the analytics core.
"""
import numbers
from typing import Any, Dict, List, Optional, Sequence

from insight_engine.data.ingestion import Dataset, column_names
from insight_engine.utils.exceptions import (
    DataValidationError,
    DatasetTooLargeError,
    MissingDataError,
)


def validate_dataset(data: Any, max_rows: Optional[int] = None) -> Dataset:
    """
    Validate that data is a non-empty sequence of records.

    Args:
        data: Raw ``data`` payload
        max_rows: Upper bound on the row count (optional)

    Returns:
        The dataset, unchanged

    Raises:
        MissingDataError: If the dataset is absent or empty
        DataValidationError: If it is not a sequence of mappings
        DatasetTooLargeError: If it exceeds ``max_rows``
    """
    if data is None:
        raise MissingDataError("data")
    if not isinstance(data, (list, tuple)):
        raise DataValidationError("data", "Data must be an array of rows.", type(data).__name__)
    if len(data) == 0:
        raise MissingDataError("data")
    if max_rows is not None and len(data) > max_rows:
        raise DatasetTooLargeError(len(data), max_rows)

    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise DataValidationError(
                "data", f"Row {index} is not an object.", type(record).__name__
            )
    return data


def require_columns(data: Dataset, columns: Sequence[str]) -> None:
    """Raise MissingDataError if any column is absent from every row."""
    present = set(column_names(data))
    missing = [column for column in columns if column not in present]
    if missing:
        raise MissingDataError("columns", required_columns=missing)


def require_string(payload: Dict[str, Any], key: str) -> str:
    """Fetch a required non-empty string field."""
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise DataValidationError(key, f"'{key}' is required.", value)
    return value


def require_positive_int(payload: Dict[str, Any], key: str, default: int = None) -> int:
    """Fetch a positive integer field, falling back to ``default`` when absent."""
    value = payload.get(key)
    if value is None:
        if default is None:
            raise DataValidationError(key, f"'{key}' is required.")
        return default
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise DataValidationError(key, f"'{key}' must be a positive integer.", value)
    return int(value)


def optional_fraction(payload: Dict[str, Any], key: str) -> Optional[float]:
    """Fetch an optional number strictly between 0 and 1."""
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not 0 < value < 1:
        raise DataValidationError(key, f"'{key}' must be between 0 and 1.", value)
    return float(value)


def optional_positive_number(payload: Dict[str, Any], key: str) -> Optional[float]:
    """Fetch an optional number greater than zero."""
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not value > 0:
        raise DataValidationError(key, f"'{key}' must be a positive number.", value)
    return float(value)


def require_string_list(payload: Dict[str, Any], key: str) -> List[str]:
    """Fetch a non-empty list of distinct column names, keeping order."""
    value = payload.get(key)
    if not isinstance(value, list) or not value:
        raise DataValidationError(key, f"'{key}' must be a non-empty array.", value)
    if not all(isinstance(item, str) and item for item in value):
        raise DataValidationError(key, f"'{key}' must contain column names.", value)
    return list(dict.fromkeys(value))


def optional_seed(payload: Dict[str, Any], key: str) -> Optional[int]:
    """Fetch an optional non-negative integer random seed."""
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 0:
        raise DataValidationError(key, f"'{key}' must be a non-negative integer.", value)
    return int(value)
