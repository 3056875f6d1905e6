"""Data ingestion and request validation modules."""
from .ingestion import (
    CellKind,
    Coercion,
    classify_cell,
    coerce_number,
    to_number,
    numeric_column,
    feature_matrix,
    parse_timestamp,
    format_timestamp,
)

__all__ = [
    "CellKind",
    "Coercion",
    "classify_cell",
    "coerce_number",
    "to_number",
    "numeric_column",
    "feature_matrix",
    "parse_timestamp",
    "format_timestamp",
]
