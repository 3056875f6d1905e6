"""Tests for boundary-side request validation."""
import pytest

from insight_engine.data import validator
from insight_engine.utils.exceptions import (
    DataValidationError,
    DatasetTooLargeError,
    MissingDataError,
)


class TestDataset:

    def test_accepts_list_of_rows(self):
        rows = [{"a": 1}]
        assert validator.validate_dataset(rows) is rows

    @pytest.mark.parametrize("data", [None, []])
    def test_missing_or_empty(self, data):
        with pytest.raises(MissingDataError):
            validator.validate_dataset(data)

    @pytest.mark.parametrize("data", ["rows", {"a": 1}, [1, 2]])
    def test_wrong_shape(self, data):
        with pytest.raises(DataValidationError):
            validator.validate_dataset(data)

    def test_row_limit(self):
        with pytest.raises(DatasetTooLargeError) as exc_info:
            validator.validate_dataset([{}] * 5, max_rows=4)
        assert exc_info.value.details == {"row_count": 5, "max_rows": 4}


def test_require_columns_reports_missing():
    with pytest.raises(MissingDataError) as exc_info:
        validator.require_columns([{"a": 1}, {"b": 2}], ["a", "b", "c"])
    assert exc_info.value.details["required_columns"] == ["c"]


@pytest.mark.parametrize("value", [None, 0, -2, 1.5, True, "3"])
def test_require_positive_int_rejects(value):
    with pytest.raises(DataValidationError):
        validator.require_positive_int({"periods": value}, "periods")


def test_require_positive_int_default():
    assert validator.require_positive_int({}, "maxIterations", 50) == 50
    assert validator.require_positive_int({"maxIterations": 7}, "maxIterations", 50) == 7


@pytest.mark.parametrize("value", [0, 1, 1.2, -0.5, "0.9"])
def test_optional_fraction_rejects(value):
    with pytest.raises(DataValidationError):
        validator.optional_fraction({"confidenceLevel": value}, "confidenceLevel")


def test_optional_fraction():
    assert validator.optional_fraction({}, "confidenceLevel") is None
    assert validator.optional_fraction({"confidenceLevel": 0.95}, "confidenceLevel") == 0.95


def test_string_list_deduplicates_in_order():
    assert validator.require_string_list({"features": ["b", "a", "b"]}, "features") == ["b", "a"]


@pytest.mark.parametrize("value", [None, [], "a", ["a", 1], [""]])
def test_string_list_rejects(value):
    with pytest.raises(DataValidationError):
        validator.require_string_list({"features": value}, "features")


def test_optional_seed():
    assert validator.optional_seed({}, "seed") is None
    assert validator.optional_seed({"seed": 0}, "seed") == 0
    with pytest.raises(DataValidationError):
        validator.optional_seed({"seed": -1}, "seed")


def test_error_to_dict():
    error = DataValidationError("k", "'k' must be a positive integer.", 0)
    assert error.to_dict() == {
        "error_code": "DATA_VALIDATION_ERROR",
        "message": "Data validation failed for field: k",
        "user_message": "Invalid data: 'k' must be a positive integer.",
        "details": {"field": "k", "reason": "'k' must be a positive integer.", "value": "0"},
    }
