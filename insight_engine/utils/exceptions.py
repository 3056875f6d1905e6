"""
Custom exceptions for the Insight Engine analytics core.
Provides structured error handling with user-friendly messages.
"""
from typing import Optional, Dict, Any


class InsightEngineError(Exception):
    """Base exception for all engine errors."""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        user_message: str = None
    ):
        self.message = message
        self.error_code = error_code or "UNKNOWN_ERROR"
        self.details = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details
        }


# ===========================================
# Data Errors
# ===========================================

class DataError(InsightEngineError):
    """Data related errors."""
    pass


class DataValidationError(DataError):
    """Request data or options failed validation."""

    def __init__(self, field: str = None, reason: str = None, value: Any = None):
        super().__init__(
            message=f"Data validation failed for field: {field}",
            error_code="DATA_VALIDATION_ERROR",
            user_message=f"Invalid data: {reason or 'Please check your input.'}",
            details={"field": field, "reason": reason, "value": str(value) if value is not None else None}
        )


class MissingDataError(DataError):
    """Dataset is empty or required columns are missing."""

    def __init__(self, data_type: str, required_columns: list = None):
        super().__init__(
            message=f"Missing required data: {data_type}",
            error_code="DATA_MISSING",
            user_message=f"Required data is missing: {data_type}.",
            details={"data_type": data_type, "required_columns": required_columns}
        )


class DatasetTooLargeError(DataError):
    """Dataset exceeds the configured row limit."""

    def __init__(self, row_count: int, max_rows: int):
        super().__init__(
            message=f"Dataset has {row_count} rows, limit is {max_rows}",
            error_code="DATA_TOO_LARGE",
            user_message=f"The dataset is too large. At most {max_rows} rows are supported.",
            details={"row_count": row_count, "max_rows": max_rows}
        )


# ===========================================
# Configuration Errors
# ===========================================

class ConfigurationError(InsightEngineError):
    """Configuration related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Invalid configuration value."""

    def __init__(self, config_key: str, value: Any = None, reason: str = None):
        super().__init__(
            message=f"Invalid configuration: {config_key}",
            error_code="CONFIG_INVALID",
            user_message=f"Invalid configuration value for {config_key}. {reason or ''}",
            details={"config_key": config_key, "value": str(value), "reason": reason}
        )


# ===========================================
# Analytics Errors
# ===========================================

class AnalyticsError(InsightEngineError):
    """Analytics computation errors."""
    pass


class ComputationError(AnalyticsError):
    """Unexpected failure while computing a result."""

    def __init__(self, operation: str, reason: str = None):
        super().__init__(
            message=f"Failed to compute {operation}: {reason}",
            error_code="COMPUTATION_ERROR",
            user_message=f"Failed to compute {operation}",
            details={"operation": operation, "reason": reason}
        )
