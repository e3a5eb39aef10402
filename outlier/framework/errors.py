"""
Error taxonomy for percentile calculation and value ingestion.

Every failure the core can produce is one of a small, closed set of typed
exceptions. Callers map them to user-facing output: the CLI prints the message
and exits non-zero, the HTTP API answers with a 400 body built from
``to_dict()``.

Key features:
- Error code enum (avoid typos)
- Pydantic model for structured error details
- Boundary translation into the wire format
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Error Codes
# ============================================================================


class ErrorCode(str, Enum):
    """Enumeration of all error codes in the system."""

    # Engine errors
    EMPTY_INPUT = "EMPTY_INPUT"
    OUT_OF_RANGE = "OUT_OF_RANGE"

    # Ingestion errors
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    MISSING_COLUMN = "MISSING_COLUMN"


# ============================================================================
# Pydantic Error Models
# ============================================================================


class ErrorDetails(BaseModel):
    """Structured error details for serialization."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: ErrorCode = Field(..., description="Error code enum")
    message: str = Field(..., description="Human-readable error message")
    context: dict[str, Any] = Field(default_factory=dict, description="Additional context")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode="json")


# ============================================================================
# Base Exception Class
# ============================================================================


class OutlierError(Exception):
    """Base class for all caller-visible calculation errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_details(self) -> ErrorDetails:
        """Convert to structured ErrorDetails."""
        return ErrorDetails(code=self.code, message=self.message, context=self.details)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "error": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Engine Errors
# ============================================================================


class EmptyInputError(OutlierError):
    """No observations were supplied."""

    def __init__(self, message: str = "cannot calculate percentile of empty dataset") -> None:
        super().__init__(message, ErrorCode.EMPTY_INPUT)


class OutOfRangeError(OutlierError):
    """Requested percentile lies outside [0, 100]."""

    def __init__(self, percentile: float) -> None:
        super().__init__(
            f"percentile must be between 0 and 100, got {percentile:.2f}",
            ErrorCode.OUT_OF_RANGE,
            {"percentile": percentile},
        )
        self.percentile = percentile


# ============================================================================
# Ingestion Errors
# ============================================================================


class UnsupportedFormatError(OutlierError):
    """Source extension is neither .json nor .csv."""

    def __init__(self, extension: str) -> None:
        super().__init__(
            f"unsupported file format: {extension or '<none>'} (supported: .json, .csv)",
            ErrorCode.UNSUPPORTED_FORMAT,
            {"extension": extension},
        )
        self.extension = extension


class MalformedInputError(OutlierError):
    """Input could not be decoded, or a cell is not a finite number."""

    def __init__(self, message: str, token: str | None = None) -> None:
        details = {}
        if token is not None:
            details["token"] = token
        super().__init__(message, ErrorCode.MALFORMED_INPUT, details)
        self.token = token


class MissingColumnError(OutlierError):
    """CSV header has no ``value`` column."""

    def __init__(self, column: str, header: list[str] | None = None) -> None:
        details: dict[str, Any] = {"column": column}
        if header is not None:
            details["header"] = header
        super().__init__(
            f"CSV file must have a '{column}' column", ErrorCode.MISSING_COLUMN, details
        )
        self.column = column


# ============================================================================
# Boundary Translation Functions
# ============================================================================


def from_outlier_error(error: OutlierError) -> dict[str, Any]:
    """
    Convert OutlierError to wire format for transport layers.

    Args:
        error: OutlierError instance

    Returns:
        Dictionary representation for JSON serialization
    """
    return error.to_dict()


__all__ = [
    "EmptyInputError",
    "ErrorCode",
    "ErrorDetails",
    "MalformedInputError",
    "MissingColumnError",
    "OutOfRangeError",
    "OutlierError",
    "UnsupportedFormatError",
    "from_outlier_error",
]
