"""Request and response schemas for the outlier HTTP API.

Pydantic models validate request shape before anything reaches the
percentile engine:
- values must be a JSON array of finite numbers
- percentile, when given, must be a finite number (range is checked by the engine)
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat

# =============================================================================
# Calculation Schemas
# =============================================================================


class CalculateRequest(BaseModel):
    """Request schema for POST /calculate.

    Example:
        request = CalculateRequest(values=[1, 2, 3, 4, 5], percentile=50)
    """

    values: list[FiniteFloat] = Field(
        ...,
        description="Observations to compute the percentile over",
        examples=[[1.0, 2.0, 3.0, 4.0, 5.0]],
    )
    percentile: FiniteFloat | None = Field(
        default=None,
        description="Percentile to calculate (0-100); the server default applies when omitted",
        examples=[95.0],
    )


class CalculateResponse(BaseModel):
    """Response schema for percentile calculations."""

    count: int = Field(..., description="Number of observations")
    percentile: float = Field(..., description="Percentile actually used")
    result: float = Field(..., description="Interpolated percentile value")

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"count": 10, "percentile": 95.0, "result": 9.55}]}
    )


# =============================================================================
# Health Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Response schema for GET /health."""

    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


# =============================================================================
# Error Response Schemas
# =============================================================================


class ValidationErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Error message")
    type: str = Field(..., description="Error type")


class ValidationErrorResponse(BaseModel):
    """Response schema for request validation errors (HTTP 400)."""

    error: str = Field(default="VALIDATION_ERROR", description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: list[ValidationErrorDetail] = Field(
        default_factory=list, description="Detailed validation errors"
    )


class ErrorResponse(BaseModel):
    """Generic error response schema."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional context")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "OUT_OF_RANGE",
                    "message": "percentile must be between 0 and 100, got 101.00",
                    "details": {"percentile": 101.0},
                }
            ]
        }
    )


__all__ = [
    "CalculateRequest",
    "CalculateResponse",
    "ErrorResponse",
    "HealthResponse",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
]
