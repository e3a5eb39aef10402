"""
REST API for percentile calculation.

Exposes:
- POST /calculate: percentile over a JSON array of values
- POST /calculate/file: percentile over an uploaded JSON or CSV file
- Health checks
- OpenAPI documentation at /docs

Security Features:
- Input validation via Pydantic schemas
- Request body size ceiling
- CORS configuration
- Clear error messages (every calculation error is an HTTP 400)
"""

import logging
import math
import time
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from outlier.api.health import router as health_router
from outlier.core.ingest import ingest_file
from outlier.core.percentile import summarize
from outlier.framework.errors import MalformedInputError, OutlierError, from_outlier_error
from outlier.server.config import Config
from outlier.server.schemas import (
    CalculateRequest,
    CalculateResponse,
    ErrorResponse,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from outlier.version import get_version

logger = logging.getLogger(__name__)


# =============================================================================
# Middleware
# =============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status, latency, client and path."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000

        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        client = request.client.host if request.client else "-"

        logger.info(
            "%d %.2fms %s %s %s",
            response.status_code,
            latency_ms,
            client,
            request.method,
            path,
            extra={
                "status": response.status_code,
                "latency_ms": round(latency_ms, 3),
                "client": client,
                "method": request.method,
                "path": path,
            },
        )
        return response


class BodySizeLimitMiddleware:
    """Reject request bodies larger than the configured ceiling.

    A declared Content-Length is checked before the app runs. Every body,
    chunked ones included, is also counted as it is received; crossing the
    ceiling mid-stream raises a 413 HTTPException out of the body read.

    Plain ASGI rather than BaseHTTPMiddleware, which cannot observe the body
    without consuming it.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    def _too_large_message(self) -> str:
        return f"Request body exceeds the limit of {self.max_body_bytes} bytes"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                response = ErrorResponse(
                    error=f"HTTP {status.HTTP_400_BAD_REQUEST}",
                    message="Invalid Content-Length header",
                )
                await JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST, content=response.model_dump()
                )(scope, receive, send)
                return
            if size > self.max_body_bytes:
                logger.warning(
                    "Rejected %s %s: body of %d bytes exceeds limit of %d",
                    request.method,
                    request.url.path,
                    size,
                    self.max_body_bytes,
                )
                response = ErrorResponse(
                    error=f"HTTP {status.HTTP_413_REQUEST_ENTITY_TOO_LARGE}",
                    message=self._too_large_message(),
                )
                await JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content=response.model_dump(),
                )(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    # FastAPI re-raises HTTPException from body parsing untouched
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=self._too_large_message(),
                    )
            return message

        await self.app(scope, limited_receive, send)


# =============================================================================
# Exception Handlers
# =============================================================================


async def outlier_exception_handler(request: Request, exc: OutlierError) -> Any:
    """Map calculation and ingestion errors to HTTP 400."""
    logger.warning(
        "Calculation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"error_code": exc.code.value},
    )
    response = ErrorResponse(**from_outlier_error(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=response.model_dump())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> Any:
    """Handle Pydantic validation errors with detailed messages.

    Returns HTTP 400 with validation error details.
    """
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        "; ".join(f"{e.field}: {e.message}" for e in errors),
    )

    response = ValidationErrorResponse(message="Invalid request", details=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=response.model_dump())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Any:
    """Handle HTTP exceptions with consistent error format."""
    logger.warning(
        "HTTP error on %s %s: %s - %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.detail,
    )
    response = ErrorResponse(error=f"HTTP {exc.status_code}", message=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=response.model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Any:
    """Handle unexpected errors with safe error messages.

    Returns HTTP 500 without exposing internal details.
    """
    logger.exception("Unexpected error on %s %s: %s", request.method, request.url.path, exc)

    response = ErrorResponse(
        error="Internal Server Error",
        message="An unexpected error occurred. Please try again later.",
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=response.model_dump()
    )


# =============================================================================
# Helpers
# =============================================================================


def _get_config(request: Request) -> Config:
    return request.app.state.config


def _resolve_form_percentile(raw: str | None, default: float) -> float:
    """Parse the optional multipart percentile field; blank means default."""
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        msg = f"Invalid percentile value: {raw}"
        raise MalformedInputError(msg, token=raw) from e
    if not math.isfinite(value):
        msg = f"Invalid percentile value: {raw}"
        raise MalformedInputError(msg, token=raw)
    return value


# =============================================================================
# Application Factory
# =============================================================================


def create_app(config: Config | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Loaded configuration (defaults when None)

    Returns:
        Configured FastAPI app
    """
    config = config or Config()

    app = FastAPI(
        title="Outlier API",
        description="A percentile calculator with CLI and HTTP API",
        version=get_version(),
    )
    app.state.config = config

    # Last added runs first: logging wraps CORS wraps the body limit
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=config.server.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(OutlierError, outlier_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)

    @app.post(
        "/calculate",
        response_model=CalculateResponse,
        responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
        tags=["calculate"],
    )
    def calculate(payload: CalculateRequest, request: Request) -> dict[str, Any]:
        """Calculate a percentile from an array of values using linear interpolation.

        The configured default percentile (95 unless changed) applies when the
        request omits one. An explicit 0 is honoured.
        """
        percentile = payload.percentile
        if percentile is None:
            percentile = _get_config(request).calculation.default_percentile

        summary = summarize(payload.values, percentile)
        logger.debug(
            "Calculated P%g over %d values",
            summary.percentile,
            summary.count,
            extra={"count": summary.count, "percentile": summary.percentile},
        )
        return summary.to_dict()

    @app.post(
        "/calculate/file",
        response_model=CalculateResponse,
        responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
        tags=["calculate"],
    )
    async def calculate_file(
        request: Request,
        file: UploadFile = File(..., description="Data file (JSON or CSV)"),
        percentile: str | None = Form(None, description="Percentile to calculate (default: 95)"),
    ) -> dict[str, Any]:
        """Upload a JSON or CSV file and calculate a percentile over its values."""
        config = _get_config(request)

        # Bounded by BodySizeLimitMiddleware, which counts the whole multipart body
        data = await file.read()
        values = await run_in_threadpool(ingest_file, file.filename or "", data)
        percentile_value = _resolve_form_percentile(
            percentile, config.calculation.default_percentile
        )

        summary = await run_in_threadpool(summarize, values, percentile_value)
        logger.debug(
            "Calculated P%g over %d values from %s",
            summary.percentile,
            summary.count,
            file.filename,
            extra={"count": summary.count, "percentile": summary.percentile},
        )
        return summary.to_dict()

    return app


__all__ = ["BodySizeLimitMiddleware", "RequestLoggingMiddleware", "create_app"]
