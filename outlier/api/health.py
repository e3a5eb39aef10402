"""Health endpoints for the outlier API."""

import os
import platform
import time
from datetime import datetime, timezone
from typing import Any

import psutil
from fastapi import APIRouter, Request

from outlier.server.schemas import HealthResponse
from outlier.version import get_full_version, get_version

SERVICE_NAME = "outlier"

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


@router.get("/health", response_model=HealthResponse)
def health() -> dict[str, Any]:
    """Liveness check."""
    return {"status": "healthy", "service": SERVICE_NAME, "version": get_version()}


@router.get("/health/detailed")
def detailed_health(request: Request) -> dict[str, Any]:
    """Health check including process resources and active limits."""
    config = request.app.state.config
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": get_full_version(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python": platform.python_version(),
        "process": check_process_health(),
        "limits": {
            "max_body_mb": config.server.max_body_mb,
            "default_percentile": config.calculation.default_percentile,
        },
    }


def check_process_health() -> dict[str, Any]:
    """Basic process statistics from psutil."""
    try:
        process = psutil.Process(os.getpid())
        with process.oneshot():
            memory = process.memory_info()
            return {
                "status": "up",
                "pid": process.pid,
                "memory_mb": round(memory.rss / 1024 / 1024, 2),
                "cpu_percent": process.cpu_percent(interval=None),
                "threads": process.num_threads(),
                "uptime_s": round(time.monotonic() - _started_at, 3),
            }
    except psutil.Error as exc:
        return {"status": "unknown", "error": str(exc)}
