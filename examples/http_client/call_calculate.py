#!/usr/bin/env python3
"""Example script for calling the outlier HTTP API.

This demonstrates how to compute percentiles programmatically using the
Python requests library, both from inline values and from an uploaded file.

Usage:
    python call_calculate.py [path/to/data.csv]

Prerequisites:
    pip install "outlier[examples]"

Note:
    Make sure the HTTP server is running:
    outlier serve --port 3000
"""

import os
import sys
from pathlib import Path
from typing import Any

import requests

# API configuration
API_BASE_URL = os.getenv("OUTLIER_API_URL", "http://localhost:3000")
API_TIMEOUT = 30  # seconds


def check_health() -> dict[str, Any]:
    """Check service health.

    Returns:
        Health check response
    """
    response = requests.get(f"{API_BASE_URL}/health", timeout=5)
    response.raise_for_status()
    return response.json()


def calculate(values: list[float], percentile: float | None = None) -> dict[str, Any]:
    """Calculate a percentile from inline values.

    Args:
        values: Observations
        percentile: Percentile to calculate; the server default applies when None

    Returns:
        Response with count, percentile and result
    """
    payload: dict[str, Any] = {"values": values}
    if percentile is not None:
        payload["percentile"] = percentile

    response = requests.post(f"{API_BASE_URL}/calculate", json=payload, timeout=API_TIMEOUT)
    if response.status_code == 400:  # noqa: PLR2004
        print(f"Rejected: {response.json()['message']}", file=sys.stderr)
        sys.exit(1)
    response.raise_for_status()
    return response.json()


def calculate_file(path: Path, percentile: float | None = None) -> dict[str, Any]:
    """Upload a JSON or CSV file and calculate a percentile.

    Args:
        path: File to upload (.json or .csv)
        percentile: Percentile to calculate; the server default applies when None

    Returns:
        Response with count, percentile and result
    """
    data = {"percentile": str(percentile)} if percentile is not None else {}
    with open(path, "rb") as f:
        response = requests.post(
            f"{API_BASE_URL}/calculate/file",
            files={"file": (path.name, f)},
            data=data,
            timeout=API_TIMEOUT,
        )
    if response.status_code in {400, 413}:
        print(f"Rejected: {response.json()['message']}", file=sys.stderr)
        sys.exit(1)
    response.raise_for_status()
    return response.json()


def main() -> None:
    """Main example demonstrating HTTP API usage."""
    try:
        health = check_health()
        print(f"Connected to {health['service']} {health['version']}")

        result = calculate(list(range(1, 11)), percentile=95)
        print(f"P{result['percentile']:g} of 1..10 = {result['result']:.2f}")

        if len(sys.argv) > 1:
            path = Path(sys.argv[1])
            result = calculate_file(path)
            print(
                f"P{result['percentile']:g} of {result['count']} values "
                f"in {path.name} = {result['result']:.2f}"
            )

    except requests.exceptions.ConnectionError:
        print(f"Cannot reach {API_BASE_URL}; is the server running?", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.Timeout:
        print("Request timed out", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.HTTPError as e:
        print(f"HTTP error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
