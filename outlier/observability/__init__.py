"""Logging setup for the CLI and HTTP server."""

from .logging import JSONFormatter, configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
