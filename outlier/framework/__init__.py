"""Shared framework pieces used by the core and its callers."""

from . import errors

__all__ = ["errors"]
