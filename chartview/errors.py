from __future__ import annotations


class ChartError(Exception):
    pass


class ChartConfigError(ChartError, ValueError):
    """Raised when declarative chart options cannot be interpreted."""


class ChartUsageError(ChartError, RuntimeError):
    """Raised when a View is used outside of its lifecycle (e.g. after destroy)."""
