"""Central error types used across the application."""

from __future__ import annotations


class SlopeTrackerError(RuntimeError):
    """Base error for the slope tracker package."""


class ConfigurationError(SlopeTrackerError, ValueError):
    """Raised when a tuning structure holds impossible values or an unknown preset."""


class ReadingsFormatError(SlopeTrackerError):
    """Raised when a recorded readings file is missing columns or cannot be parsed."""


__all__ = [
    "ConfigurationError",
    "ReadingsFormatError",
    "SlopeTrackerError",
]
