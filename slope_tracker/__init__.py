"""Slope tracker package: run detection from GPS reading streams."""

from .main import main
from .models import CleanedReading, FinalizedRun, RawReading, RoutePoint, SessionStats
from .errors import ConfigurationError, ReadingsFormatError, SlopeTrackerError
from .settings import TrackingConfiguration
from .tracker import TrackingPipeline, replay

__all__ = [
    "main",
    "CleanedReading",
    "ConfigurationError",
    "FinalizedRun",
    "RawReading",
    "ReadingsFormatError",
    "RoutePoint",
    "SessionStats",
    "SlopeTrackerError",
    "TrackingConfiguration",
    "TrackingPipeline",
    "replay",
]
