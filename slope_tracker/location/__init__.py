"""Location processing: smoothing, quality, accuracy tiers and speed fusion."""

from .accuracy import AccuracySelector
from .noise_filter import AdaptiveNoiseFilter, NoiseFilter
from .processor import ReadingProcessor, ReadingValidation, ValidationFailure
from .quality import GPSQuality, QualityMonitor
from .speed import SpeedFuser

__all__ = [
    "AccuracySelector",
    "AdaptiveNoiseFilter",
    "GPSQuality",
    "NoiseFilter",
    "QualityMonitor",
    "ReadingProcessor",
    "ReadingValidation",
    "SpeedFuser",
    "ValidationFailure",
]
