"""Validation, per-axis smoothing and speed derivation for raw readings."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Deque, Optional, Tuple

from ..events import TrackingEvent
from ..geo import distance_3d_m
from ..models import AccuracyTier, CleanedReading, RawReading, SpeedSample, SpeedSource
from ..settings import (
    AdaptiveAccuracyConfig,
    AdaptiveNoiseConfig,
    GPSQualityConfig,
    HybridSpeedConfig,
    LocationFilteringConfig,
    SpeedSmoothingConfig,
    TrackingConfiguration,
)
from .accuracy import AccuracySelector
from .noise_filter import AdaptiveNoiseFilter, NoiseFilter
from .quality import GPSQuality, QualityMonitor
from .speed import SpeedFuser


class ValidationFailure(Enum):
    POOR_HORIZONTAL_ACCURACY = "Poor horizontal accuracy"
    POOR_VERTICAL_ACCURACY = "Poor vertical accuracy"
    STALE_TIMESTAMP = "Stale timestamp"
    NEGATIVE_ACCURACY = "Negative accuracy values"


@dataclass(frozen=True, slots=True)
class ReadingValidation:
    """Valid when ``reason`` is None, otherwise the first failed check."""

    reason: Optional[ValidationFailure] = None

    @property
    def is_valid(self) -> bool:
        return self.reason is None


VALID = ReadingValidation()


class ReadingProcessor:
    """Turns raw readings into cleaned readings and a smoothed speed signal.

    Owns one noise filter per axis plus the optional quality monitor, speed
    fuser and accuracy selector. Rejected readings never touch any of them.
    """

    def __init__(
        self,
        config: LocationFilteringConfig | None = None,
        speed_config: SpeedSmoothingConfig | None = None,
        *,
        accuracy_config: AdaptiveAccuracyConfig | None = None,
        hybrid_config: HybridSpeedConfig | None = None,
        quality_config: GPSQualityConfig | None = None,
        noise_config: AdaptiveNoiseConfig | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or LocationFilteringConfig()
        self.speed_config = speed_config or SpeedSmoothingConfig()
        self._log = logger or logging.getLogger(self.__class__.__name__)

        self._accuracy = (
            AccuracySelector(accuracy_config, logger=self._log)
            if accuracy_config is not None
            else None
        )
        self._fuser = (
            SpeedFuser(hybrid_config, logger=self._log)
            if hybrid_config is not None
            else None
        )
        self._quality = (
            QualityMonitor(quality_config, logger=self._log)
            if quality_config is not None
            else None
        )

        self._lat: NoiseFilter
        self._lon: NoiseFilter
        self._alt: NoiseFilter
        if noise_config is not None:
            self._lat = AdaptiveNoiseFilter(noise_config)
            self._lon = AdaptiveNoiseFilter(noise_config)
            self._alt = AdaptiveNoiseFilter(noise_config)
        else:
            self._lat = NoiseFilter()
            self._lon = NoiseFilter()
            self._alt = NoiseFilter()

        self._speed_history: Deque[SpeedSample] = deque(
            maxlen=self.speed_config.window_size
        )
        self._smoothed_speed = 0.0
        self._last_source: SpeedSource | None = None

    @classmethod
    def from_configuration(
        cls,
        configuration: TrackingConfiguration,
        logger: Optional[logging.Logger] = None,
    ) -> "ReadingProcessor":
        return cls(
            configuration.location_filtering,
            configuration.speed_smoothing,
            accuracy_config=configuration.adaptive_accuracy,
            hybrid_config=configuration.hybrid_speed,
            quality_config=configuration.gps_quality,
            noise_config=configuration.adaptive_noise,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Validation and smoothing
    # ------------------------------------------------------------------
    def validate(self, reading: RawReading, now: datetime) -> ReadingValidation:
        cfg = self.config
        if reading.horizontal_accuracy < 0:
            return self._rejected(
                ValidationFailure.NEGATIVE_ACCURACY, reading.horizontal_accuracy
            )
        if reading.horizontal_accuracy >= cfg.max_horizontal_accuracy:
            return self._rejected(
                ValidationFailure.POOR_HORIZONTAL_ACCURACY, reading.horizontal_accuracy
            )
        if reading.vertical_accuracy < 0:
            return self._rejected(
                ValidationFailure.NEGATIVE_ACCURACY, reading.vertical_accuracy
            )
        if reading.vertical_accuracy >= cfg.max_vertical_accuracy:
            return self._rejected(
                ValidationFailure.POOR_VERTICAL_ACCURACY, reading.vertical_accuracy
            )
        age = abs((now - reading.timestamp).total_seconds())
        if age >= cfg.max_location_age_s:
            return self._rejected(
                ValidationFailure.STALE_TIMESTAMP, reading.horizontal_accuracy
            )
        return VALID

    def process(
        self, reading: RawReading, now: datetime, current_speed: float = 0.0
    ) -> CleanedReading | None:
        """Return the smoothed reading, or None when validation fails."""

        if not self.validate(reading, now).is_valid:
            return None

        if self._quality is not None:
            self._quality.update(reading.horizontal_accuracy)

        latitude = self._smooth(
            self._lat, reading.latitude, reading.horizontal_accuracy, current_speed
        )
        longitude = self._smooth(
            self._lon, reading.longitude, reading.horizontal_accuracy, current_speed
        )
        altitude = self._smooth(
            self._alt, reading.altitude, reading.vertical_accuracy, current_speed
        )
        return CleanedReading(
            latitude=latitude,
            longitude=longitude,
            altitude=altitude,
            timestamp=reading.timestamp,
            horizontal_accuracy=reading.horizontal_accuracy,
            vertical_accuracy=reading.vertical_accuracy,
            device_speed=reading.speed,
        )

    # ------------------------------------------------------------------
    # Speed and distance
    # ------------------------------------------------------------------
    def calculate_speed(self, previous: CleanedReading, current: CleanedReading) -> float:
        """Return the moving average of instantaneous speeds (m/s)."""

        elapsed = (current.timestamp - previous.timestamp).total_seconds()
        if elapsed < self.speed_config.min_time_delta_s:
            return self._smoothed_speed

        if self._fuser is not None:
            instant, source = self._fuser.calculate_speed(current, previous)
        else:
            instant = max(0.0, self.distance_3d(previous, current) / elapsed)
            source = SpeedSource.COMPUTED

        self._speed_history.append(SpeedSample(instant, source))
        self._smoothed_speed = sum(s.value for s in self._speed_history) / len(
            self._speed_history
        )
        sources = {s.source for s in self._speed_history}
        self._last_source = sources.pop() if len(sources) == 1 else SpeedSource.BLENDED
        return self._smoothed_speed

    @staticmethod
    def distance_3d(start: CleanedReading, end: CleanedReading) -> float:
        return distance_3d_m(start, end)

    def is_distance_realistic(self, distance: float) -> bool:
        """False for GPS jitter (below the floor) and teleports (at/above the ceiling)."""

        if distance < self.config.min_distance_change:
            return False
        if distance >= self.config.max_distance_jump:
            return False
        return True

    # ------------------------------------------------------------------
    # Accuracy tier recommendations
    # ------------------------------------------------------------------
    def recommend_accuracy(
        self,
        current_speed: float,
        now: datetime,
        battery_level: float | None = None,
        is_charging: bool | None = None,
        force: bool = False,
    ) -> AccuracyTier | None:
        """Return a new tier to request when a change is due, else None."""

        if self._accuracy is None:
            return None
        tier = self._accuracy.determine_accuracy(
            current_speed, battery_level=battery_level, is_charging=is_charging
        )
        if not self._accuracy.should_update(tier, now, force=force):
            return None
        self._accuracy.record_update(tier, now)
        return tier

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._lat.reset()
        self._lon.reset()
        self._alt.reset()
        self.reset_speed_history()
        if self._quality is not None:
            self._quality.reset()
        if self._fuser is not None:
            self._fuser.reset_statistics()
        if self._accuracy is not None:
            self._accuracy.reset()

    def reset_speed_history(self) -> None:
        self._speed_history.clear()
        self._smoothed_speed = 0.0
        self._last_source = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def smoothed_speed(self) -> float:
        return self._smoothed_speed

    @property
    def speed_history(self) -> Tuple[SpeedSample, ...]:
        return tuple(self._speed_history)

    @property
    def last_speed_source(self) -> SpeedSource | None:
        return self._last_source

    @property
    def speed_fuser(self) -> SpeedFuser | None:
        return self._fuser

    @property
    def accuracy_selector(self) -> AccuracySelector | None:
        return self._accuracy

    @property
    def gps_quality(self) -> GPSQuality | None:
        return self._quality.quality if self._quality is not None else None

    def should_warn_about_gps_quality(self) -> bool:
        return self._quality.should_warn_user() if self._quality is not None else False

    def gps_quality_description(self) -> str | None:
        return self._quality.description() if self._quality is not None else None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _smooth(
        self, axis: NoiseFilter, value: float, accuracy: float, speed: float
    ) -> float:
        if isinstance(axis, AdaptiveNoiseFilter):
            return axis.filter_adaptive(value, accuracy=accuracy, speed=speed)
        return axis.filter(value)

    def _rejected(self, reason: ValidationFailure, accuracy: float) -> ReadingValidation:
        TrackingEvent.location_filtered(reason.value, accuracy).log(self._log)
        return ReadingValidation(reason)


__all__ = [
    "ReadingProcessor",
    "ReadingValidation",
    "VALID",
    "ValidationFailure",
]
