"""Immutable tuning structures for the tracking pipeline.

Each structure is a frozen dataclass built from the module constants in
:mod:`slope_tracker.config` and exposes a handful of named presets. Swapping a
configuration means building a new object (``dataclasses.replace``); nothing
in the pipeline mutates a configuration in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .config import (
    ACCURACY_BATTERY_THRESHOLD,
    ACCURACY_MIN_UPDATE_INTERVAL_S,
    LOCATION_DISTANCE_FILTER_M,
    MAX_DISTANCE_JUMP_M,
    MAX_HORIZONTAL_ACCURACY_M,
    MAX_LOCATION_AGE_S,
    MAX_VERTICAL_ACCURACY_M,
    MIN_DISTANCE_CHANGE_M,
    NOISE_ACCURACY_FACTOR,
    NOISE_ADAPTIVE_ENABLED,
    NOISE_BASE_MEASUREMENT_NOISE,
    NOISE_BASE_PROCESS_NOISE,
    NOISE_SPEED_FACTOR,
    RUN_MIN_DESCENT_M,
    RUN_MIN_DISTANCE_M,
    RUN_MIN_DURATION_S,
    RUN_START_SPEED_THRESHOLD,
    RUN_STOP_SPEED_THRESHOLD,
    RUN_STOP_TIME_THRESHOLD_S,
    RUN_SUSTAINED_READINGS,
    SPEED_MIN_TIME_DELTA_S,
    SPEED_WINDOW_SIZE,
)
from .errors import ConfigurationError
from .models import AccuracyTier


# ---------------------------------------------------------------------------
# Run detection
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RunDetectionConfig:
    """Thresholds driving the idle/detecting/active state machine."""

    start_speed_threshold: float = RUN_START_SPEED_THRESHOLD
    stop_speed_threshold: float = RUN_STOP_SPEED_THRESHOLD
    sustained_readings_required: int = RUN_SUSTAINED_READINGS
    stop_time_threshold_s: float = RUN_STOP_TIME_THRESHOLD_S

    def __post_init__(self) -> None:
        if self.sustained_readings_required < 1:
            raise ConfigurationError("sustained_readings_required must be >= 1")
        if self.stop_time_threshold_s < 0:
            raise ConfigurationError("stop_time_threshold_s must be >= 0")
        if self.stop_speed_threshold > self.start_speed_threshold:
            raise ConfigurationError(
                "stop_speed_threshold must not exceed start_speed_threshold"
            )

    @classmethod
    def default(cls) -> "RunDetectionConfig":
        return cls()

    @classmethod
    def car_testing(cls) -> "RunDetectionConfig":
        # ~15 km/h start, ~7.2 km/h stop; shorter dwell for traffic lights.
        return cls(
            start_speed_threshold=4.2,
            stop_speed_threshold=2.0,
            sustained_readings_required=3,
            stop_time_threshold_s=15.0,
        )

    @classmethod
    def skiing(cls) -> "RunDetectionConfig":
        return cls(
            start_speed_threshold=4.5,
            stop_speed_threshold=2.0,
            sustained_readings_required=3,
            stop_time_threshold_s=30.0,
        )


# ---------------------------------------------------------------------------
# Run validation
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RunValidationConfig:
    """Minimums a just-ended run must meet to be kept."""

    min_duration_s: float = RUN_MIN_DURATION_S
    min_distance_m: float = RUN_MIN_DISTANCE_M
    # None disables the descent check (flat terrain / car testing).
    min_descent_m: Optional[float] = RUN_MIN_DESCENT_M

    def __post_init__(self) -> None:
        if self.min_duration_s < 0 or self.min_distance_m < 0:
            raise ConfigurationError("validation minimums must be >= 0")
        if self.min_descent_m is not None and self.min_descent_m < 0:
            raise ConfigurationError("min_descent_m must be >= 0 or None")

    @classmethod
    def default(cls) -> "RunValidationConfig":
        return cls()

    @classmethod
    def car_testing(cls) -> "RunValidationConfig":
        return cls(min_duration_s=5.0, min_distance_m=100.0, min_descent_m=None)

    @classmethod
    def strict(cls) -> "RunValidationConfig":
        return cls(min_duration_s=15.0, min_distance_m=100.0, min_descent_m=30.0)


# ---------------------------------------------------------------------------
# Location filtering
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LocationFilteringConfig:
    """Ceilings used to reject readings and unrealistic displacements."""

    max_horizontal_accuracy: float = MAX_HORIZONTAL_ACCURACY_M
    max_vertical_accuracy: float = MAX_VERTICAL_ACCURACY_M
    max_location_age_s: float = MAX_LOCATION_AGE_S
    max_distance_jump: float = MAX_DISTANCE_JUMP_M
    min_distance_change: float = MIN_DISTANCE_CHANGE_M
    # Hint for the positioning collaborator (minimum movement between
    # delivered fixes); the pipeline itself does not apply it.
    distance_filter: float = LOCATION_DISTANCE_FILTER_M

    def __post_init__(self) -> None:
        if self.max_horizontal_accuracy <= 0 or self.max_vertical_accuracy <= 0:
            raise ConfigurationError("accuracy ceilings must be > 0")
        if self.max_location_age_s <= 0:
            raise ConfigurationError("max_location_age_s must be > 0")
        if not 0 <= self.min_distance_change < self.max_distance_jump:
            raise ConfigurationError(
                "expected 0 <= min_distance_change < max_distance_jump"
            )

    @classmethod
    def default(cls) -> "LocationFilteringConfig":
        return cls()

    @classmethod
    def high_accuracy(cls) -> "LocationFilteringConfig":
        return cls(
            max_horizontal_accuracy=20.0,
            max_vertical_accuracy=20.0,
            max_location_age_s=3.0,
            max_distance_jump=30.0,
            min_distance_change=0.05,
            distance_filter=2.0,
        )

    @classmethod
    def battery_saver(cls) -> "LocationFilteringConfig":
        return cls(
            max_horizontal_accuracy=100.0,
            max_vertical_accuracy=100.0,
            max_location_age_s=10.0,
            max_distance_jump=100.0,
            min_distance_change=1.0,
            distance_filter=10.0,
        )


# ---------------------------------------------------------------------------
# Speed smoothing
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SpeedSmoothingConfig:
    """Moving-average window applied to instantaneous speeds."""

    window_size: int = SPEED_WINDOW_SIZE
    min_time_delta_s: float = SPEED_MIN_TIME_DELTA_S

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ConfigurationError("window_size must be >= 1")
        if self.min_time_delta_s < 0:
            raise ConfigurationError("min_time_delta_s must be >= 0")

    @classmethod
    def default(cls) -> "SpeedSmoothingConfig":
        return cls()

    @classmethod
    def responsive(cls) -> "SpeedSmoothingConfig":
        return cls(window_size=3, min_time_delta_s=0.05)

    @classmethod
    def smooth(cls) -> "SpeedSmoothingConfig":
        return cls(window_size=10, min_time_delta_s=0.2)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Verbosity of the diagnostic event stream."""

    enabled: bool = True
    minimum_level: int = logging.DEBUG
    # False strips the key=value details from event records.
    include_metadata: bool = True

    @classmethod
    def default(cls) -> "LoggingConfig":
        return cls()

    @classmethod
    def production(cls) -> "LoggingConfig":
        return cls(enabled=True, minimum_level=logging.WARNING, include_metadata=False)

    @classmethod
    def disabled(cls) -> "LoggingConfig":
        return cls(enabled=False, minimum_level=logging.ERROR, include_metadata=False)


# ---------------------------------------------------------------------------
# Adaptive accuracy
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AdaptiveAccuracyConfig:
    """Speed bands mapped to positioning tiers, plus battery-aware degradation."""

    stationary_accuracy: AccuracyTier = AccuracyTier.HUNDRED_METERS
    walking_accuracy: AccuracyTier = AccuracyTier.NEAREST_TEN_METERS
    moving_accuracy: AccuracyTier = AccuracyTier.BEST
    fast_accuracy: AccuracyTier = AccuracyTier.BEST_FOR_NAVIGATION
    stationary_threshold: float = 1.0
    walking_threshold: float = 3.0
    moving_threshold: float = 10.0
    battery_threshold: float = ACCURACY_BATTERY_THRESHOLD
    reduces_accuracy_on_low_battery: bool = True
    min_update_interval_s: float = ACCURACY_MIN_UPDATE_INTERVAL_S

    def __post_init__(self) -> None:
        if not (
            self.stationary_threshold <= self.walking_threshold <= self.moving_threshold
        ):
            raise ConfigurationError("speed band thresholds must be non-decreasing")
        if not 0.0 <= self.battery_threshold <= 1.0:
            raise ConfigurationError("battery_threshold must be within [0, 1]")

    @classmethod
    def default(cls) -> "AdaptiveAccuracyConfig":
        return cls()

    @classmethod
    def high_accuracy(cls) -> "AdaptiveAccuracyConfig":
        return cls(
            stationary_accuracy=AccuracyTier.BEST,
            walking_accuracy=AccuracyTier.BEST,
            moving_accuracy=AccuracyTier.BEST_FOR_NAVIGATION,
            fast_accuracy=AccuracyTier.BEST_FOR_NAVIGATION,
            battery_threshold=0.10,
            reduces_accuracy_on_low_battery=False,
        )

    @classmethod
    def battery_saver(cls) -> "AdaptiveAccuracyConfig":
        return cls(
            stationary_accuracy=AccuracyTier.KILOMETER,
            walking_accuracy=AccuracyTier.HUNDRED_METERS,
            moving_accuracy=AccuracyTier.NEAREST_TEN_METERS,
            fast_accuracy=AccuracyTier.BEST,
            battery_threshold=0.30,
            reduces_accuracy_on_low_battery=True,
        )

    @classmethod
    def racing(cls) -> "AdaptiveAccuracyConfig":
        return cls(
            stationary_accuracy=AccuracyTier.BEST,
            walking_accuracy=AccuracyTier.BEST,
            moving_accuracy=AccuracyTier.BEST_FOR_NAVIGATION,
            fast_accuracy=AccuracyTier.BEST_FOR_NAVIGATION,
            moving_threshold=8.0,
            battery_threshold=0.05,
            reduces_accuracy_on_low_battery=False,
        )


# ---------------------------------------------------------------------------
# Hybrid speed
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HybridSpeedConfig:
    """When to trust the device-reported speed over the computed one."""

    # Computed speed (m/s) at or above which agreeing device speed is used.
    device_speed_minimum: float = 5.0
    # Horizontal accuracy (m) below which device speed is trusted at all.
    device_speed_max_accuracy: float = 10.0
    # Computed speed (m/s) above which device speed always wins.
    trust_device_speed_above: float = 10.0
    # Maximum relative difference for the two speeds to count as agreeing.
    agreement_tolerance: float = 0.3
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.agreement_tolerance < 0:
            raise ConfigurationError("agreement_tolerance must be >= 0")

    @classmethod
    def default(cls) -> "HybridSpeedConfig":
        return cls()

    @classmethod
    def calculated_only(cls) -> "HybridSpeedConfig":
        return cls(
            device_speed_minimum=1000.0,
            device_speed_max_accuracy=1.0,
            trust_device_speed_above=1000.0,
            enabled=False,
        )

    @classmethod
    def device_preferred(cls) -> "HybridSpeedConfig":
        return cls(
            device_speed_minimum=2.0,
            device_speed_max_accuracy=20.0,
            trust_device_speed_above=5.0,
        )


# ---------------------------------------------------------------------------
# GPS quality
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GPSQualityConfig:
    """Mean-accuracy thresholds (metres) separating the quality tiers."""

    excellent_threshold: float = 5.0
    good_threshold: float = 15.0
    fair_threshold: float = 30.0
    poor_threshold: float = 50.0
    sample_window: int = 10
    warns_user: bool = True

    def __post_init__(self) -> None:
        if self.sample_window < 1:
            raise ConfigurationError("sample_window must be >= 1")
        if not (
            self.excellent_threshold
            <= self.good_threshold
            <= self.fair_threshold
            <= self.poor_threshold
        ):
            raise ConfigurationError("quality thresholds must be non-decreasing")

    @classmethod
    def default(cls) -> "GPSQualityConfig":
        return cls()

    @classmethod
    def strict(cls) -> "GPSQualityConfig":
        return cls(3.0, 10.0, 20.0, 35.0, sample_window=15, warns_user=True)

    @classmethod
    def lenient(cls) -> "GPSQualityConfig":
        return cls(10.0, 25.0, 50.0, 100.0, sample_window=5, warns_user=False)


# ---------------------------------------------------------------------------
# Adaptive noise filter
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AdaptiveNoiseConfig:
    """Base noise levels and how strongly speed/accuracy inflate them."""

    base_process_noise: float = NOISE_BASE_PROCESS_NOISE
    base_measurement_noise: float = NOISE_BASE_MEASUREMENT_NOISE
    speed_noise_factor: float = NOISE_SPEED_FACTOR
    accuracy_noise_factor: float = NOISE_ACCURACY_FACTOR
    enabled: bool = NOISE_ADAPTIVE_ENABLED

    def __post_init__(self) -> None:
        if self.base_process_noise <= 0 or self.base_measurement_noise <= 0:
            raise ConfigurationError("base noise values must be > 0")

    @classmethod
    def default(cls) -> "AdaptiveNoiseConfig":
        return cls()

    @classmethod
    def fixed(cls) -> "AdaptiveNoiseConfig":
        return cls(speed_noise_factor=0.0, accuracy_noise_factor=0.0, enabled=False)

    @classmethod
    def aggressive(cls) -> "AdaptiveNoiseConfig":
        return cls(speed_noise_factor=0.02, accuracy_noise_factor=0.2)


# ---------------------------------------------------------------------------
# Top-level configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TrackingConfiguration:
    """Bundle of every tuning structure the pipeline needs.

    The optional members switch the corresponding enhancement off when None:
    no accuracy recommendations, computed speed only, no quality monitoring,
    and fixed-noise smoothing respectively.
    """

    run_detection: RunDetectionConfig = field(default_factory=RunDetectionConfig)
    validation: RunValidationConfig = field(default_factory=RunValidationConfig)
    location_filtering: LocationFilteringConfig = field(
        default_factory=LocationFilteringConfig
    )
    speed_smoothing: SpeedSmoothingConfig = field(default_factory=SpeedSmoothingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    adaptive_accuracy: Optional[AdaptiveAccuracyConfig] = field(
        default_factory=AdaptiveAccuracyConfig
    )
    hybrid_speed: Optional[HybridSpeedConfig] = field(
        default_factory=HybridSpeedConfig
    )
    gps_quality: Optional[GPSQualityConfig] = field(default_factory=GPSQualityConfig)
    adaptive_noise: Optional[AdaptiveNoiseConfig] = field(
        default_factory=AdaptiveNoiseConfig
    )

    @classmethod
    def default(cls) -> "TrackingConfiguration":
        return cls()

    @classmethod
    def high_accuracy(cls) -> "TrackingConfiguration":
        return cls(
            validation=RunValidationConfig.strict(),
            location_filtering=LocationFilteringConfig.high_accuracy(),
            speed_smoothing=SpeedSmoothingConfig.responsive(),
            adaptive_accuracy=AdaptiveAccuracyConfig.high_accuracy(),
            hybrid_speed=HybridSpeedConfig.device_preferred(),
            gps_quality=GPSQualityConfig.strict(),
        )

    @classmethod
    def battery_saver(cls) -> "TrackingConfiguration":
        return cls(
            location_filtering=LocationFilteringConfig.battery_saver(),
            speed_smoothing=SpeedSmoothingConfig.smooth(),
            logging=LoggingConfig.production(),
            adaptive_accuracy=AdaptiveAccuracyConfig.battery_saver(),
            hybrid_speed=HybridSpeedConfig.calculated_only(),
            gps_quality=GPSQualityConfig.lenient(),
            adaptive_noise=AdaptiveNoiseConfig.fixed(),
        )

    @classmethod
    def car_testing(cls) -> "TrackingConfiguration":
        # Works on flat roads: no descent requirement, device speed preferred.
        return cls(
            run_detection=RunDetectionConfig.car_testing(),
            validation=RunValidationConfig.car_testing(),
            hybrid_speed=HybridSpeedConfig.device_preferred(),
        )

    @classmethod
    def super_lenient(cls) -> "TrackingConfiguration":
        # For debugging in parking lots.
        return cls(
            run_detection=RunDetectionConfig(
                start_speed_threshold=2.0,
                stop_speed_threshold=0.5,
                sustained_readings_required=2,
                stop_time_threshold_s=30.0,
            ),
            validation=RunValidationConfig(
                min_duration_s=3.0, min_distance_m=30.0, min_descent_m=None
            ),
            gps_quality=GPSQualityConfig.lenient(),
        )

    @classmethod
    def preset(cls, name: str) -> "TrackingConfiguration":
        """Return the named preset (``default``, ``car_testing``, ...)."""

        key = name.strip().lower().replace("-", "_")
        factory = _PRESETS.get(key)
        if factory is None:
            known = ", ".join(sorted(_PRESETS))
            raise ConfigurationError(f"Unknown tracking profile '{name}' ({known})")
        return factory()


_PRESETS: Dict[str, Callable[[], TrackingConfiguration]] = {
    "default": TrackingConfiguration.default,
    "high_accuracy": TrackingConfiguration.high_accuracy,
    "battery_saver": TrackingConfiguration.battery_saver,
    "car_testing": TrackingConfiguration.car_testing,
    "super_lenient": TrackingConfiguration.super_lenient,
}

PRESET_NAMES = tuple(sorted(_PRESETS))


__all__ = [
    "AdaptiveAccuracyConfig",
    "AdaptiveNoiseConfig",
    "GPSQualityConfig",
    "HybridSpeedConfig",
    "LocationFilteringConfig",
    "LoggingConfig",
    "PRESET_NAMES",
    "RunDetectionConfig",
    "RunValidationConfig",
    "SpeedSmoothingConfig",
    "TrackingConfiguration",
]
