"""Structured diagnostic events emitted by the tracking pipeline.

Events travel over the standard :mod:`logging` machinery. Each record carries
the event name and its metadata in ``extra`` (``tracking_event`` and
``tracking_metadata``) so handlers can consume them without parsing the text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .settings import LoggingConfig
from .utils import mps_to_kmh

NULL_LOGGER = logging.getLogger("slope_tracker.null")
NULL_LOGGER.addHandler(logging.NullHandler())
NULL_LOGGER.propagate = False
NULL_LOGGER.disabled = True


class _MetadataStripper(logging.Filter):
    """Drop event metadata from records created by one logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "tracking_event", None) is not None:
            record.tracking_metadata = {}
            if isinstance(record.args, tuple) and len(record.args) == 3:
                record.args = (record.args[0], record.args[1], "")
        return True


def build_logger(config: LoggingConfig, name: str = "slope_tracker") -> logging.Logger:
    """Return the logger named ``name`` configured from ``config``.

    Level and metadata filtering are set on ``name`` itself, so callers that
    need independent settings must pass distinct names. Disabled logging
    returns the null logger.
    """

    if not config.enabled:
        return NULL_LOGGER
    logger = logging.getLogger(name)
    logger.setLevel(config.minimum_level)
    for existing in [f for f in logger.filters if isinstance(f, _MetadataStripper)]:
        logger.removeFilter(existing)
    if not config.include_metadata:
        logger.addFilter(_MetadataStripper())
    return logger


@dataclass(frozen=True, slots=True)
class TrackingEvent:
    name: str
    category: str
    message: str
    level: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def log(self, logger: Optional[logging.Logger]) -> None:
        if logger is None:
            return
        details = " ".join(f"{key}={value}" for key, value in self.metadata.items())
        logger.log(
            self.level,
            "%s: %s%s",
            self.category,
            self.message,
            f" ({details})" if details else "",
            extra={"tracking_event": self.name, "tracking_metadata": self.metadata},
        )

    # -- Session ------------------------------------------------------------
    @classmethod
    def session_started(cls, profile: str) -> "TrackingEvent":
        return cls("session_started", "Session", "Started", logging.INFO, {"config": profile})

    @classmethod
    def session_stopped(cls, run_count: int) -> "TrackingEvent":
        return cls(
            "session_stopped", "Session", "Stopped", logging.INFO, {"run_count": run_count}
        )

    # -- Detection ----------------------------------------------------------
    @classmethod
    def detection_started(cls, speed: float, count: int, required: int) -> "TrackingEvent":
        return cls(
            "detection_started",
            "Detection",
            "Building speed",
            logging.DEBUG,
            {"speed_kmh": round(mps_to_kmh(speed), 1), "count": f"{count}/{required}"},
        )

    @classmethod
    def detection_reset(cls, speed: float) -> "TrackingEvent":
        return cls(
            "detection_reset",
            "Detection",
            "Reset - speed dropped",
            logging.DEBUG,
            {"speed_kmh": round(mps_to_kmh(speed), 1)},
        )

    @classmethod
    def detection_threshold_met(cls, speed: float, count: int) -> "TrackingEvent":
        return cls(
            "detection_threshold_met",
            "Detection",
            "Threshold met",
            logging.INFO,
            {"speed_kmh": round(mps_to_kmh(speed), 1), "readings": count},
        )

    # -- Run lifecycle ------------------------------------------------------
    @classmethod
    def run_started(cls, elevation: float, speed: float) -> "TrackingEvent":
        return cls(
            "run_started",
            "Run",
            "Started",
            logging.INFO,
            {"elevation_m": round(elevation, 1), "speed_kmh": round(mps_to_kmh(speed), 1)},
        )

    @classmethod
    def run_ended(
        cls,
        duration: float,
        distance: float,
        top_speed: float,
        avg_speed: float,
        descent: float,
    ) -> "TrackingEvent":
        return cls(
            "run_ended",
            "Run",
            "Ended",
            logging.INFO,
            {
                "duration_s": int(duration),
                "distance_m": round(distance, 1),
                "top_speed_kmh": round(mps_to_kmh(top_speed), 1),
                "avg_speed_kmh": round(mps_to_kmh(avg_speed), 1),
                "descent_m": round(descent, 1),
            },
        )

    @classmethod
    def run_validation_failed(cls, reasons: Iterable[str]) -> "TrackingEvent":
        return cls(
            "run_validation_failed",
            "Run",
            "Validation failed",
            logging.WARNING,
            {"reasons": "; ".join(reasons)},
        )

    # -- Location -----------------------------------------------------------
    @classmethod
    def location_processed(
        cls, speed: float, elevation: float, latitude: float, longitude: float, distance: float
    ) -> "TrackingEvent":
        return cls(
            "location_processed",
            "Location",
            "Processed",
            logging.DEBUG,
            {
                "speed_kmh": round(mps_to_kmh(speed), 1),
                "elevation_m": round(elevation, 1),
                "lat": f"{latitude:.4f}",
                "lon": f"{longitude:.4f}",
                "distance_m": round(distance, 1),
            },
        )

    @classmethod
    def location_filtered(cls, reason: str, accuracy: float) -> "TrackingEvent":
        return cls(
            "location_filtered",
            "Location",
            "Filtered",
            logging.WARNING,
            {"reason": reason, "accuracy_m": accuracy},
        )

    @classmethod
    def unrealistic_distance(cls, distance: float) -> "TrackingEvent":
        return cls(
            "unrealistic_distance",
            "Location",
            "Unrealistic distance detected",
            logging.WARNING,
            {"distance_m": round(distance, 2)},
        )

    # -- State --------------------------------------------------------------
    @classmethod
    def state_transition(cls, source: str, target: str) -> "TrackingEvent":
        return cls(
            "state_transition",
            "State",
            "Transition",
            logging.DEBUG,
            {"from": source, "to": target},
        )


__all__ = ["NULL_LOGGER", "TrackingEvent", "build_logger"]
