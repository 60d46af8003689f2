"""Dataclasses describing readings, route points and finalized runs."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .utils import mps_to_kmh

LatLon = Tuple[float, float]


class AccuracyTier(Enum):
    """Positioning precision/power tiers, ordered best to coarsest."""

    BEST_FOR_NAVIGATION = "BestForNavigation"
    BEST = "Best"
    NEAREST_TEN_METERS = "NearestTenMeters"
    HUNDRED_METERS = "HundredMeters"
    KILOMETER = "Kilometer"

    def step_down(self) -> "AccuracyTier":
        """Return the next coarser tier (the coarsest tier saturates)."""

        members = list(AccuracyTier)
        index = members.index(self)
        return members[min(index + 1, len(members) - 1)]


class SpeedSource(Enum):
    """Where a speed sample came from."""

    DEVICE = "device"
    COMPUTED = "computed"
    BLENDED = "blended"


@dataclass(frozen=True, slots=True)
class RawReading:
    """One sample from the positioning collaborator. Never mutated."""

    latitude: float
    longitude: float
    altitude: float
    horizontal_accuracy: float
    vertical_accuracy: float
    # Device-reported instantaneous speed; negative when unavailable.
    speed: float
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class CleanedReading:
    """Smoothed position for exactly one validated :class:`RawReading`."""

    latitude: float
    longitude: float
    altitude: float
    timestamp: datetime
    horizontal_accuracy: float
    vertical_accuracy: float
    device_speed: float = -1.0

    @property
    def coordinate(self) -> LatLon:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class RoutePoint:
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_reading(cls, reading: CleanedReading) -> "RoutePoint":
        return cls(
            latitude=reading.latitude,
            longitude=reading.longitude,
            altitude=reading.altitude,
            timestamp=reading.timestamp,
        )

    @property
    def coordinate(self) -> LatLon:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class SpeedSample:
    value: float
    source: SpeedSource


@dataclass(slots=True)
class FinalizedRun:
    """A validated run handed to the persistence collaborator."""

    start_time: datetime
    end_time: datetime
    top_speed_mps: float
    average_speed_mps: float
    start_elevation_m: float
    end_elevation_m: float
    vertical_descent_m: float
    distance_m: float
    route_points: List[RoutePoint] = field(default_factory=list)
    top_speed_point: Optional[RoutePoint] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def duration_s(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def top_speed_kmh(self) -> float:
        return mps_to_kmh(self.top_speed_mps)

    @property
    def average_speed_kmh(self) -> float:
        return mps_to_kmh(self.average_speed_mps)


@dataclass(slots=True)
class SessionStats:
    """Aggregate figures across the accepted runs of one recording session."""

    total_distance_m: float = 0.0
    total_descent_m: float = 0.0
    top_speed_mps: float = 0.0
    # Plain mean of per-run average speeds, not weighted by duration.
    average_speed_mps: float = 0.0
    run_count: int = 0

    def update(self, run: FinalizedRun) -> None:
        self.total_distance_m += run.distance_m
        self.total_descent_m += run.vertical_descent_m
        self.top_speed_mps = max(self.top_speed_mps, run.top_speed_mps)
        self.run_count += 1
        self.average_speed_mps = (
            self.average_speed_mps * (self.run_count - 1) + run.average_speed_mps
        ) / self.run_count

    def reset(self) -> None:
        self.total_distance_m = 0.0
        self.total_descent_m = 0.0
        self.top_speed_mps = 0.0
        self.average_speed_mps = 0.0
        self.run_count = 0


__all__ = [
    "AccuracyTier",
    "CleanedReading",
    "FinalizedRun",
    "LatLon",
    "RawReading",
    "RoutePoint",
    "SessionStats",
    "SpeedSample",
    "SpeedSource",
]
