"""Accumulation, validation and hand-off of detected runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ..events import TrackingEvent
from ..models import CleanedReading, FinalizedRun, RoutePoint, SessionStats
from ..settings import RunValidationConfig

RunSink = Callable[[FinalizedRun], None]


@dataclass(slots=True)
class ActiveRun:
    """Mutable accumulator for the run currently in progress."""

    start_time: datetime
    start_elevation: float
    validation: RunValidationConfig
    route_points: List[RoutePoint] = field(default_factory=list)
    speeds: List[float] = field(default_factory=list)
    top_speed: float = 0.0
    top_speed_point: Optional[RoutePoint] = None
    distance: float = 0.0

    def add(self, reading: CleanedReading, speed: float, distance: float) -> bool:
        """Append ``reading``; returns False for a duplicate timestamp."""

        if self.route_points and self.route_points[-1].timestamp == reading.timestamp:
            return False
        point = RoutePoint.from_reading(reading)
        self.route_points.append(point)
        self.speeds.append(speed)
        if speed > self.top_speed:
            self.top_speed = speed
            self.top_speed_point = point
        self.distance += distance
        return True

    @property
    def average_speed(self) -> float:
        if not self.speeds:
            return 0.0
        return sum(self.speeds) / len(self.speeds)

    @property
    def current_elevation(self) -> float:
        if self.route_points and self.route_points[-1].altitude is not None:
            return self.route_points[-1].altitude
        return self.start_elevation

    @property
    def vertical_descent(self) -> float:
        return max(0.0, self.start_elevation - self.current_elevation)

    def duration_at(self, now: datetime) -> float:
        return max(0.0, (now - self.start_time).total_seconds())

    def to_run(self, end_time: datetime) -> FinalizedRun:
        return FinalizedRun(
            start_time=self.start_time,
            end_time=end_time,
            top_speed_mps=self.top_speed,
            average_speed_mps=self.average_speed,
            start_elevation_m=self.start_elevation,
            end_elevation_m=self.current_elevation,
            vertical_descent_m=self.vertical_descent,
            distance_m=self.distance,
            route_points=list(self.route_points),
            top_speed_point=self.top_speed_point,
        )


@dataclass(frozen=True, slots=True)
class RunValidationResult:
    reasons: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.reasons


class RunSessionManager:
    """Owns at most one active run plus the completed runs of the session.

    Misuse (starting a second run, updating or ending without one) is logged
    as a warning and ignored. Rejected runs are dropped whole.
    """

    def __init__(
        self,
        config: RunValidationConfig | None = None,
        sink: Optional[RunSink] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or RunValidationConfig()
        self.sink = sink
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._current: ActiveRun | None = None
        self._completed: List[FinalizedRun] = []
        self._stats = SessionStats()

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------
    def start_new_run(
        self,
        reading: CleanedReading,
        start_time: datetime,
        validation: RunValidationConfig | None = None,
    ) -> None:
        if self._current is not None:
            self._log.warning("Attempted to start a new run while one is already active")
            return
        self._current = ActiveRun(
            start_time=start_time,
            start_elevation=reading.altitude,
            validation=validation or self.config,
            route_points=[RoutePoint.from_reading(reading)],
        )
        TrackingEvent.run_started(reading.altitude, 0.0).log(self._log)

    def update_current_run(
        self, reading: CleanedReading, speed: float, distance: float
    ) -> bool:
        """Add a reading to the active run; False when nothing was recorded."""

        if self._current is None:
            self._log.warning("Attempted to update a run but no run is active")
            return False
        if not self._current.add(reading, speed, distance):
            self._log.debug("Skipped duplicate reading at %s", reading.timestamp.isoformat())
            return False
        return True

    def end_current_run(self, end_time: datetime) -> FinalizedRun | None:
        active = self._current
        if active is None:
            self._log.warning("Attempted to end a run but no run is active")
            return None
        self._current = None

        run = active.to_run(end_time)
        result = self.validate(run, active.validation)
        if not result.is_valid:
            TrackingEvent.run_validation_failed(result.reasons).log(self._log)
            return None

        self._completed.append(run)
        self._stats.update(run)
        TrackingEvent.run_ended(
            run.duration_s,
            run.distance_m,
            run.top_speed_mps,
            run.average_speed_mps,
            run.vertical_descent_m,
        ).log(self._log)
        self._hand_off(run)
        return run

    def cancel_current_run(self) -> None:
        if self._current is not None:
            self._log.info("Current run cancelled")
            self._current = None

    def reset_session(self) -> None:
        self._current = None
        self._completed.clear()
        self._stats.reset()
        self._log.debug("Session reset")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(
        self, run: FinalizedRun, config: RunValidationConfig | None = None
    ) -> RunValidationResult:
        """Check every threshold and collect all failures."""

        cfg = config or self.config
        reasons: List[str] = []
        if run.duration_s < cfg.min_duration_s:
            reasons.append(
                f"Duration too short: {run.duration_s:.1f}s (min: {cfg.min_duration_s}s)"
            )
        if run.distance_m < cfg.min_distance_m:
            reasons.append(
                f"Distance too short: {run.distance_m:.1f}m (min: {cfg.min_distance_m}m)"
            )
        if cfg.min_descent_m is not None and run.vertical_descent_m < cfg.min_descent_m:
            reasons.append(
                f"Descent too small: {run.vertical_descent_m:.1f}m (min: {cfg.min_descent_m}m)"
            )
        return RunValidationResult(tuple(reasons))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def has_active_run(self) -> bool:
        return self._current is not None

    @property
    def current_run(self) -> ActiveRun | None:
        return self._current

    @property
    def completed_runs(self) -> List[FinalizedRun]:
        return list(self._completed)

    @property
    def session_stats(self) -> SessionStats:
        return self._stats

    def current_run_duration(self, now: datetime) -> float:
        return self._current.duration_at(now) if self._current is not None else 0.0

    @property
    def current_run_distance(self) -> float:
        return self._current.distance if self._current is not None else 0.0

    @property
    def current_run_top_speed(self) -> float:
        return self._current.top_speed if self._current is not None else 0.0

    @property
    def current_run_average_speed(self) -> float:
        return self._current.average_speed if self._current is not None else 0.0

    @property
    def current_route_points(self) -> List[RoutePoint]:
        return list(self._current.route_points) if self._current is not None else []

    @property
    def current_elevation(self) -> float | None:
        return self._current.current_elevation if self._current is not None else None

    def _hand_off(self, run: FinalizedRun) -> None:
        if self.sink is None:
            return
        try:
            self.sink(run)
        except Exception:
            self._log.warning("Run sink failed for run %s", run.id, exc_info=True)


__all__ = ["ActiveRun", "RunSessionManager", "RunSink", "RunValidationResult"]
