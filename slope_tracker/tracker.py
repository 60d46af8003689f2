"""Pipeline orchestration: one reading at a time through every component."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Callable, Iterable, List, Optional, Tuple

from .detection import RunDetector, RunEnded, RunStarted, Transition
from .detection.engine import NO_CHANGE, state_name
from .events import TrackingEvent, build_logger
from .location import GPSQuality, ReadingProcessor
from .models import AccuracyTier, CleanedReading, FinalizedRun, RawReading, RoutePoint, SpeedSource
from .session import RunSessionManager, RunSink
from .settings import TrackingConfiguration

AccuracySink = Callable[[AccuracyTier], None]


@dataclass(frozen=True, slots=True)
class ReadingOutcome:
    """What happened to a single pushed reading."""

    cleaned: Optional[CleanedReading]
    speed: float
    transition: Transition
    distance: float = 0.0
    completed_run: Optional[FinalizedRun] = None
    accuracy_change: Optional[AccuracyTier] = None

    @property
    def accepted(self) -> bool:
        return self.cleaned is not None


@dataclass(frozen=True, slots=True)
class LiveMetrics:
    """Read-only view of the in-progress session for display."""

    recording: bool
    state: str
    speed_mps: float
    speed_source: Optional[SpeedSource]
    elevation_m: Optional[float]
    route: Tuple[RoutePoint, ...]
    run_distance_m: float
    run_top_speed_mps: float
    run_average_speed_mps: float
    top_speed_mps: float
    total_distance_m: float
    run_count: int
    gps_quality: Optional[GPSQuality]


class TrackingPipeline:
    """Drives processor, detector and session manager for one reading stream.

    Every public method holds the same re-entrant lock so readings pushed from
    one thread and snapshots taken from another never interleave.
    """

    def __init__(
        self,
        config: TrackingConfiguration | None = None,
        sink: Optional[RunSink] = None,
        accuracy_sink: Optional[AccuracySink] = None,
        logger: Optional[logging.Logger] = None,
        profile: str = "default",
    ) -> None:
        self.config = config or TrackingConfiguration()
        self.profile = profile
        self.accuracy_sink = accuracy_sink
        # Per-pipeline logger; levels and filters are set on it, not on the parent.
        self._log = logger or build_logger(
            self.config.logging, name=f"slope_tracker.pipeline.{id(self):x}"
        )
        self._lock = RLock()
        self._processor = ReadingProcessor.from_configuration(self.config, logger=self._log)
        self._detector = RunDetector(self.config.run_detection, logger=self._log)
        self._session = RunSessionManager(self.config.validation, sink=sink, logger=self._log)

        self._recording = False
        self._last: CleanedReading | None = None
        self._speed = 0.0
        self._elevation: float | None = None
        self._total_distance = 0.0
        self._battery_level: float | None = None
        self._is_charging: bool | None = None

    # ------------------------------------------------------------------
    # Recording control
    # ------------------------------------------------------------------
    def start_recording(self, now: datetime) -> None:
        with self._lock:
            if self._recording:
                return
            self._session.reset_session()
            self._detector.reset()
            self._processor.reset()
            self._last = None
            self._speed = 0.0
            self._elevation = None
            self._total_distance = 0.0
            self._recording = True
            self._log.debug("Recording started at %s", now.isoformat())
            TrackingEvent.session_started(self.profile).log(self._log)

    def stop_recording(self, now: datetime) -> FinalizedRun | None:
        """Stop recording, finalizing the active run if there is one."""

        with self._lock:
            if not self._recording:
                return None
            run = None
            self._detector.finish(now)
            if self._session.has_active_run:
                run = self._session.end_current_run(now)
            self._recording = False
            TrackingEvent.session_stopped(len(self._session.completed_runs)).log(self._log)
            return run

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    # ------------------------------------------------------------------
    # Reading intake
    # ------------------------------------------------------------------
    def handle_reading(
        self, reading: RawReading, now: datetime | None = None
    ) -> ReadingOutcome:
        with self._lock:
            if now is None:
                now = datetime.now(tz=reading.timestamp.tzinfo)
            if not self._recording:
                return ReadingOutcome(None, self._speed, NO_CHANGE)

            cleaned = self._processor.process(reading, now, current_speed=self._speed)
            if cleaned is None:
                return ReadingOutcome(None, self._speed, NO_CHANGE)

            self._elevation = cleaned.altitude
            previous = self._last
            if previous is not None:
                self._speed = self._processor.calculate_speed(previous, cleaned)
                TrackingEvent.location_processed(
                    self._speed,
                    cleaned.altitude,
                    cleaned.latitude,
                    cleaned.longitude,
                    self._total_distance,
                ).log(self._log)
            else:
                self._speed = 0.0
            speed = self._speed

            transition = self._detector.process_reading(cleaned, speed, now)
            completed = self._apply_transition(transition, cleaned)

            distance = 0.0
            if self._session.has_active_run and previous is not None:
                step = self._processor.distance_3d(previous, cleaned)
                if not self._processor.is_distance_realistic(step):
                    TrackingEvent.unrealistic_distance(step).log(self._log)
                elif self._session.update_current_run(cleaned, speed, step):
                    self._total_distance += step
                    distance = step

            self._last = cleaned
            tier = self._recommend_accuracy(speed, now)
            return ReadingOutcome(cleaned, speed, transition, distance, completed, tier)

    def update_power_state(
        self, battery_level: float | None, is_charging: bool | None
    ) -> AccuracyTier | None:
        """Record battery state and push a freshly evaluated tier straight away."""

        with self._lock:
            self._battery_level = battery_level
            self._is_charging = is_charging
            if not self._recording or self._last is None:
                return None
            return self._recommend_accuracy(self._speed, self._last.timestamp, force=True)

    def apply_configuration(self, config: TrackingConfiguration) -> None:
        """Use ``config`` from the next reading on.

        An active run keeps the validation thresholds captured when it started.
        The processor is rebuilt, so smoothing re-anchors on the next reading.
        """

        with self._lock:
            self.config = config
            self._detector.config = config.run_detection
            self._session.config = config.validation
            self._processor = ReadingProcessor.from_configuration(config, logger=self._log)
            self._speed = 0.0
            self._log.info("Tracking configuration updated")

    # ------------------------------------------------------------------
    # Live state
    # ------------------------------------------------------------------
    def snapshot(self) -> LiveMetrics:
        with self._lock:
            session = self._session
            return LiveMetrics(
                recording=self._recording,
                state=state_name(self._detector.state),
                speed_mps=self._speed,
                speed_source=self._processor.last_speed_source,
                elevation_m=self._elevation,
                route=tuple(session.current_route_points),
                run_distance_m=session.current_run_distance,
                run_top_speed_mps=session.current_run_top_speed,
                run_average_speed_mps=session.current_run_average_speed,
                top_speed_mps=max(
                    session.session_stats.top_speed_mps, session.current_run_top_speed
                ),
                total_distance_m=self._total_distance,
                run_count=session.session_stats.run_count,
                gps_quality=self._processor.gps_quality,
            )

    @property
    def completed_runs(self) -> List[FinalizedRun]:
        with self._lock:
            return self._session.completed_runs

    @property
    def detector(self) -> RunDetector:
        return self._detector

    @property
    def session(self) -> RunSessionManager:
        return self._session

    @property
    def processor(self) -> ReadingProcessor:
        return self._processor

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _apply_transition(
        self, transition: Transition, reading: CleanedReading
    ) -> FinalizedRun | None:
        if isinstance(transition, RunStarted):
            self._session.start_new_run(
                reading, transition.start_time, validation=self.config.validation
            )
            self._processor.reset_speed_history()
            return None
        if isinstance(transition, RunEnded):
            return self._session.end_current_run(transition.ended_at)
        return None

    def _recommend_accuracy(
        self, speed: float, now: datetime, force: bool = False
    ) -> AccuracyTier | None:
        tier = self._processor.recommend_accuracy(
            speed,
            now,
            battery_level=self._battery_level,
            is_charging=self._is_charging,
            force=force,
        )
        if tier is not None and self.accuracy_sink is not None:
            try:
                self.accuracy_sink(tier)
            except Exception:
                self._log.warning(
                    "Accuracy sink failed for tier %s", tier.value, exc_info=True
                )
        return tier


def replay(
    readings: Iterable[RawReading],
    config: TrackingConfiguration | None = None,
    sink: Optional[RunSink] = None,
    logger: Optional[logging.Logger] = None,
    profile: str = "default",
) -> List[FinalizedRun]:
    """Run a recorded stream through a fresh pipeline, timestamp as clock."""

    pipeline = TrackingPipeline(config, sink=sink, logger=logger, profile=profile)
    last_time: datetime | None = None
    for reading in readings:
        if last_time is None:
            pipeline.start_recording(reading.timestamp)
        pipeline.handle_reading(reading, now=reading.timestamp)
        last_time = reading.timestamp
    if last_time is not None:
        pipeline.stop_recording(last_time)
    return pipeline.completed_runs


__all__ = ["AccuracySink", "LiveMetrics", "ReadingOutcome", "TrackingPipeline", "replay"]
