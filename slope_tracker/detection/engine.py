"""Run detection state machine.

States and transitions are small frozen dataclasses. The engine holds exactly
one state at a time and every call to :meth:`RunDetector.process_reading`
returns the transition it took, so callers react to transitions instead of
polling the state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..events import TrackingEvent
from ..models import CleanedReading
from ..settings import RunDetectionConfig


# -- States -------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Detecting:
    consecutive_count: int


@dataclass(frozen=True, slots=True)
class Active:
    start_time: datetime
    start_elevation: float
    last_movement_time: datetime


@dataclass(frozen=True, slots=True)
class Ended:
    """Terminal state once recording stops; cleared by ``reset()``."""


RunState = Union[Idle, Detecting, Active, Ended]


# -- Transitions ----------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class NoChange:
    pass


@dataclass(frozen=True, slots=True)
class StartedDetecting:
    consecutive_count: int


@dataclass(frozen=True, slots=True)
class DetectionReset:
    pass


@dataclass(frozen=True, slots=True)
class RunStarted:
    start_time: datetime
    start_elevation: float


@dataclass(frozen=True, slots=True)
class RunUpdated:
    last_movement_time: datetime


@dataclass(frozen=True, slots=True)
class RunEnded:
    ended_at: datetime


Transition = Union[NoChange, StartedDetecting, DetectionReset, RunStarted, RunUpdated, RunEnded]

NO_CHANGE = NoChange()


def state_name(state: RunState) -> str:
    return type(state).__name__.lower()


class RunDetector:
    """Hysteresis-based start/stop detection driven by the smoothed speed.

    A run starts once the start threshold holds for ``sustained_readings_required``
    consecutive readings and ends after the speed stays at or below the stop
    threshold for ``stop_time_threshold_s``.
    """

    def __init__(
        self,
        config: RunDetectionConfig | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or RunDetectionConfig()
        self._log = logger or logging.getLogger(self.__class__.__name__)
        self._state: RunState = Idle()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_active(self) -> bool:
        return isinstance(self._state, Active)

    def process_reading(
        self, reading: CleanedReading, speed: float, now: datetime
    ) -> Transition:
        state = self._state
        if isinstance(state, Idle):
            return self._handle_idle(speed)
        if isinstance(state, Detecting):
            return self._handle_detecting(state, reading, speed, now)
        if isinstance(state, Active):
            return self._handle_active(state, speed, now)
        if isinstance(state, Ended):
            return NO_CHANGE
        raise TypeError(f"Unknown run state: {state!r}")

    def finish(self, now: datetime) -> Transition:
        """Close the detector when recording stops."""

        transition: Transition = NO_CHANGE
        if isinstance(self._state, Active):
            transition = RunEnded(ended_at=now)
        self._set_state(Ended())
        return transition

    def reset(self) -> None:
        self._state = Idle()

    def state_description(self, now: datetime) -> str:
        state = self._state
        if isinstance(state, Detecting):
            return (
                f"Detecting ({state.consecutive_count}/"
                f"{self.config.sustained_readings_required})"
            )
        if isinstance(state, Active):
            running = (now - state.start_time).total_seconds()
            still = (now - state.last_movement_time).total_seconds()
            return f"Active ({running:.0f}s, last movement {still:.0f}s ago)"
        if isinstance(state, Ended):
            return "Ended"
        return "Idle"

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------
    def _handle_idle(self, speed: float) -> Transition:
        if speed < self.config.start_speed_threshold:
            return NO_CHANGE
        self._set_state(Detecting(1))
        TrackingEvent.detection_started(
            speed, 1, self.config.sustained_readings_required
        ).log(self._log)
        return StartedDetecting(1)

    def _handle_detecting(
        self, state: Detecting, reading: CleanedReading, speed: float, now: datetime
    ) -> Transition:
        cfg = self.config
        if speed < cfg.start_speed_threshold:
            self._set_state(Idle())
            TrackingEvent.detection_reset(speed).log(self._log)
            return DetectionReset()

        count = state.consecutive_count + 1
        if count >= cfg.sustained_readings_required:
            self._set_state(
                Active(
                    start_time=now,
                    start_elevation=reading.altitude,
                    last_movement_time=now,
                )
            )
            TrackingEvent.detection_threshold_met(speed, count).log(self._log)
            return RunStarted(start_time=now, start_elevation=reading.altitude)

        self._set_state(Detecting(count))
        TrackingEvent.detection_started(
            speed, count, cfg.sustained_readings_required
        ).log(self._log)
        return StartedDetecting(count)

    def _handle_active(self, state: Active, speed: float, now: datetime) -> Transition:
        if speed > self.config.stop_speed_threshold:
            # Same variant, no transition event.
            self._state = Active(
                start_time=state.start_time,
                start_elevation=state.start_elevation,
                last_movement_time=now,
            )
            return RunUpdated(last_movement_time=now)

        stopped_for = (now - state.last_movement_time).total_seconds()
        if stopped_for >= self.config.stop_time_threshold_s:
            self._set_state(Idle())
            return RunEnded(ended_at=now)
        return NO_CHANGE

    def _set_state(self, new_state: RunState) -> None:
        previous = self._state
        self._state = new_state
        if type(previous) is not type(new_state):
            TrackingEvent.state_transition(
                state_name(previous), state_name(new_state)
            ).log(self._log)


__all__ = [
    "Active",
    "Detecting",
    "DetectionReset",
    "Ended",
    "Idle",
    "NO_CHANGE",
    "NoChange",
    "RunDetector",
    "RunEnded",
    "RunStarted",
    "RunState",
    "RunUpdated",
    "StartedDetecting",
    "Transition",
    "state_name",
]
