"""Run start/stop detection."""

from .engine import (
    Active,
    Detecting,
    DetectionReset,
    Ended,
    Idle,
    NoChange,
    RunDetector,
    RunEnded,
    RunStarted,
    RunState,
    RunUpdated,
    StartedDetecting,
    Transition,
)

__all__ = [
    "Active",
    "Detecting",
    "DetectionReset",
    "Ended",
    "Idle",
    "NoChange",
    "RunDetector",
    "RunEnded",
    "RunStarted",
    "RunState",
    "RunUpdated",
    "StartedDetecting",
    "Transition",
]
