"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

KMH_PER_MPS = 3.6


def mps_to_kmh(speed_mps: float) -> float:
    return speed_mps * KMH_PER_MPS


def format_duration(seconds: float) -> str:
    """Format seconds into a ``Xm Ys`` string."""

    mins, sec = divmod(int(round(seconds)), 60)
    return f"{mins}m {sec}s"


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, set):
        return sorted(_normalise_value(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    return value


def json_dumps_sorted(value: Any, *, indent: int | None = None) -> str:
    """Return canonical JSON for exports and comparisons."""

    normalised = _normalise_value(value)
    if indent is None:
        return json.dumps(normalised, sort_keys=True, separators=(",", ":"))
    return json.dumps(normalised, sort_keys=True, indent=indent)
