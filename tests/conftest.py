"""Global pytest fixtures & helpers.

Adds project root to path and provides reading factories and synthetic
streams shared across the pipeline tests.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timedelta, timezone
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from slope_tracker.events import NULL_LOGGER
from slope_tracker.models import CleanedReading, RawReading

T0 = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
BASE_LAT = 45.9237
BASE_LON = 6.8694
# Metres per degree of latitude on the sphere used by geo.haversine_m.
METRES_PER_DEG_LAT = 111195.08


# --- Factory helpers -------------------------------------------------
def make_raw(
    offset_s: float = 0.0,
    *,
    north_m: float = 0.0,
    altitude: float = 2000.0,
    horizontal_accuracy: float = 5.0,
    vertical_accuracy: float = 5.0,
    speed: float = -1.0,
) -> RawReading:
    return RawReading(
        latitude=BASE_LAT + north_m / METRES_PER_DEG_LAT,
        longitude=BASE_LON,
        altitude=altitude,
        horizontal_accuracy=horizontal_accuracy,
        vertical_accuracy=vertical_accuracy,
        speed=speed,
        timestamp=T0 + timedelta(seconds=offset_s),
    )


def make_cleaned(
    offset_s: float = 0.0,
    *,
    north_m: float = 0.0,
    altitude: float = 2000.0,
    horizontal_accuracy: float = 5.0,
    device_speed: float = -1.0,
) -> CleanedReading:
    return CleanedReading(
        latitude=BASE_LAT + north_m / METRES_PER_DEG_LAT,
        longitude=BASE_LON,
        altitude=altitude,
        timestamp=T0 + timedelta(seconds=offset_s),
        horizontal_accuracy=horizontal_accuracy,
        vertical_accuracy=5.0,
        device_speed=device_speed,
    )


def make_descent(
    count: int = 31,
    *,
    interval_s: float = 2.0,
    step_m: float = 20.0,
    drop_m: float = 10.0,
    device_speed: float = 10.0,
    start_offset_s: float = 0.0,
    start_altitude: float = 2000.0,
) -> list[RawReading]:
    """Straight descent heading north, one reading every ``interval_s``."""

    return [
        make_raw(
            start_offset_s + idx * interval_s,
            north_m=idx * step_m,
            altitude=start_altitude - idx * drop_m,
            speed=device_speed,
        )
        for idx in range(count)
    ]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def raw_reading():
    return make_raw


@pytest.fixture
def cleaned_reading():
    return make_cleaned


@pytest.fixture
def descent_stream():
    return make_descent


@pytest.fixture
def null_logger() -> logging.Logger:
    return NULL_LOGGER


@pytest.fixture
def start_time() -> datetime:
    return T0
