"""Tests for reading validation, smoothing and speed derivation."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from slope_tracker.location.processor import ReadingProcessor, ValidationFailure
from slope_tracker.models import AccuracyTier, SpeedSource
from slope_tracker.settings import (
    AdaptiveAccuracyConfig,
    HybridSpeedConfig,
    LocationFilteringConfig,
    SpeedSmoothingConfig,
    TrackingConfiguration,
)


@pytest.fixture
def processor(null_logger) -> ReadingProcessor:
    return ReadingProcessor(logger=null_logger)


@pytest.mark.parametrize(
    "kwargs, reason",
    [
        ({"horizontal_accuracy": -1.0}, ValidationFailure.NEGATIVE_ACCURACY),
        ({"vertical_accuracy": -1.0}, ValidationFailure.NEGATIVE_ACCURACY),
        ({"horizontal_accuracy": 50.0}, ValidationFailure.POOR_HORIZONTAL_ACCURACY),
        ({"horizontal_accuracy": 80.0}, ValidationFailure.POOR_HORIZONTAL_ACCURACY),
        ({"vertical_accuracy": 50.0}, ValidationFailure.POOR_VERTICAL_ACCURACY),
    ],
)
def test_invalid_accuracy_never_produces_a_reading(
    processor: ReadingProcessor, raw_reading, start_time, kwargs, reason
) -> None:
    reading = raw_reading(**kwargs)

    result = processor.validate(reading, start_time)

    assert not result.is_valid
    assert result.reason is reason
    assert processor.process(reading, start_time) is None


def test_stale_reading_rejected(processor: ReadingProcessor, raw_reading, start_time) -> None:
    reading = raw_reading()

    assert processor.validate(reading, start_time + timedelta(seconds=4.9)).is_valid
    stale = processor.validate(reading, start_time + timedelta(seconds=5))
    assert stale.reason is ValidationFailure.STALE_TIMESTAMP


def test_rejection_emits_filtered_event(raw_reading, start_time, caplog) -> None:
    logger = logging.getLogger("test.processor.events")
    processor = ReadingProcessor(logger=logger)

    with caplog.at_level(logging.WARNING, logger="test.processor.events"):
        processor.process(raw_reading(horizontal_accuracy=-1.0), start_time)

    records = [r for r in caplog.records if getattr(r, "tracking_event", None)]
    assert [r.tracking_event for r in records] == ["location_filtered"]
    assert records[0].tracking_metadata["reason"] == "Negative accuracy values"


def test_rejected_reading_leaves_filters_untouched(
    processor: ReadingProcessor, raw_reading, start_time
) -> None:
    processor.process(raw_reading(horizontal_accuracy=80.0, north_m=500.0), start_time)
    first = processor.process(raw_reading(north_m=10.0), start_time)

    # The first accepted reading anchors the filters exactly.
    assert first is not None
    assert first.latitude == raw_reading(north_m=10.0).latitude
    assert first.altitude == 2000.0


def test_process_carries_device_speed(processor: ReadingProcessor, raw_reading, start_time) -> None:
    cleaned = processor.process(raw_reading(speed=7.5), start_time)
    assert cleaned is not None
    assert cleaned.device_speed == 7.5
    assert cleaned.timestamp == start_time


def test_speed_is_moving_average_of_computed_speeds(cleaned_reading, null_logger) -> None:
    processor = ReadingProcessor(
        speed_config=SpeedSmoothingConfig(window_size=2, min_time_delta_s=0.1),
        logger=null_logger,
    )
    a = cleaned_reading(0.0)
    b = cleaned_reading(1.0, north_m=4.0)
    c = cleaned_reading(2.0, north_m=12.0)
    d = cleaned_reading(3.0, north_m=24.0)

    assert processor.calculate_speed(a, b) == pytest.approx(4.0, rel=1e-3)
    assert processor.calculate_speed(b, c) == pytest.approx(6.0, rel=1e-3)
    # Window of two: (8 + 12) / 2.
    assert processor.calculate_speed(c, d) == pytest.approx(10.0, rel=1e-3)
    assert processor.last_speed_source is SpeedSource.COMPUTED
    assert len(processor.speed_history) == 2


def test_speed_below_min_time_delta_returns_previous_smoothed(
    cleaned_reading, null_logger
) -> None:
    processor = ReadingProcessor(logger=null_logger)
    a = cleaned_reading(0.0)
    b = cleaned_reading(2.0, north_m=10.0)
    first = processor.calculate_speed(a, b)

    too_soon = cleaned_reading(2.05, north_m=40.0)

    assert processor.calculate_speed(b, too_soon) == first
    assert ReadingProcessor(logger=null_logger).calculate_speed(b, too_soon) == 0.0


def test_computed_speed_includes_altitude_without_hybrid(cleaned_reading, null_logger) -> None:
    processor = ReadingProcessor(logger=null_logger)
    a = cleaned_reading(0.0, altitude=100.0)
    b = cleaned_reading(1.0, north_m=3.0, altitude=96.0)

    assert processor.calculate_speed(a, b) == pytest.approx(5.0, rel=1e-3)


def test_hybrid_speed_prefers_device_at_high_speed(cleaned_reading, null_logger) -> None:
    processor = ReadingProcessor(
        speed_config=SpeedSmoothingConfig(window_size=1),
        hybrid_config=HybridSpeedConfig(),
        logger=null_logger,
    )
    a = cleaned_reading(0.0)
    b = cleaned_reading(2.0, north_m=30.0, device_speed=13.0)

    assert processor.calculate_speed(a, b) == pytest.approx(13.0)
    assert processor.last_speed_source is SpeedSource.DEVICE


def test_mixed_sources_report_blended(cleaned_reading, null_logger) -> None:
    processor = ReadingProcessor(hybrid_config=HybridSpeedConfig(), logger=null_logger)
    a = cleaned_reading(0.0)
    b = cleaned_reading(2.0, north_m=30.0, device_speed=13.0)
    c = cleaned_reading(4.0, north_m=32.0, device_speed=-1.0)

    processor.calculate_speed(a, b)
    processor.calculate_speed(b, c)

    assert processor.last_speed_source is SpeedSource.BLENDED


def test_distance_realism_bounds(processor: ReadingProcessor) -> None:
    assert processor.is_distance_realistic(5.0)
    assert not processor.is_distance_realistic(200.0)
    assert not processor.is_distance_realistic(50.0)
    assert not processor.is_distance_realistic(0.05)


def test_distance_3d_combines_horizontal_and_vertical(
    processor: ReadingProcessor, cleaned_reading
) -> None:
    a = cleaned_reading(0.0, altitude=10.0)
    b = cleaned_reading(1.0, north_m=30.0, altitude=50.0)
    assert processor.distance_3d(a, b) == pytest.approx(50.0, rel=1e-3)


def test_recommend_accuracy_rate_limited(start_time, null_logger) -> None:
    processor = ReadingProcessor(
        accuracy_config=AdaptiveAccuracyConfig(), logger=null_logger
    )

    assert processor.recommend_accuracy(12.0, start_time) is AccuracyTier.BEST_FOR_NAVIGATION
    assert processor.recommend_accuracy(12.0, start_time + timedelta(seconds=1)) is None
    assert processor.recommend_accuracy(0.5, start_time + timedelta(seconds=5)) is None
    assert (
        processor.recommend_accuracy(0.5, start_time + timedelta(seconds=11))
        is AccuracyTier.HUNDRED_METERS
    )


def test_recommend_accuracy_without_selector_is_none(processor, start_time) -> None:
    assert processor.recommend_accuracy(12.0, start_time) is None


def test_quality_tracked_for_accepted_readings(raw_reading, start_time, null_logger) -> None:
    processor = ReadingProcessor.from_configuration(
        TrackingConfiguration.default(), logger=null_logger
    )
    for _ in range(3):
        processor.process(raw_reading(horizontal_accuracy=40.0), start_time)

    assert processor.gps_quality is not None
    assert processor.should_warn_about_gps_quality()
    assert "poor" in processor.gps_quality_description().lower()


def test_reset_clears_speed_history_and_filters(
    raw_reading, cleaned_reading, start_time, null_logger
) -> None:
    processor = ReadingProcessor(logger=null_logger)
    processor.process(raw_reading(north_m=0.0), start_time)
    processor.calculate_speed(cleaned_reading(0.0), cleaned_reading(1.0, north_m=5.0))

    processor.reset()

    assert processor.smoothed_speed == 0.0
    assert processor.speed_history == ()
    anchored = processor.process(raw_reading(north_m=400.0), start_time)
    assert anchored is not None
    assert anchored.latitude == raw_reading(north_m=400.0).latitude


def test_tight_location_config_applies(raw_reading, start_time, null_logger) -> None:
    processor = ReadingProcessor(LocationFilteringConfig.high_accuracy(), logger=null_logger)
    assert processor.process(raw_reading(horizontal_accuracy=25.0), start_time) is None
