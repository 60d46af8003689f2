"""Tests for run accumulation, validation and hand-off."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from slope_tracker.models import FinalizedRun
from slope_tracker.session import RunSessionManager
from slope_tracker.settings import RunValidationConfig


@pytest.fixture
def manager(null_logger) -> RunSessionManager:
    return RunSessionManager(RunValidationConfig(10.0, 50.0, 20.0), logger=null_logger)


def _candidate(start_time, *, duration_s, distance_m, descent_m) -> FinalizedRun:
    return FinalizedRun(
        start_time=start_time,
        end_time=start_time + timedelta(seconds=duration_s),
        top_speed_mps=12.0,
        average_speed_mps=9.0,
        start_elevation_m=2000.0,
        end_elevation_m=2000.0 - descent_m,
        vertical_descent_m=descent_m,
        distance_m=distance_m,
    )


def _record_descent(manager, cleaned_reading, start_time, *, steps=6, speed=10.0):
    manager.start_new_run(cleaned_reading(0.0), start_time)
    for idx in range(1, steps + 1):
        manager.update_current_run(
            cleaned_reading(idx * 2.0, north_m=idx * 20.0, altitude=2000.0 - idx * 10.0),
            speed + idx,
            20.0,
        )


def test_validation_reports_only_failing_duration(manager, start_time) -> None:
    run = _candidate(start_time, duration_s=5.0, distance_m=200.0, descent_m=50.0)

    result = manager.validate(run)

    assert not result.is_valid
    assert len(result.reasons) == 1
    assert result.reasons[0].startswith("Duration too short")


def test_validation_collects_every_failure(manager, start_time) -> None:
    run = _candidate(start_time, duration_s=5.0, distance_m=10.0, descent_m=1.0)

    reasons = manager.validate(run).reasons

    assert [reason.split(":")[0] for reason in reasons] == [
        "Duration too short",
        "Distance too short",
        "Descent too small",
    ]


def test_descent_check_skipped_when_unset(manager, start_time) -> None:
    run = _candidate(start_time, duration_s=60.0, distance_m=500.0, descent_m=0.0)
    assert manager.validate(run, RunValidationConfig.car_testing()).is_valid
    assert not manager.validate(run).is_valid


def test_completed_run_is_finalized_and_handed_off(
    cleaned_reading, start_time, null_logger
) -> None:
    saved = []
    manager = RunSessionManager(sink=saved.append, logger=null_logger)
    _record_descent(manager, cleaned_reading, start_time)

    run = manager.end_current_run(start_time + timedelta(seconds=12))

    assert run is not None
    assert saved == [run]
    assert manager.completed_runs == [run]
    assert not manager.has_active_run
    assert run.distance_m == pytest.approx(120.0)
    assert run.vertical_descent_m == pytest.approx(60.0)
    assert run.top_speed_mps == pytest.approx(16.0)
    assert run.average_speed_mps == pytest.approx(13.5)
    assert run.top_speed_point == run.route_points[-1]
    assert len(run.route_points) == 7
    assert run.duration_s == pytest.approx(12.0)
    assert manager.session_stats.run_count == 1
    assert manager.session_stats.total_descent_m == pytest.approx(60.0)


def test_rejected_run_is_discarded(cleaned_reading, start_time, null_logger) -> None:
    saved = []
    manager = RunSessionManager(sink=saved.append, logger=null_logger)
    _record_descent(manager, cleaned_reading, start_time, steps=1)

    assert manager.end_current_run(start_time + timedelta(seconds=3)) is None
    assert saved == []
    assert manager.completed_runs == []
    assert manager.session_stats.run_count == 0
    assert not manager.has_active_run


def test_duplicate_timestamp_is_skipped(manager, cleaned_reading, start_time) -> None:
    manager.start_new_run(cleaned_reading(0.0), start_time)
    manager.update_current_run(cleaned_reading(0.0, north_m=5.0), 30.0, 5.0)
    manager.update_current_run(cleaned_reading(1.0, north_m=5.0), 6.0, 5.0)
    manager.update_current_run(cleaned_reading(1.0, north_m=9.0), 7.0, 4.0)

    assert len(manager.current_route_points) == 2
    assert manager.current_run_distance == pytest.approx(5.0)
    assert manager.current_run_top_speed == pytest.approx(6.0)


def test_misuse_logs_warning_and_is_ignored(cleaned_reading, start_time, caplog) -> None:
    manager = RunSessionManager(logger=logging.getLogger("test.session"))

    with caplog.at_level(logging.WARNING, logger="test.session"):
        manager.update_current_run(cleaned_reading(1.0), 5.0, 5.0)
        assert manager.end_current_run(start_time) is None
        manager.start_new_run(cleaned_reading(0.0, altitude=1500.0), start_time)
        manager.start_new_run(cleaned_reading(5.0, altitude=900.0), start_time)

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 3
    assert manager.current_run is not None
    assert manager.current_run.start_elevation == 1500.0


def test_sink_failure_keeps_run(cleaned_reading, start_time, caplog) -> None:
    def failing_sink(_run: FinalizedRun) -> None:
        raise OSError("disk full")

    manager = RunSessionManager(sink=failing_sink, logger=logging.getLogger("test.sink"))
    _record_descent(manager, cleaned_reading, start_time)

    with caplog.at_level(logging.WARNING, logger="test.sink"):
        run = manager.end_current_run(start_time + timedelta(seconds=12))

    assert run is not None
    assert manager.completed_runs == [run]
    assert "sink failed" in caplog.text.lower()


def test_captured_validation_config_wins(cleaned_reading, start_time, null_logger) -> None:
    manager = RunSessionManager(RunValidationConfig(10.0, 50.0, 20.0), logger=null_logger)
    manager.start_new_run(
        cleaned_reading(0.0), start_time, validation=RunValidationConfig(1.0, 1.0, None)
    )
    manager.update_current_run(cleaned_reading(2.0, north_m=5.0), 3.0, 5.0)

    assert manager.end_current_run(start_time + timedelta(seconds=2)) is not None


def test_cancel_and_reset(manager, cleaned_reading, start_time) -> None:
    _record_descent(manager, cleaned_reading, start_time)
    manager.cancel_current_run()
    assert not manager.has_active_run
    assert manager.completed_runs == []

    _record_descent(manager, cleaned_reading, start_time)
    manager.end_current_run(start_time + timedelta(seconds=12))
    assert manager.session_stats.run_count == 1

    manager.reset_session()
    assert manager.completed_runs == []
    assert manager.session_stats.run_count == 0
    assert manager.session_stats.total_distance_m == 0.0


def test_live_accessors_without_run(manager, start_time) -> None:
    assert manager.current_run_distance == 0.0
    assert manager.current_run_top_speed == 0.0
    assert manager.current_run_average_speed == 0.0
    assert manager.current_route_points == []
    assert manager.current_elevation is None
    assert manager.current_run_duration(start_time) == 0.0


def test_session_stats_average_is_mean_of_runs(manager, cleaned_reading, start_time) -> None:
    _record_descent(manager, cleaned_reading, start_time, speed=10.0)
    first = manager.end_current_run(start_time + timedelta(seconds=12))
    _record_descent(manager, cleaned_reading, start_time, speed=20.0)
    second = manager.end_current_run(start_time + timedelta(seconds=12))

    stats = manager.session_stats
    assert stats.run_count == 2
    assert stats.average_speed_mps == pytest.approx(
        (first.average_speed_mps + second.average_speed_mps) / 2
    )
    assert stats.top_speed_mps == pytest.approx(26.0)
    assert stats.total_distance_m == pytest.approx(240.0)
