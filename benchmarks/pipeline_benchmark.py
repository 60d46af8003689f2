"""Benchmark the tracking pipeline and route export with long reading streams."""

from __future__ import annotations

import argparse
import statistics
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from slope_tracker.events import NULL_LOGGER  # noqa: E402
from slope_tracker.models import RawReading  # noqa: E402
from slope_tracker.route import encode_route, simplify_route  # noqa: E402
from slope_tracker.settings import TrackingConfiguration  # noqa: E402
from slope_tracker.tracker import replay  # noqa: E402


@dataclass(slots=True)
class StageDurations:
    """Timing measurements (in seconds) for one benchmark iteration."""

    replay: float
    simplify: float
    encode: float

    @property
    def total(self) -> float:
        return self.replay + self.simplify + self.encode


@dataclass(slots=True)
class BenchmarkSummary:
    """Aggregated statistics for multiple benchmark iterations."""

    reading_count: int
    iterations: int
    run_count: int
    mean_replay_ms: float
    mean_simplify_ms: float
    mean_encode_ms: float
    mean_total_ms: float
    worst_total_ms: float


def _build_readings(reading_count: int) -> List[RawReading]:
    """Generate alternating descents and lift rides, one reading per second."""

    start = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
    lat, lon, alt = 45.9237, 6.8694, 2400.0
    readings: List[RawReading] = []
    for idx in range(reading_count):
        # 120 s descending at ~10 m/s, then 60 s standing in a lift queue.
        descending = idx % 180 < 120
        if descending:
            lat -= 9.0e-5
            alt -= 2.5
        readings.append(
            RawReading(
                latitude=lat,
                longitude=lon,
                altitude=alt,
                horizontal_accuracy=5.0,
                vertical_accuracy=4.0,
                speed=10.0 if descending else 0.0,
                timestamp=start + timedelta(seconds=idx),
            )
        )
    return readings


def _run_iteration(readings: List[RawReading], config: TrackingConfiguration) -> tuple[StageDurations, int]:
    start = time.perf_counter()
    runs = replay(readings, config, logger=NULL_LOGGER)
    replay_dur = time.perf_counter() - start

    start = time.perf_counter()
    simplified = [simplify_route(run.route_points) for run in runs]
    simplify_dur = time.perf_counter() - start

    start = time.perf_counter()
    for route in simplified:
        encode_route(route)
    encode_dur = time.perf_counter() - start

    return StageDurations(replay_dur, simplify_dur, encode_dur), len(runs)


def run_benchmark(reading_count: int, iterations: int) -> BenchmarkSummary:
    """Benchmark replay plus export and return aggregated timings."""

    if reading_count < 1000:
        raise ValueError("reading_count must be at least 1,000")
    if iterations <= 0:
        raise ValueError("iterations must be positive")

    readings = _build_readings(reading_count)
    config = TrackingConfiguration.default()
    durations: List[StageDurations] = []
    run_count = 0
    for _ in range(iterations):
        stage, run_count = _run_iteration(readings, config)
        durations.append(stage)

    return BenchmarkSummary(
        reading_count=reading_count,
        iterations=iterations,
        run_count=run_count,
        mean_replay_ms=statistics.fmean(item.replay for item in durations) * 1000.0,
        mean_simplify_ms=statistics.fmean(item.simplify for item in durations) * 1000.0,
        mean_encode_ms=statistics.fmean(item.encode for item in durations) * 1000.0,
        mean_total_ms=statistics.fmean(item.total for item in durations) * 1000.0,
        worst_total_ms=max(item.total for item in durations) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float]:
    return {
        "reading_count": summary.reading_count,
        "iterations": summary.iterations,
        "run_count": summary.run_count,
        "mean_replay_ms": summary.mean_replay_ms,
        "mean_simplify_ms": summary.mean_simplify_ms,
        "mean_encode_ms": summary.mean_encode_ms,
        "mean_total_ms": summary.mean_total_ms,
        "worst_total_ms": summary.worst_total_ms,
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark the tracking pipeline with long reading streams",
    )
    parser.add_argument(
        "--readings",
        type=int,
        default=36000,
        help="Number of synthetic readings (one per second)",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of repetitions for averaging",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point when running the module as a script."""

    args = _parse_args()
    summary = run_benchmark(args.readings, args.iterations)
    for key, value in _format_summary(summary).items():
        if key in {"reading_count", "iterations", "run_count"}:
            print(f"{key}: {value}")
        else:
            print(f"{key}: {value:.3f}")


if __name__ == "__main__":
    main()
