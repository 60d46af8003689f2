"""Command line entry point: replay a recorded stream and export its runs."""

from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import LOG_LEVEL, OUTPUT_FILE, OUTPUT_FILE_TIMESTAMP_ENABLED, TRACKING_PROFILE
from .errors import ConfigurationError, ReadingsFormatError
from .excel_writer import write_runs
from .models import FinalizedRun
from .readings_io import read_readings
from .run_map import create_runs_map
from .settings import PRESET_NAMES, TrackingConfiguration
from .tracker import replay
from .utils import format_duration, json_dumps_sorted


def _setup_logging(level: str = LOG_LEVEL) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.INFO),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _resolve_output_path() -> str:
    if OUTPUT_FILE_TIMESTAMP_ENABLED:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{OUTPUT_FILE}_{timestamp}.xlsx"
    return f"{OUTPUT_FILE}.xlsx"


def runs_to_json(runs: Sequence[FinalizedRun]) -> str:
    payload = []
    for run in runs:
        record = asdict(run)
        record["duration_s"] = run.duration_s
        payload.append(record)
    return json_dumps_sorted(payload, indent=2)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slope_tracker",
        description="Detect runs in a recorded GPS stream and export them.",
    )
    parser.add_argument("readings", type=Path, help="CSV file of recorded readings")
    parser.add_argument(
        "--profile",
        default=TRACKING_PROFILE,
        help=f"Tracking profile ({', '.join(PRESET_NAMES)}; default: {TRACKING_PROFILE})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Workbook path; defaults to OUTPUT_FILE with an optional timestamp",
    )
    parser.add_argument("--map", type=Path, help="Optional HTML map of the runs")
    parser.add_argument(
        "--json", action="store_true", help="Print the runs as JSON to stdout"
    )
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m slope_tracker``."""

    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    try:
        config = TrackingConfiguration.preset(args.profile)
    except ConfigurationError as exc:
        logging.error("%s", exc)
        return 2

    try:
        readings = read_readings(args.readings)
    except (ReadingsFormatError, FileNotFoundError) as exc:
        logging.error("Failed to load readings '%s': %s", args.readings, exc)
        return 1

    logging.info(
        "Replaying %s readings from %s (profile=%s)",
        len(readings),
        args.readings,
        args.profile,
    )
    runs: List[FinalizedRun] = replay(readings, config, profile=args.profile)
    for index, run in enumerate(runs, start=1):
        logging.info(
            "Run %s: %s, %.0f m, %.0f m descent, top %.1f km/h",
            index,
            format_duration(run.duration_s),
            run.distance_m,
            run.vertical_descent_m,
            run.top_speed_kmh,
        )

    output_file = args.output or Path(_resolve_output_path())
    write_runs(output_file, runs)
    logging.info("Results saved to %s (runs=%s)", output_file, len(runs))

    if args.map is not None:
        if runs:
            create_runs_map(runs, output_html_path=args.map)
            logging.info("Run map written to %s", args.map)
        else:
            logging.warning("No runs detected; skipping map")

    if args.json:
        print(runs_to_json(runs))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
