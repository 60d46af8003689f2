"""Central configuration for the slope tracker.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Every tuning default can be overridden through an
environment variable (optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Input/Output
# ---------------------------------------------------------------------------
# Named tracking profile used by the replay CLI when --profile is omitted.
TRACKING_PROFILE = os.getenv("TRACKING_PROFILE", "default")

# Paths can be absolute or relative.
OUTPUT_FILE = os.getenv("OUTPUT_FILE", "tracked_runs")

# Append _YYYYMMDD_HHMMSS to the output name when True.
OUTPUT_FILE_TIMESTAMP_ENABLED = _env_bool("OUTPUT_FILE_TIMESTAMP_ENABLED", True)

# Root logger level for the CLI entry points.
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ---------------------------------------------------------------------------
# Run detection
# ---------------------------------------------------------------------------
# Smoothed speed (m/s) at or above which a run starts building (~12.6 km/h).
RUN_START_SPEED_THRESHOLD = _env_float("RUN_START_SPEED_THRESHOLD", 3.5)

# Smoothed speed (m/s) at or below which the rider counts as stopped.
RUN_STOP_SPEED_THRESHOLD = _env_float("RUN_STOP_SPEED_THRESHOLD", 1.5)

# Consecutive readings above the start threshold before a run becomes active.
RUN_SUSTAINED_READINGS = _env_int("RUN_SUSTAINED_READINGS", 3)

# Seconds without movement before an active run ends (lift queues, falls).
RUN_STOP_TIME_THRESHOLD_S = _env_float("RUN_STOP_TIME_THRESHOLD_S", 30.0)


# ---------------------------------------------------------------------------
# Run validation
# ---------------------------------------------------------------------------
RUN_MIN_DURATION_S = _env_float("RUN_MIN_DURATION_S", 10.0)
RUN_MIN_DISTANCE_M = _env_float("RUN_MIN_DISTANCE_M", 50.0)

# Set to 0 or a negative value to disable the descent requirement.
RUN_MIN_DESCENT_M: float | None = _env_float("RUN_MIN_DESCENT_M", 20.0)
if RUN_MIN_DESCENT_M is not None and RUN_MIN_DESCENT_M <= 0:
    RUN_MIN_DESCENT_M = None


# ---------------------------------------------------------------------------
# Location filtering
# ---------------------------------------------------------------------------
# Readings with accuracy at or above these ceilings (metres) are dropped.
MAX_HORIZONTAL_ACCURACY_M = _env_float("MAX_HORIZONTAL_ACCURACY_M", 50.0)
MAX_VERTICAL_ACCURACY_M = _env_float("MAX_VERTICAL_ACCURACY_M", 50.0)

# Readings older than this many seconds at processing time are dropped.
MAX_LOCATION_AGE_S = _env_float("MAX_LOCATION_AGE_S", 5.0)

# Displacements at or above this (metres) are treated as GPS teleports.
MAX_DISTANCE_JUMP_M = _env_float("MAX_DISTANCE_JUMP_M", 50.0)

# Displacements below this (metres) are treated as GPS jitter.
MIN_DISTANCE_CHANGE_M = _env_float("MIN_DISTANCE_CHANGE_M", 0.1)

# Distance filter requested from the positioning collaborator (metres).
LOCATION_DISTANCE_FILTER_M = _env_float("LOCATION_DISTANCE_FILTER_M", 5.0)


# ---------------------------------------------------------------------------
# Speed smoothing
# ---------------------------------------------------------------------------
SPEED_WINDOW_SIZE = _env_int("SPEED_WINDOW_SIZE", 5)

# Minimum seconds between readings before a new speed is computed.
SPEED_MIN_TIME_DELTA_S = _env_float("SPEED_MIN_TIME_DELTA_S", 0.1)


# ---------------------------------------------------------------------------
# Adaptive accuracy
# ---------------------------------------------------------------------------
# Minimum seconds between two accuracy tier changes.
ACCURACY_MIN_UPDATE_INTERVAL_S = _env_float("ACCURACY_MIN_UPDATE_INTERVAL_S", 10.0)

# Battery fraction (0.0-1.0) at or below which accuracy is stepped down.
ACCURACY_BATTERY_THRESHOLD = _env_float("ACCURACY_BATTERY_THRESHOLD", 0.20)


# ---------------------------------------------------------------------------
# Noise filter
# ---------------------------------------------------------------------------
NOISE_BASE_PROCESS_NOISE = _env_float("NOISE_BASE_PROCESS_NOISE", 0.125)
NOISE_BASE_MEASUREMENT_NOISE = _env_float("NOISE_BASE_MEASUREMENT_NOISE", 1.0)
NOISE_SPEED_FACTOR = _env_float("NOISE_SPEED_FACTOR", 0.01)
NOISE_ACCURACY_FACTOR = _env_float("NOISE_ACCURACY_FACTOR", 0.1)
NOISE_ADAPTIVE_ENABLED = _env_bool("NOISE_ADAPTIVE_ENABLED", True)


# ---------------------------------------------------------------------------
# Route export / visualization
# ---------------------------------------------------------------------------
# Maximum deviation (metres) allowed when simplifying exported routes.
ROUTE_SIMPLIFICATION_TOLERANCE_M = _env_float("ROUTE_SIMPLIFICATION_TOLERANCE_M", 3.0)

# Automatically size columns after writing each sheet (openpyxl only).
EXCEL_AUTOSIZE_COLUMNS = True
EXCEL_AUTOSIZE_MAX_WIDTH = 60  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = 5000  # skip autosize for very large sheets

# Line colours cycled across runs on the HTML run map.
RUN_MAP_COLORS = (
    "#2c7bb6",
    "#d7191c",
    "#1a9641",
    "#fdae61",
    "#7b3294",
    "#008837",
)
RUN_MAP_TOP_SPEED_COLOR = "#d73027"
