"""CSV reading layer for recorded position streams.

One row per reading. ``speed`` is optional (missing or blank means the device
did not report one); every other column is required.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Union

import pandas as pd

from .errors import ReadingsFormatError
from .models import RawReading

PathLike = Union[str, Path]

TIMESTAMP_COL = "timestamp"
SPEED_COL = "speed"
_NUMERIC_COLS = (
    "latitude",
    "longitude",
    "altitude",
    "horizontal_accuracy",
    "vertical_accuracy",
)
_REQUIRED_COLS = {TIMESTAMP_COL, *_NUMERIC_COLS}
_COLUMN_ORDER = [TIMESTAMP_COL, *_NUMERIC_COLS, SPEED_COL]


def _load_frame(path: PathLike) -> pd.DataFrame:
    try:
        return pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ReadingsFormatError(f"Unable to parse readings file '{path}': {exc}") from exc


def _validate_columns(df: pd.DataFrame, path: PathLike) -> None:
    missing = _REQUIRED_COLS - set(df.columns)
    if missing:
        raise ReadingsFormatError(
            f"Readings file '{path}' missing columns: {', '.join(sorted(missing))}"
        )


def read_readings(path: PathLike) -> List[RawReading]:
    """Load readings from ``path`` ordered by timestamp.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ReadingsFormatError: If the file cannot be parsed, a required column is
            missing or a value is not numeric.
    """

    df = _load_frame(path)
    df.columns = [str(col).strip().lower() for col in df.columns]
    _validate_columns(df, path)

    try:
        timestamps = pd.to_datetime(df[TIMESTAMP_COL], utc=True)
        numeric = df[list(_NUMERIC_COLS)].apply(pd.to_numeric, errors="raise")
    except (ValueError, TypeError) as exc:
        raise ReadingsFormatError(f"Invalid value in readings file '{path}': {exc}") from exc
    if numeric.isna().any().any():
        raise ReadingsFormatError(f"Readings file '{path}' has blank required values")

    if SPEED_COL in df.columns:
        speeds = pd.to_numeric(df[SPEED_COL], errors="coerce").fillna(-1.0)
    else:
        speeds = pd.Series(-1.0, index=df.index)

    readings = [
        RawReading(
            latitude=float(row.latitude),
            longitude=float(row.longitude),
            altitude=float(row.altitude),
            horizontal_accuracy=float(row.horizontal_accuracy),
            vertical_accuracy=float(row.vertical_accuracy),
            speed=float(speed),
            timestamp=timestamp.to_pydatetime(),
        )
        for row, speed, timestamp in zip(
            numeric.itertuples(index=False), speeds, timestamps
        )
    ]
    readings.sort(key=lambda r: r.timestamp)
    return readings


def write_readings(path: PathLike, readings: Iterable[RawReading]) -> Path:
    """Write readings in the format :func:`read_readings` accepts."""

    rows = [
        {
            TIMESTAMP_COL: reading.timestamp.isoformat(),
            "latitude": reading.latitude,
            "longitude": reading.longitude,
            "altitude": reading.altitude,
            "horizontal_accuracy": reading.horizontal_accuracy,
            "vertical_accuracy": reading.vertical_accuracy,
            SPEED_COL: reading.speed,
        }
        for reading in readings
    ]
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=_COLUMN_ORDER).to_csv(output, index=False)
    return output


__all__ = ["read_readings", "write_readings"]
