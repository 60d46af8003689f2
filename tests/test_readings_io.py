"""Tests for loading recorded readings from CSV."""

from __future__ import annotations

from pathlib import Path

import pytest

from slope_tracker.errors import ReadingsFormatError
from slope_tracker.readings_io import read_readings, write_readings

HEADER = "timestamp,latitude,longitude,altitude,horizontal_accuracy,vertical_accuracy,speed\n"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_reads_and_sorts_rows(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "readings.csv",
        HEADER
        + "2025-01-15T09:00:02Z,45.92,6.87,1990,5,4,9.5\n"
        + "2025-01-15T09:00:00Z,45.91,6.87,2000,5,4,\n",
    )

    readings = read_readings(path)

    assert [r.altitude for r in readings] == [2000.0, 1990.0]
    assert readings[0].speed == -1.0
    assert readings[1].speed == 9.5
    assert readings[0].timestamp.tzinfo is not None
    assert (readings[1].timestamp - readings[0].timestamp).total_seconds() == 2.0


def test_speed_column_optional(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "no_speed.csv",
        "Timestamp,Latitude,Longitude,Altitude,Horizontal_Accuracy,Vertical_Accuracy\n"
        "2025-01-15T09:00:00Z,45.91,6.87,2000,5,4\n",
    )
    (reading,) = read_readings(path)
    assert reading.speed == -1.0
    assert reading.vertical_accuracy == 4.0


def test_missing_columns_reported(tmp_path: Path) -> None:
    path = _write(tmp_path / "bad.csv", "timestamp,latitude,longitude\n2025-01-15,1,2\n")
    with pytest.raises(ReadingsFormatError) as excinfo:
        read_readings(path)
    assert "altitude" in str(excinfo.value)


def test_non_numeric_value_rejected(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "garbage.csv",
        HEADER + "2025-01-15T09:00:00Z,north,6.87,2000,5,4,1\n",
    )
    with pytest.raises(ReadingsFormatError):
        read_readings(path)


def test_empty_file_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "empty.csv", "")
    with pytest.raises(ReadingsFormatError):
        read_readings(path)


def test_missing_file_raises_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_readings(tmp_path / "absent.csv")


def test_written_stream_loads_back(tmp_path: Path, descent_stream) -> None:
    readings = descent_stream(count=5)
    path = write_readings(tmp_path / "out" / "stream.csv", readings)

    loaded = read_readings(path)

    assert loaded == readings
