"""Excel writer for tracked runs and their session summary."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .models import FinalizedRun, SessionStats
from .route import encode_route
from .utils import format_duration, mps_to_kmh

RUNS_SHEET = "Runs"
SUMMARY_SHEET = "Summary"
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"

RUN_COLUMNS = [
    "Run",
    "Start",
    "End",
    "Duration",
    "Duration (s)",
    "Distance (m)",
    "Descent (m)",
    "Start Elevation (m)",
    "End Elevation (m)",
    "Top Speed (km/h)",
    "Avg Speed (km/h)",
    "Route Points",
    "Route Polyline",
    "Run ID",
]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FF9BC2E6")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

LOGGER = logging.getLogger(__name__)

PathInput = str | Path | PathLike[str]


def _excel_datetime(value: datetime) -> datetime:
    # openpyxl rejects tz-aware datetimes; store UTC wall time.
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def build_run_rows(runs: Sequence[FinalizedRun]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for index, run in enumerate(runs, start=1):
        rows.append(
            {
                "Run": index,
                "Start": _excel_datetime(run.start_time),
                "End": _excel_datetime(run.end_time),
                "Duration": format_duration(run.duration_s),
                "Duration (s)": round(run.duration_s, 1),
                "Distance (m)": round(run.distance_m, 1),
                "Descent (m)": round(run.vertical_descent_m, 1),
                "Start Elevation (m)": round(run.start_elevation_m, 1),
                "End Elevation (m)": round(run.end_elevation_m, 1),
                "Top Speed (km/h)": round(run.top_speed_kmh, 1),
                "Avg Speed (km/h)": round(run.average_speed_kmh, 1),
                "Route Points": len(run.route_points),
                "Route Polyline": encode_route(run.route_points),
                "Run ID": run.id,
            }
        )
    return rows


def build_summary_rows(runs: Sequence[FinalizedRun]) -> List[Dict[str, Any]]:
    stats = SessionStats()
    for run in runs:
        stats.update(run)
    total_time = sum(run.duration_s for run in runs)
    return [
        {"Metric": "Runs", "Value": stats.run_count},
        {"Metric": "Total Distance (m)", "Value": round(stats.total_distance_m, 1)},
        {"Metric": "Total Descent (m)", "Value": round(stats.total_descent_m, 1)},
        {"Metric": "Total Run Time", "Value": format_duration(total_time)},
        {"Metric": "Top Speed (km/h)", "Value": round(mps_to_kmh(stats.top_speed_mps), 1)},
        {
            "Metric": "Avg Speed (km/h)",
            "Value": round(mps_to_kmh(stats.average_speed_mps), 1),
        },
    ]


def write_runs(filepath: PathInput, runs: Sequence[FinalizedRun]) -> Path:
    """Write a ``Runs`` sheet and a ``Summary`` sheet to ``filepath``."""

    output = Path(filepath)
    output.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(
        output, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        if runs:
            runs_df = pd.DataFrame(build_run_rows(runs), columns=RUN_COLUMNS)
        else:
            runs_df = pd.DataFrame({"Message": ["No runs recorded."]})
        runs_df.to_excel(writer, sheet_name=RUNS_SHEET, index=False)
        summary_df = pd.DataFrame(build_summary_rows(runs), columns=["Metric", "Value"])
        summary_df.to_excel(writer, sheet_name=SUMMARY_SHEET, index=False)

        for sheet_name, df in ((RUNS_SHEET, runs_df), (SUMMARY_SHEET, summary_df)):
            ws = writer.sheets[sheet_name]
            _style_header_row(ws, 1, len(df.columns))
            _autosize(ws)
    LOGGER.info("Wrote %s runs to %s", len(runs), output)
    return output


def _style_header_row(ws: Worksheet, row_idx: int, max_col: int | None = None) -> None:
    if row_idx <= 0:
        return
    max_col = max_col or ws.max_column
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=row_idx, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    from .config import (
        EXCEL_AUTOSIZE_COLUMNS,
        EXCEL_AUTOSIZE_MAX_ROWS,
        EXCEL_AUTOSIZE_MAX_WIDTH,
        EXCEL_AUTOSIZE_MIN_WIDTH,
        EXCEL_AUTOSIZE_PADDING,
    )

    if not EXCEL_AUTOSIZE_COLUMNS or ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    try:
        for col_cells in ws.columns:
            col_letter = getattr(col_cells[0], "column_letter", None)
            max_len = max(
                (len(str(cell.value)) for cell in col_cells if cell.value is not None),
                default=0,
            )
            width = min(
                EXCEL_AUTOSIZE_MAX_WIDTH,
                max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
            )
            if col_letter:
                ws.column_dimensions[col_letter].width = width
    except Exception as exc:  # pragma: no cover - autosize is best-effort
        LOGGER.debug("Autosize failed for sheet %s: %s", getattr(ws, "title", "?"), exc)


__all__ = ["RUNS_SHEET", "SUMMARY_SHEET", "build_run_rows", "build_summary_rows", "write_runs"]
