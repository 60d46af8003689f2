"""Tests for route helpers, the Excel export and the run map."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import folium
import pandas as pd
import pytest

from slope_tracker.config import RUN_MAP_TOP_SPEED_COLOR
from slope_tracker.excel_writer import RUNS_SHEET, SUMMARY_SHEET, write_runs
from slope_tracker.models import FinalizedRun, RoutePoint
from slope_tracker.route import decode_route, encode_route, route_length_m, simplify_route
from slope_tracker.run_map import create_runs_map


def _point(north_m: float, east_deg: float = 0.0, altitude: float = 2000.0) -> RoutePoint:
    return RoutePoint(
        latitude=45.9237 + north_m / 111195.08,
        longitude=6.8694 + east_deg,
        altitude=altitude,
    )


@pytest.fixture
def sample_run(start_time) -> FinalizedRun:
    points = [_point(idx * 20.0, altitude=2000.0 - idx * 10.0) for idx in range(11)]
    return FinalizedRun(
        start_time=start_time,
        end_time=start_time + timedelta(seconds=95),
        top_speed_mps=15.0,
        average_speed_mps=10.0,
        start_elevation_m=2000.0,
        end_elevation_m=1900.0,
        vertical_descent_m=100.0,
        distance_m=223.6,
        route_points=points,
        top_speed_point=points[6],
    )


def test_polyline_round_trip_keeps_coordinates(sample_run: FinalizedRun) -> None:
    decoded = decode_route(encode_route(sample_run.route_points))
    assert len(decoded) == len(sample_run.route_points)
    for (lat, lon), point in zip(decoded, sample_run.route_points):
        assert lat == pytest.approx(point.latitude, abs=1e-5)
        assert lon == pytest.approx(point.longitude, abs=1e-5)


def test_empty_route_encodes_to_empty_string() -> None:
    assert encode_route([]) == ""
    assert decode_route("") == []


def test_simplify_drops_collinear_points(sample_run: FinalizedRun) -> None:
    simplified = simplify_route(sample_run.route_points, tolerance_m=1.0)
    assert simplified == [sample_run.route_points[0], sample_run.route_points[-1]]


def test_simplify_keeps_corners() -> None:
    corner = [_point(0.0), _point(100.0), _point(100.0, east_deg=0.0015), _point(100.0, east_deg=0.003)]
    simplified = simplify_route(corner, tolerance_m=1.0)
    assert simplified[0] is corner[0]
    assert corner[1] in simplified
    assert simplified[-1] is corner[-1]


def test_simplify_returns_true_endpoints_for_dense_route() -> None:
    # Neighbours 2 m apart on northings near 5e6 m.
    dense = [_point(idx * 2.0, altitude=2000.0 - idx) for idx in range(40)]

    simplified = simplify_route(dense, tolerance_m=1.0)

    assert len(simplified) == 2
    assert simplified[0] is dense[0]
    assert simplified[-1] is dense[-1]
    assert simplified[-1].altitude == 1961.0


def test_route_length_matches_straight_line(sample_run: FinalizedRun) -> None:
    assert route_length_m(sample_run.route_points) == pytest.approx(200.0, rel=0.01)
    assert route_length_m(sample_run.route_points[:1]) == 0.0


def test_write_runs_creates_both_sheets(tmp_path: Path, sample_run: FinalizedRun) -> None:
    out_path = write_runs(tmp_path / "runs.xlsx", [sample_run, sample_run])

    with pd.ExcelFile(out_path) as xf:
        assert xf.sheet_names == [RUNS_SHEET, SUMMARY_SHEET]
        runs_df = pd.read_excel(xf, RUNS_SHEET)
        summary_df = pd.read_excel(xf, SUMMARY_SHEET)

    assert list(runs_df["Run"]) == [1, 2]
    assert runs_df.loc[0, "Top Speed (km/h)"] == pytest.approx(54.0)
    assert runs_df.loc[0, "Duration"] == "1m 35s"
    assert decode_route(runs_df.loc[0, "Route Polyline"])
    summary = dict(zip(summary_df["Metric"], summary_df["Value"]))
    assert int(summary["Runs"]) == 2
    assert float(summary["Total Descent (m)"]) == pytest.approx(200.0)


def test_write_runs_without_runs(tmp_path: Path) -> None:
    out_path = write_runs(tmp_path / "empty.xlsx", [])
    with pd.ExcelFile(out_path) as xf:
        runs_df = pd.read_excel(xf, RUNS_SHEET)
    assert list(runs_df.columns) == ["Message"]


def test_header_row_styled(tmp_path: Path, sample_run: FinalizedRun) -> None:
    from openpyxl import load_workbook

    out_path = write_runs(tmp_path / "styled.xlsx", [sample_run])
    workbook = load_workbook(out_path)
    header = workbook[RUNS_SHEET]["A1"]
    assert header.font.bold
    assert workbook[RUNS_SHEET].column_dimensions["A"].width >= 6


def test_create_runs_map_draws_routes_and_top_speed(
    tmp_path: Path, sample_run: FinalizedRun
) -> None:
    output_path = tmp_path / "maps" / "runs.html"
    map_object = create_runs_map([sample_run], output_html_path=output_path)

    assert isinstance(map_object, folium.Map)
    assert output_path.exists(), "Expected the HTML map output to be written"
    children = list(map_object._children.values())
    assert any(isinstance(child, folium.vector_layers.PolyLine) for child in children)
    marker_colors = {
        child.options.get("color")
        for child in children
        if isinstance(child, folium.vector_layers.CircleMarker)
    }
    assert RUN_MAP_TOP_SPEED_COLOR in marker_colors
    assert "top speed" in output_path.read_text(encoding="utf-8")


def test_create_runs_map_requires_points() -> None:
    with pytest.raises(ValueError):
        create_runs_map([])
