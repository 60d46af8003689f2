"""Render finalized runs on an interactive map."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Union

import folium  # Using folium to build an interactive Leaflet map.
import numpy as np

from .config import RUN_MAP_COLORS, RUN_MAP_TOP_SPEED_COLOR, ROUTE_SIMPLIFICATION_TOLERANCE_M
from .models import FinalizedRun, LatLon
from .route import simplify_route
from .utils import format_duration

PathLike = Union[str, Path]


def _map_center(runs: Sequence[FinalizedRun]) -> LatLon:
    points = [point.coordinate for run in runs for point in run.route_points]
    if not points:
        raise ValueError("At least one run with route points is required")
    array = np.asarray(points, dtype=float)
    return float(array[:, 0].mean()), float(array[:, 1].mean())


def _run_tooltip(index: int, run: FinalizedRun) -> str:
    return (
        f"Run {index}: {run.distance_m:.0f} m, "
        f"{run.vertical_descent_m:.0f} m descent, "
        f"{format_duration(run.duration_s)}"
    )


def create_runs_map(
    runs: Sequence[FinalizedRun],
    *,
    simplification_tolerance_m: float = ROUTE_SIMPLIFICATION_TOLERANCE_M,
    output_html_path: Optional[PathLike] = None,
) -> folium.Map:
    """Create a map with one polyline per run and a marker at each top speed.

    Args:
        runs: Finalized runs to draw, in session order.
        simplification_tolerance_m: Route simplification applied before drawing.
        output_html_path: Optional path to persist the map as an HTML file.

    Returns:
        A :class:`folium.Map` instance containing the overlay.

    Raises:
        ValueError: If no run carries route points.
    """

    drawable: List[FinalizedRun] = [run for run in runs if run.route_points]
    folium_map = folium.Map(location=_map_center(drawable), zoom_start=14, control_scale=True)

    for index, run in enumerate(drawable, start=1):
        color = RUN_MAP_COLORS[(index - 1) % len(RUN_MAP_COLORS)]
        route = simplify_route(run.route_points, simplification_tolerance_m)
        if len(route) >= 2:
            folium.PolyLine(
                [point.coordinate for point in route],
                color=color,
                weight=4,
                opacity=0.8,
                tooltip=_run_tooltip(index, run),
            ).add_to(folium_map)
        if run.top_speed_point is not None:
            popup = folium.Popup(
                html=(
                    f"<strong>Run {index} top speed:</strong> "
                    f"{run.top_speed_kmh:.1f} km/h"
                ),
                max_width=300,
            )
            folium.CircleMarker(
                location=run.top_speed_point.coordinate,
                radius=6,
                color=RUN_MAP_TOP_SPEED_COLOR,
                fill=True,
                fill_color=RUN_MAP_TOP_SPEED_COLOR,
                tooltip="Top speed",
                popup=popup,
            ).add_to(folium_map)

    if output_html_path is not None:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        folium_map.save(str(output_path))

    return folium_map


__all__ = ["create_runs_map"]
