"""Route geometry helpers: polyline encoding, simplification and length."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from polyline import decode as polyline_decode
from polyline import encode as polyline_encode
from pyproj import CRS, Transformer
from shapely.geometry import LineString

from .config import ROUTE_SIMPLIFICATION_TOLERANCE_M
from .models import LatLon, RoutePoint

MetricArray = NDArray[np.float64]


def encode_route(points: Iterable[RoutePoint], precision: int = 5) -> str:
    """Encode route coordinates as a Google polyline string."""

    coords = [point.coordinate for point in points]
    if not coords:
        return ""
    return polyline_encode(coords, precision)


def decode_route(encoded: str, precision: int = 5) -> List[LatLon]:
    """Decode an encoded polyline string into a list of (lat, lon) tuples."""

    if not encoded:
        return []
    try:
        decoded = polyline_decode(encoded, precision)
    except (ValueError, TypeError, IndexError) as exc:
        raise ValueError("Unable to decode polyline") from exc
    return [(float(lat), float(lon)) for lat, lon in decoded]


def project_points(points: Sequence[LatLon]) -> Tuple[MetricArray, Transformer]:
    """Project lat/lon points into a local metric coordinate system."""

    if not points:
        raise ValueError("Cannot project an empty point collection")
    transformer = _build_local_transformer(points)
    lats = np.asarray([pt[0] for pt in points], dtype=float)
    lons = np.asarray([pt[1] for pt in points], dtype=float)
    xs, ys = transformer.transform(lons, lats)
    return np.column_stack((xs, ys)).astype(float, copy=False), transformer


def simplify_route(
    points: Sequence[RoutePoint],
    tolerance_m: float = ROUTE_SIMPLIFICATION_TOLERANCE_M,
) -> List[RoutePoint]:
    """Drop route points that deviate less than ``tolerance_m`` from the line.

    Kept points are the original objects, so altitude and timestamps survive.
    Endpoints are always preserved.
    """

    if len(points) < 3 or tolerance_m <= 0:
        return list(points)
    metric, _ = project_points([point.coordinate for point in points])
    simplified = LineString(metric).simplify(tolerance_m, preserve_topology=False)
    kept = np.asarray(simplified.coords, dtype=float)

    result: List[RoutePoint] = []
    cursor = 0
    for vertex in kept:
        # Absolute tolerance only; UTM northings are ~5e6 m.
        while cursor < len(metric) and not np.allclose(
            metric[cursor], vertex, rtol=0.0, atol=1e-6
        ):
            cursor += 1
        if cursor >= len(metric):
            break
        result.append(points[cursor])
        cursor += 1
    return result


def route_length_m(points: Sequence[RoutePoint]) -> float:
    """Horizontal length of the route measured in the local projection."""

    if len(points) < 2:
        return 0.0
    metric, _ = project_points([point.coordinate for point in points])
    return float(np.linalg.norm(np.diff(metric, axis=0), axis=1).sum())


def _build_local_transformer(points: Sequence[LatLon]) -> Transformer:
    """Build a local UTM transformer centred on the provided coordinates."""

    mean_lat = float(np.mean([pt[0] for pt in points]))
    mean_lon = float(np.mean([pt[1] for pt in points]))
    zone = int((mean_lon + 180.0) // 6.0) + 1
    zone = max(1, min(zone, 60))
    epsg = 32600 + zone if mean_lat >= 0 else 32700 + zone
    return Transformer.from_crs(CRS.from_epsg(4326), CRS.from_epsg(epsg), always_xy=True)


__all__ = [
    "decode_route",
    "encode_route",
    "project_points",
    "route_length_m",
    "simplify_route",
]
