"""Terrain Bounded Context - Domain Services.

Pure domain logic for terrain calculations: spherical geodesy, path
sampling and elevation profile construction. NO I/O operations - remote
and file-backed elevation sources are infrastructure adapters implementing
``ElevationProfileProvider``.
"""

from __future__ import annotations

import logging
import math

from pyproj import Geod

from domain.terrain.errors import InvalidProfileError
from domain.terrain.value_objects import (
    ElevationProfile,
    ElevationSample,
    GeoPoint,
    ProfileSource,
    TerrainGrid,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EARTH_RADIUS_M = 6_371_000.0  # Mean Earth radius (spherical model)
MIN_SAMPLE_COUNT = 2

# Sphere matching EARTH_RADIUS_M so interpolated points agree with haversine
_geod = Geod(a=EARTH_RADIUS_M, b=EARTH_RADIUS_M)


def _as_geopoint(point: GeoPoint) -> GeoPoint:
    """Strip subclass data (e.g. antenna height) from a point."""
    if type(point) is GeoPoint:
        return point
    return GeoPoint(latitude=point.latitude, longitude=point.longitude)


# ---------------------------------------------------------------------------
# GeoMath
# ---------------------------------------------------------------------------
def great_circle_distance(start: GeoPoint, end: GeoPoint) -> float:
    """Haversine distance between two points in meters.

    Symmetric: great_circle_distance(a, b) == great_circle_distance(b, a).
    """
    phi1 = math.radians(start.latitude)
    phi2 = math.radians(end.latitude)
    d_phi = math.radians(end.latitude - start.latitude)
    d_lambda = math.radians(end.longitude - start.longitude)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def initial_bearing(start: GeoPoint, end: GeoPoint) -> float:
    """Forward azimuth from start towards end, in degrees [0, 360).

    The bearing between coincident points is undefined; 0.0 is returned
    and callers are expected to reject zero-length links beforehand.
    """
    phi1 = math.radians(start.latitude)
    phi2 = math.radians(end.latitude)
    d_lambda = math.radians(end.longitude - start.longitude)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(
        phi2
    ) * math.cos(d_lambda)
    theta = math.atan2(y, x)

    return (math.degrees(theta) + 360.0) % 360.0


def destination_point(
    origin: GeoPoint, bearing_deg: float, distance_m: float
) -> GeoPoint:
    """Project a point ``distance_m`` along ``bearing_deg`` from origin.

    Spherical direct problem. Longitude is wrapped to [-180, 180).
    """
    delta = distance_m / EARTH_RADIUS_M  # angular distance
    theta = math.radians(bearing_deg)
    phi1 = math.radians(origin.latitude)
    lambda1 = math.radians(origin.longitude)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta)
        + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )

    longitude = (math.degrees(lambda2) + 540.0) % 360.0 - 180.0
    return GeoPoint(latitude=math.degrees(phi2), longitude=longitude)


# ---------------------------------------------------------------------------
# Path Interpolation
# ---------------------------------------------------------------------------
def interpolate_great_circle(
    start: GeoPoint, end: GeoPoint, num_intermediate: int
) -> list[GeoPoint]:
    """Interpolate points along the great circle from start to end.

    Args:
        start: Starting point
        end: Ending point
        num_intermediate: Number of points BETWEEN start and end

    Returns:
        List of all points: [start, ...intermediate..., end]
    """
    start = _as_geopoint(start)
    end = _as_geopoint(end)
    if num_intermediate <= 0:
        return [start, end]
    if start == end:
        return [start] * (num_intermediate + 2)

    # npts excludes the endpoints
    intermediate = _geod.npts(
        start.longitude, start.latitude, end.longitude, end.latitude, num_intermediate
    )

    result = [start]
    for lon, lat in intermediate:
        result.append(GeoPoint(latitude=lat, longitude=lon))
    result.append(end)

    return result


def sample_path(
    start: GeoPoint, end: GeoPoint, sample_count: int
) -> tuple[list[GeoPoint], list[float], float]:
    """Evenly spaced sample positions and their cumulative distances.

    Returns:
        (points, distances, total_distance_m). The first distance is exactly
        0 and the last is exactly total_distance_m.

    Raises:
        InvalidProfileError: If sample_count < 2
    """
    if sample_count < MIN_SAMPLE_COUNT:
        raise InvalidProfileError(
            f"sample_count must be >= {MIN_SAMPLE_COUNT}, got {sample_count}"
        )

    total_distance = great_circle_distance(start, end)
    points = interpolate_great_circle(start, end, sample_count - 2)

    step = total_distance / (sample_count - 1)
    distances = [i * step for i in range(sample_count)]
    distances[-1] = total_distance

    return points, distances, total_distance


# ---------------------------------------------------------------------------
# Profile Construction
# ---------------------------------------------------------------------------
def build_profile(
    start: GeoPoint,
    end: GeoPoint,
    points: list[GeoPoint],
    distances: list[float],
    elevations: list[float],
    total_distance_m: float,
) -> ElevationProfile:
    """Assemble a MEASURED profile from parallel point/distance/elevation lists."""
    samples = tuple(
        ElevationSample(point=point, elevation_m=elevation, distance_m=distance)
        for point, distance, elevation in zip(points, distances, elevations)
    )
    return ElevationProfile(
        start=_as_geopoint(start),
        end=_as_geopoint(end),
        samples=samples,
        total_distance_m=total_distance_m,
        source=ProfileSource.MEASURED,
    )


def flat_profile(
    start: GeoPoint, end: GeoPoint, sample_count: int, reason: str
) -> ElevationProfile:
    """Flat-terrain substitute used when elevation data is unavailable.

    Same positions and distances a real lookup would produce, every
    elevation at 0 m, tagged FALLBACK with ``reason``.
    """
    points, distances, total = sample_path(start, end, sample_count)
    samples = tuple(
        ElevationSample(point=point, elevation_m=0.0, distance_m=distance)
        for point, distance in zip(points, distances)
    )
    return ElevationProfile(
        start=_as_geopoint(start),
        end=_as_geopoint(end),
        samples=samples,
        total_distance_m=total,
        source=ProfileSource.FALLBACK,
        fallback_reason=reason,
    )


# ---------------------------------------------------------------------------
# Bilinear Interpolation
# ---------------------------------------------------------------------------
def bilinear_interpolate(grid: TerrainGrid, point: GeoPoint) -> float:
    """Interpolate elevation at an arbitrary point from the 4 nearest pixels.

    Returns NaN if any of the 4 neighbours is NoData (no infill). Points on
    the grid edge use clamped indices, so bilinear degrades to linear on
    edges and nearest on corners.
    """
    # Fractional pixel coordinates; row 0 is the north edge
    px = (point.longitude - grid.bounds.min_x) / grid.resolution[0]
    py = (grid.bounds.max_y - point.latitude) / grid.resolution[1]

    height, width = grid.data.shape

    x0 = max(0, min(int(math.floor(px)), width - 1))
    y0 = max(0, min(int(math.floor(py)), height - 1))
    x1 = max(0, min(int(math.floor(px)) + 1, width - 1))
    y1 = max(0, min(int(math.floor(py)) + 1, height - 1))

    q11 = float(grid.data[y0, x0])  # top-left
    q21 = float(grid.data[y0, x1])  # top-right
    q12 = float(grid.data[y1, x0])  # bottom-left
    q22 = float(grid.data[y1, x1])  # bottom-right

    if any(math.isnan(q) for q in (q11, q21, q12, q22)):
        return float("nan")

    fx = px - math.floor(px)
    fy = py - math.floor(py)

    return float(
        q11 * (1 - fx) * (1 - fy)
        + q21 * fx * (1 - fy)
        + q12 * (1 - fx) * fy
        + q22 * fx * fy
    )


# ---------------------------------------------------------------------------
# In-memory Provider
# ---------------------------------------------------------------------------
class GridElevationProvider:
    """ElevationProfileProvider backed by an in-memory TerrainGrid.

    Any sample outside the grid or over NoData turns the whole request into
    a flat FALLBACK profile; partial profiles are never returned.
    """

    def __init__(self, grid: TerrainGrid) -> None:
        self.grid = grid

    def get_profile(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        points, distances, total = sample_path(start, end, sample_count)

        elevations: list[float] = []
        for point in points:
            if not self.grid.bounds.contains(point):
                return self._fallback(start, end, sample_count, "path leaves DEM bounds")
            elevation = bilinear_interpolate(self.grid, point)
            if math.isnan(elevation):
                return self._fallback(start, end, sample_count, "NoData along path")
            elevations.append(elevation)

        return build_profile(start, end, points, distances, elevations, total)

    @staticmethod
    def _fallback(
        start: GeoPoint, end: GeoPoint, sample_count: int, reason: str
    ) -> ElevationProfile:
        logger.warning("DEM profile unavailable (%s); using flat terrain", reason)
        return flat_profile(start, end, sample_count, reason)
