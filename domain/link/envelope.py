"""Link Bounded Context - Envelope Polygon.

Turns a Fresnel corridor into one closed ring for presentation, with
optional Ramer-Douglas-Peucker simplification. Simplification works in
planar degrees (longitude as x, latitude as y); corridor widths are tiny
compared with the Earth radius, so the distortion does not matter for
drawing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from domain.link.errors import MalformedCorridorPointError
from domain.link.value_objects import FresnelPoint
from domain.terrain.value_objects import GeoPoint

logger = logging.getLogger(__name__)


def build_envelope_polygon(
    fresnel_points: Sequence[FresnelPoint],
    simplify_epsilon: float | None = None,
) -> list[GeoPoint]:
    """Closed corridor boundary: left side forward, right side back.

    Samples missing a left or right point are dropped (and logged) instead
    of failing the whole polygon.

    Args:
        fresnel_points: Corridor in path order.
        simplify_epsilon: RDP tolerance in degrees; None disables it.

    Returns:
        Ring with first == last, or an empty list when nothing usable remains.
    """
    lefts: list[GeoPoint] = []
    rights: list[GeoPoint] = []

    for i, point in enumerate(fresnel_points):
        if point.left_point is None or point.right_point is None:
            err = MalformedCorridorPointError(i, point.distance_m)
            logger.warning("Dropping corridor sample: %s", err)
            continue
        lefts.append(point.left_point)
        rights.append(point.right_point)

    if not lefts:
        return []

    ring = lefts + rights[::-1] + [lefts[0]]

    if simplify_epsilon is not None:
        ring = simplify_polygon(ring, simplify_epsilon)

    return ring


def _chord_distances(
    coords: NDArray[np.float64], first: int, last: int
) -> NDArray[np.float64]:
    """Perpendicular distance of coords[first+1:last] to the first-last chord."""
    origin = coords[first]
    chord = coords[last] - origin
    offsets = coords[first + 1 : last] - origin
    length = float(np.hypot(chord[0], chord[1]))
    if length == 0.0:
        # Closed ring: the chord collapses, fall back to point distance
        return np.hypot(offsets[:, 0], offsets[:, 1])
    cross = chord[0] * offsets[:, 1] - chord[1] * offsets[:, 0]
    return np.abs(cross) / length


def _rdp_keep(coords: NDArray[np.float64], epsilon: float) -> NDArray[np.bool_]:
    keep = np.zeros(len(coords), dtype=bool)
    keep[0] = keep[-1] = True

    # Explicit stack instead of recursion; long corridors would hit the limit
    stack = [(0, len(coords) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        distances = _chord_distances(coords, first, last)
        split = int(np.argmax(distances))
        if distances[split] > epsilon:
            index = first + 1 + split
            keep[index] = True
            stack.append((first, index))
            stack.append((index, last))

    return keep


def simplify_polygon(points: Sequence[GeoPoint], epsilon: float) -> list[GeoPoint]:
    """Ramer-Douglas-Peucker reduction of a ring.

    Only removes points; the first point always survives and closure is
    restored if the simplified sequence no longer ends on it.

    Raises:
        ValueError: If epsilon is negative
    """
    if epsilon < 0:
        raise ValueError(f"epsilon must be >= 0, got {epsilon}")
    if not points:
        return []

    simplified = list(points)
    if len(points) > 2:
        coords = np.array([(p.longitude, p.latitude) for p in points], dtype=np.float64)
        keep = _rdp_keep(coords, epsilon)
        simplified = [p for p, kept in zip(points, keep) if kept]

    if simplified[-1] != simplified[0]:
        simplified.append(simplified[0])

    return simplified
