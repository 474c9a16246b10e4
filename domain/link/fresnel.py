"""Link Bounded Context - Fresnel Geometry.

First Fresnel zone radius along a path and the lateral corridor points
(left/right of the path) derived from it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from domain.link.errors import InvalidFrequencyError
from domain.link.value_objects import FresnelPoint, LinkSpec
from domain.terrain.services import (
    destination_point,
    great_circle_distance,
    initial_bearing,
)
from domain.terrain.value_objects import ElevationSample

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SPEED_OF_LIGHT_M_S = 3e8
MIN_VISIBLE_RADIUS_M = 0.5  # Display floor so short links still draw a corridor
MIN_REMAINING_DISTANCE_M = 1e-4  # d2 floor at the far endpoint


def wavelength_m(frequency_hz: float) -> float:
    """Free-space wavelength in meters.

    Raises:
        InvalidFrequencyError: If frequency_hz <= 0
    """
    if not frequency_hz > 0:
        raise InvalidFrequencyError(frequency_hz)
    return SPEED_OF_LIGHT_M_S / frequency_hz


def fresnel_radius(
    frequency_hz: float, d1_m: float, d2_m: float, zone: int = 1
) -> float:
    """Radius of the n-th Fresnel zone at distances d1/d2 from the endpoints.

    r_n = sqrt(n * lambda * d1 * d2 / (d1 + d2))

    Zero at either endpoint and maximal at the midpoint, where it equals
    sqrt(n * lambda * D / 4).
    """
    if zone < 1:
        raise ValueError(f"zone must be >= 1, got {zone}")
    total = d1_m + d2_m
    if total <= 0:
        return 0.0
    return math.sqrt(zone * wavelength_m(frequency_hz) * d1_m * d2_m / total)


def _tangent_bearing(
    samples: Sequence[ElevationSample], index: int, link_bearing: float
) -> float:
    # Interior samples follow their neighbours; the ends use the link itself
    if index == 0 or index == len(samples) - 1:
        return link_bearing
    prev_point = samples[index - 1].point
    next_point = samples[index + 1].point
    if prev_point == next_point:
        return link_bearing
    return initial_bearing(prev_point, next_point)


def compute_fresnel_points(
    link: LinkSpec,
    samples: Sequence[ElevationSample],
    min_visible_m: float = MIN_VISIBLE_RADIUS_M,
) -> tuple[FresnelPoint, ...]:
    """Build one FresnelPoint per elevation sample, same order and length.

    Args:
        link: Endpoints and frequency. Callers validate it first.
        samples: Ordered terrain samples from endpoint A to endpoint B.
        min_visible_m: Floor applied to the corridor half-width only.

    Returns:
        Tuple of FresnelPoint in path order.
    """
    a = link.endpoint_a
    b = link.endpoint_b
    total_distance = great_circle_distance(a, b)
    link_bearing = initial_bearing(a, b)

    points: list[FresnelPoint] = []
    for i, sample in enumerate(samples):
        d1 = sample.distance_m
        d2 = max(total_distance - d1, MIN_REMAINING_DISTANCE_M)

        radius = fresnel_radius(link.frequency_hz, d1, d2)
        visible = max(radius, min_visible_m)

        perpendicular = (_tangent_bearing(samples, i, link_bearing) + 90.0) % 360.0
        left = destination_point(sample.point, perpendicular, visible)
        right = destination_point(sample.point, (perpendicular + 180.0) % 360.0, visible)

        points.append(
            FresnelPoint(
                distance_m=d1,
                center=sample.point,
                fresnel_radius_m=radius,
                visible_radius_m=visible,
                left_point=left,
                right_point=right,
                terrain_elevation_m=sample.elevation_m,
            )
        )

    if points:
        logger.debug(
            "Fresnel corridor: %d points, max radius %.2f m, max visible %.2f m",
            len(points),
            max(p.fresnel_radius_m for p in points),
            max(p.visible_radius_m for p in points),
        )

    return tuple(points)
