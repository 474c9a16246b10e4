"""Link Bounded Context - Clearance Evaluation.

Compares terrain against the required clearance line: the straight radio
path between the antennas raised by a fraction (60 %) of the first Fresnel
zone radius. Earth curvature and antenna tilt are not modelled.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from domain.link.errors import InsufficientSamplesError, ProfileMismatchError
from domain.link.value_objects import ClearanceResult, FresnelPoint
from domain.terrain.value_objects import ElevationSample

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CLEARANCE_FRACTION = 0.6  # 60 % of the first Fresnel zone must be free
CLEAR_THRESHOLD_PCT = 80.0  # Strictly above this share of clear points


def path_height(
    height_a_m: float, height_b_m: float, distance_m: float, total_distance_m: float
) -> float:
    """Height of the straight radio line at distance_m from endpoint A."""
    if total_distance_m <= 0:
        return height_a_m
    return height_a_m + (height_b_m - height_a_m) * (distance_m / total_distance_m)


def evaluate_clearance(
    fresnel_points: Sequence[FresnelPoint],
    samples: Sequence[ElevationSample],
    height_a_m: float,
    height_b_m: float,
    clearance_fraction: float = CLEARANCE_FRACTION,
    clear_threshold_pct: float = CLEAR_THRESHOLD_PCT,
) -> ClearanceResult:
    """Derive the clearance verdict for a Fresnel corridor.

    A point is blocked when its terrain elevation exceeds
    ``path_height + clearance_fraction * fresnel_radius_m``. The link is
    clear when strictly more than ``clear_threshold_pct`` percent of the
    points are unblocked.

    Args:
        fresnel_points: Corridor in path order.
        samples: Terrain samples, same length and order as fresnel_points.
        height_a_m: Antenna height at endpoint A.
        height_b_m: Antenna height at endpoint B.

    Raises:
        InsufficientSamplesError: If there are no points to evaluate
        ProfileMismatchError: If the two sequences differ in length
    """
    if not fresnel_points:
        raise InsufficientSamplesError(0)
    if len(fresnel_points) != len(samples):
        raise ProfileMismatchError(
            f"{len(fresnel_points)} Fresnel points vs {len(samples)} elevation samples"
        )

    total_distance = fresnel_points[-1].distance_m
    total_points = len(fresnel_points)
    blocked = 0
    max_blockage = 0.0

    for point, sample in zip(fresnel_points, samples):
        line = path_height(height_a_m, height_b_m, point.distance_m, total_distance)
        required = line + clearance_fraction * point.fresnel_radius_m
        if sample.elevation_m > required:
            blocked += 1
            max_blockage = max(max_blockage, sample.elevation_m - required)

    percentage = 100.0 * (total_points - blocked) / total_points

    if blocked:
        logger.info(
            "Clearance: %d/%d points blocked, worst by %.2f m",
            blocked,
            total_points,
            max_blockage,
        )

    return ClearanceResult(
        clearance_percentage=percentage,
        is_clear=percentage > clear_threshold_pct,
        max_blockage_m=max_blockage,
        blocked_point_count=blocked,
        total_point_count=total_points,
    )
