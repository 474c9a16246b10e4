"""Link Bounded Context - Domain Services.

Entry points used by the presentation layer. Elevation data comes in
through the ``ElevationProfileProvider`` port; everything after the
provider call is pure and deterministic.
"""

from __future__ import annotations

import logging

from domain.link.clearance import evaluate_clearance
from domain.link.envelope import build_envelope_polygon
from domain.link.errors import (
    DegenerateLinkError,
    InsufficientSamplesError,
    InvalidFrequencyError,
    ProfileMismatchError,
)
from domain.link.fresnel import compute_fresnel_points
from domain.link.value_objects import LinkAnalysis, LinkSpec
from domain.terrain.repositories import ElevationProfileProvider
from domain.terrain.services import MIN_SAMPLE_COUNT, flat_profile, great_circle_distance
from domain.terrain.value_objects import DISTANCE_TOLERANCE_M, ElevationProfile, GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_ENVELOPE_SAMPLES = 60


def validate_link(link: LinkSpec) -> float:
    """Check a link before any geometry is computed.

    Returns:
        Great-circle length of the link in meters.

    Raises:
        InvalidFrequencyError: If frequency_hz <= 0
        DegenerateLinkError: If the endpoints coincide
    """
    if not link.frequency_hz > 0:
        raise InvalidFrequencyError(link.frequency_hz)

    distance = great_circle_distance(link.endpoint_a, link.endpoint_b)
    if distance == 0:
        raise DegenerateLinkError(
            f"Endpoints coincide at ({link.endpoint_a.latitude:.6f}, "
            f"{link.endpoint_a.longitude:.6f}); bearing is undefined"
        )
    return distance


def _check_profile(profile: ElevationProfile, sample_count: int, distance_m: float) -> None:
    if len(profile.samples) != sample_count:
        raise ProfileMismatchError(
            f"Provider returned {len(profile.samples)} samples, expected {sample_count}"
        )
    if abs(profile.total_distance_m - distance_m) > DISTANCE_TOLERANCE_M:
        raise ProfileMismatchError(
            f"Profile length {profile.total_distance_m:.3f} m does not match "
            f"link length {distance_m:.3f} m"
        )


def compute_fresnel_and_clearance(
    link: LinkSpec,
    sample_count: int,
    provider: ElevationProfileProvider,
) -> LinkAnalysis:
    """Run the full link analysis: profile, Fresnel corridor, clearance.

    Validation errors fail the whole computation. Terrain unavailability
    does not: the provider hands back a flat fallback profile and the
    result is tagged accordingly.

    Raises:
        InvalidFrequencyError: If frequency_hz <= 0
        DegenerateLinkError: If the endpoints coincide
        InsufficientSamplesError: If sample_count < 2
        ProfileMismatchError: If the provider broke its contract
    """
    distance = validate_link(link)
    if sample_count < MIN_SAMPLE_COUNT:
        raise InsufficientSamplesError(sample_count)

    profile = provider.get_profile(link.endpoint_a, link.endpoint_b, sample_count)
    _check_profile(profile, sample_count, distance)

    if profile.is_fallback:
        logger.warning(
            "Terrain unavailable (%s); clearance assumes flat terrain",
            profile.fallback_reason,
        )

    fresnel_points = compute_fresnel_points(link, profile.samples)
    clearance = evaluate_clearance(
        fresnel_points,
        profile.samples,
        link.endpoint_a.antenna_height_m,
        link.endpoint_b.antenna_height_m,
    )

    logger.debug(
        "Link %.0f m at %.3g Hz: %.1f%% clear (%s)",
        distance,
        link.frequency_hz,
        clearance.clearance_percentage,
        profile.source.value,
    )

    return LinkAnalysis(
        link=link,
        fresnel_points=fresnel_points,
        clearance=clearance,
        terrain_source=profile.source,
        fallback_reason=profile.fallback_reason,
    )


def build_link_envelope(
    link: LinkSpec,
    sample_count: int = DEFAULT_ENVELOPE_SAMPLES,
    simplify_epsilon: float | None = None,
) -> list[GeoPoint]:
    """Envelope polygon from path geometry alone, without terrain data.

    Lets a map draw the corridor before (or without) an elevation lookup.
    """
    validate_link(link)
    if sample_count < MIN_SAMPLE_COUNT:
        raise InsufficientSamplesError(sample_count)

    geometry = flat_profile(link.endpoint_a, link.endpoint_b, sample_count, "geometry only")
    fresnel_points = compute_fresnel_points(link, geometry.samples)
    return build_envelope_polygon(fresnel_points, simplify_epsilon=simplify_epsilon)
