"""Root pytest configuration for all tests.

Shared link fixtures and an in-memory ElevationProfileProvider double that
serves caller-chosen elevations over the real path geometry.
"""

from __future__ import annotations

import pytest

from domain.link.value_objects import Endpoint, LinkSpec
from domain.terrain.services import build_profile, flat_profile, sample_path
from domain.terrain.value_objects import ElevationProfile, GeoPoint


class StaticProfileProvider:
    """Provider returning fixed elevations; records every request.

    Args:
        overrides: {sample_index: elevation_m}; unspecified samples are 0 m.
        fallback_reason: When set, behave like a failed lookup.
    """

    def __init__(
        self,
        overrides: dict[int, float] | None = None,
        fallback_reason: str | None = None,
    ) -> None:
        self.overrides = overrides or {}
        self.fallback_reason = fallback_reason
        self.calls: list[tuple[GeoPoint, GeoPoint, int]] = []

    def get_profile(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        self.calls.append((start, end, sample_count))
        if self.fallback_reason is not None:
            return flat_profile(start, end, sample_count, self.fallback_reason)
        points, distances, total = sample_path(start, end, sample_count)
        elevations = [self.overrides.get(i, 0.0) for i in range(sample_count)]
        return build_profile(start, end, points, distances, elevations, total)


@pytest.fixture
def make_provider():
    """Factory for StaticProfileProvider instances."""
    return StaticProfileProvider


@pytest.fixture
def endpoint_a() -> Endpoint:
    return Endpoint(latitude=0.0, longitude=0.0, antenna_height_m=20.0)


@pytest.fixture
def endpoint_b() -> Endpoint:
    return Endpoint(latitude=0.0, longitude=0.01, antenna_height_m=20.0)


@pytest.fixture
def short_link(endpoint_a: Endpoint, endpoint_b: Endpoint) -> LinkSpec:
    """~1.1 km equatorial link at 5 GHz (wavelength 0.06 m)."""
    return LinkSpec(endpoint_a=endpoint_a, endpoint_b=endpoint_b, frequency_hz=5e9)
