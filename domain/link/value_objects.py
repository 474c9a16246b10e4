"""Link Bounded Context - Value Objects.

Immutable data structures describing a radio link and the results of
analysing it. Everything is produced fresh per computation and never
mutated afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.terrain.value_objects import GeoPoint, ProfileSource


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------
class Endpoint(GeoPoint):
    """Tower location with antenna height above ground (Value Object).

    An Endpoint is a GeoPoint, so it can be handed directly to geometry
    services and elevation providers.

    Invariants:
        EN-1: latitude in [-90, 90], longitude in [-180, 180] (inherited)
        EN-2: antenna_height_m >= 0
    """

    antenna_height_m: float = Field(ge=0)


# ---------------------------------------------------------------------------
# LinkSpec
# ---------------------------------------------------------------------------
class LinkSpec(BaseModel):
    """Point-to-point link request (Value Object).

    frequency_hz > 0 and distinct endpoints are checked by
    ``domain.link.services.validate_link`` so that they surface as
    InvalidFrequencyError / DegenerateLinkError rather than generic
    validation failures.
    """

    endpoint_a: Endpoint
    endpoint_b: Endpoint
    frequency_hz: float

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# FresnelPoint
# ---------------------------------------------------------------------------
class FresnelPoint(BaseModel):
    """First Fresnel zone cross-section at one sample (Value Object).

    ``fresnel_radius_m`` is the physical radius and the only one clearance
    math may use. ``visible_radius_m`` is floored for drawing and only
    positions the corridor points.

    Invariants:
        FP-1: distance_m >= 0
        FP-2: fresnel_radius_m >= 0
        FP-3: visible_radius_m >= fresnel_radius_m
    """

    distance_m: float = Field(ge=0)
    center: GeoPoint
    fresnel_radius_m: float = Field(ge=0)
    visible_radius_m: float = Field(ge=0)
    left_point: GeoPoint | None
    right_point: GeoPoint | None
    terrain_elevation_m: float

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_radii(self) -> "FresnelPoint":
        if self.visible_radius_m < self.fresnel_radius_m:
            raise ValueError(
                f"visible_radius_m ({self.visible_radius_m}) must be >= "
                f"fresnel_radius_m ({self.fresnel_radius_m})"
            )
        return self

    @property
    def center_lat(self) -> float:
        return self.center.latitude

    @property
    def center_lng(self) -> float:
        return self.center.longitude


# ---------------------------------------------------------------------------
# ClearanceResult
# ---------------------------------------------------------------------------
class ClearanceResult(BaseModel):
    """Clearance verdict over a whole path (Value Object).

    Invariants:
        CR-1: 0 <= blocked_point_count <= total_point_count
        CR-2: total_point_count >= 1
        CR-3: max_blockage_m >= 0, and 0 when nothing is blocked
    """

    clearance_percentage: float = Field(ge=0, le=100)
    is_clear: bool
    max_blockage_m: float = Field(ge=0)
    blocked_point_count: int = Field(ge=0)
    total_point_count: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_counts(self) -> "ClearanceResult":
        if self.blocked_point_count > self.total_point_count:
            raise ValueError(
                f"blocked_point_count ({self.blocked_point_count}) exceeds "
                f"total_point_count ({self.total_point_count})"
            )
        if self.blocked_point_count == 0 and self.max_blockage_m != 0:
            raise ValueError("max_blockage_m must be 0 when nothing is blocked")
        return self

    @property
    def clear_point_count(self) -> int:
        return self.total_point_count - self.blocked_point_count


# ---------------------------------------------------------------------------
# LinkAnalysis
# ---------------------------------------------------------------------------
class LinkAnalysis(BaseModel):
    """Fresnel corridor plus clearance verdict for one link (Value Object).

    ``terrain_source`` records whether the verdict rests on measured terrain
    or on the flat fallback, which always looks clear.
    """

    link: LinkSpec
    fresnel_points: tuple[FresnelPoint, ...]
    clearance: ClearanceResult
    terrain_source: ProfileSource
    fallback_reason: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_terrain_verified(self) -> bool:
        return self.terrain_source is ProfileSource.MEASURED

    @property
    def max_fresnel_radius_m(self) -> float:
        return max(p.fresnel_radius_m for p in self.fresnel_points)
