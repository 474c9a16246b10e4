"""Terrain Bounded Context - Value Objects.

Immutable data structures representing geographic concepts.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Numeric Constants
# ---------------------------------------------------------------------------
# Tolerances for floating-point comparisons
DISTANCE_TOLERANCE_M = 0.1  # 10 cm - for distance invariants


class BoundingBox(BaseModel):
    """Geographic extent in EPSG:4326 (Value Object).

    Invariants are enforced at construction time - invalid BoundingBox
    cannot be instantiated.
    """

    min_x: float  # Western boundary (longitude)
    min_y: float  # Southern boundary (latitude)
    max_x: float  # Eastern boundary (longitude)
    max_y: float  # Northern boundary (latitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        if not (-180 <= self.min_x <= 180):
            raise ValueError(f"min_x longitude out of range: {self.min_x}")
        if not (-180 <= self.max_x <= 180):
            raise ValueError(f"max_x longitude out of range: {self.max_x}")
        if not (-90 <= self.min_y <= 90):
            raise ValueError(f"min_y latitude out of range: {self.min_y}")
        if not (-90 <= self.max_y <= 90):
            raise ValueError(f"max_y latitude out of range: {self.max_y}")
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self

    def contains(self, point: "GeoPoint") -> bool:
        """Inclusive containment test."""
        return (
            self.min_x <= point.longitude <= self.max_x
            and self.min_y <= point.latitude <= self.max_y
        )


class TerrainGrid(BaseModel):
    """Immutable elevation grid with geographic metadata (Value Object).

    The data array is made read-only at construction time. NoData cells are
    stored as NaN.
    """

    data: NDArray[np.float32]  # 2D float32 array (height x width), read-only
    bounds: BoundingBox  # Geographic extent in EPSG:4326
    crs: str  # Always "EPSG:4326"
    resolution: tuple[float, float]  # (x_res, y_res) absolute values in degrees
    source_crs: str | None = None  # Original CRS before normalization

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "TerrainGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise ValueError(f"Data cannot be empty: {self.data.shape}")
        if self.data.dtype != np.float32:
            raise ValueError(f"Data must be float32, got {self.data.dtype}")
        if self.crs != "EPSG:4326":
            raise ValueError(f"CRS must be EPSG:4326, got {self.crs}")
        if self.resolution[0] <= 0 or self.resolution[1] <= 0:
            raise ValueError(f"Resolution must be positive: {self.resolution}")
        if np.isnan(self.data).all():
            raise ValueError("Grid contains 100% NoData")

        # Owned, contiguous, frozen copy; caller arrays are never touched.
        immutable = np.array(self.data, dtype=np.float32, copy=True, order="C")
        immutable.flags.writeable = False
        object.__setattr__(self, "data", immutable)

        return self


# ---------------------------------------------------------------------------
# GeoPoint
# ---------------------------------------------------------------------------
class GeoPoint(BaseModel):
    """Geographic coordinate on the spherical Earth model (Value Object).

    Invariants:
        GP-1: latitude in [-90, 90]
        GP-2: longitude in [-180, 180]
    """

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# ElevationSample
# ---------------------------------------------------------------------------
class ElevationSample(BaseModel):
    """Terrain elevation at one position along a link path (Value Object).

    Invariants:
        ES-1: distance_m >= 0
        ES-2: elevation_m is finite
    """

    point: GeoPoint  # Geographic location of sample
    elevation_m: float  # Terrain elevation above sea level
    distance_m: float = Field(ge=0)  # Cumulative distance from path start

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_elevation(self) -> "ElevationSample":
        if not math.isfinite(self.elevation_m):
            raise ValueError(f"elevation_m must be finite, got {self.elevation_m}")
        return self

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude


class ProfileSource(str, Enum):
    """Where the elevations of a profile came from."""

    MEASURED = "measured"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# ElevationProfile
# ---------------------------------------------------------------------------
class ElevationProfile(BaseModel):
    """Ordered elevation samples between two points (Value Object).

    A profile is the tagged outcome of an elevation lookup: either real
    terrain (``MEASURED``) or the flat substitute a provider returns when
    its data source failed (``FALLBACK``). Both are numerically usable.

    Invariants:
        EP-1: len(samples) >= 2
        EP-2: samples[0].distance_m == 0
        EP-3: distances non-decreasing
        EP-4: samples[-1].distance_m == total_distance_m (within tolerance)
        EP-5: FALLBACK profiles are flat (every elevation is 0) and carry a reason
        EP-6: MEASURED profiles carry no fallback_reason
    """

    start: GeoPoint
    end: GeoPoint
    samples: tuple[ElevationSample, ...]
    total_distance_m: float = Field(ge=0)
    source: ProfileSource = ProfileSource.MEASURED
    fallback_reason: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_profile(self) -> "ElevationProfile":
        # EP-1
        if len(self.samples) < 2:
            raise ValueError(f"Profile must have >= 2 samples, got {len(self.samples)}")

        # EP-2
        if self.samples[0].distance_m != 0:
            raise ValueError(
                f"First sample must be at distance 0, got {self.samples[0].distance_m}"
            )

        # EP-3
        for i in range(1, len(self.samples)):
            if self.samples[i].distance_m < self.samples[i - 1].distance_m:
                raise ValueError("Sample distances must be non-decreasing")

        # EP-4
        if (
            abs(self.samples[-1].distance_m - self.total_distance_m)
            > DISTANCE_TOLERANCE_M
        ):
            raise ValueError(
                f"Last sample distance ({self.samples[-1].distance_m:.3f}) must equal "
                f"total_distance_m ({self.total_distance_m:.3f}) within {DISTANCE_TOLERANCE_M}m"
            )

        # EP-5 / EP-6
        if self.source is ProfileSource.FALLBACK:
            if not self.fallback_reason:
                raise ValueError("Fallback profile requires a fallback_reason")
            if any(s.elevation_m != 0 for s in self.samples):
                raise ValueError("Fallback profile must be flat (elevation 0)")
        elif self.fallback_reason is not None:
            raise ValueError("Measured profile cannot carry a fallback_reason")

        return self

    @property
    def is_fallback(self) -> bool:
        return self.source is ProfileSource.FALLBACK

    def elevations(self) -> tuple[float, ...]:
        """Return elevation values in path order."""
        return tuple(s.elevation_m for s in self.samples)

    def distances(self) -> tuple[float, ...]:
        """Return cumulative distance values."""
        return tuple(s.distance_m for s in self.samples)
