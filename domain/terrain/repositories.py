"""Domain Ports for Terrain I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import ElevationProfile, GeoPoint, TerrainGrid


class TerrainRepository(Protocol):
    """Port for obtaining terrain grids from external sources.

    Implementations live in infrastructure (e.g., GeoTIFF adapter).
    """

    def load_dem(self, file_path: Path | str) -> TerrainGrid:
        """Load a DEM and return a normalized TerrainGrid in EPSG:4326."""
        ...


class ElevationProfileProvider(Protocol):
    """Port supplying terrain elevations along a link path.

    Contract:
        - exactly ``sample_count`` samples, ordered from ``start`` to ``end``
        - first sample at distance 0, last at the full path distance
        - never raises on retrieval failure; returns a flat FALLBACK profile
          (every elevation 0, same distances) instead

    Timeouts and cancellation belong to the implementation.
    """

    def get_profile(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        ...
