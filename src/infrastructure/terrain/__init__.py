"""Infrastructure adapters for the terrain bounded context.

Elevation sources behind the domain ports: GeoTIFF DEMs on disk and the
Open-Elevation HTTP API.
"""

from .geotiff_adapter import GeoTiffElevationProvider, GeoTiffTerrainAdapter
from .open_elevation_adapter import OpenElevationProvider

__all__ = ["GeoTiffElevationProvider", "GeoTiffTerrainAdapter", "OpenElevationProvider"]
