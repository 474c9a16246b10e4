"""Terrain Bounded Context.

Responsible for physical geography and spatial calculations:
- Value Objects: GeoPoint, ElevationSample, ElevationProfile, BoundingBox, TerrainGrid
- Services: great-circle geometry, path sampling, flat-terrain fallback
- Ports: ElevationProfileProvider, TerrainRepository
"""
