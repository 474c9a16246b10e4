"""Link Planner Domain Layer.

This package contains the core business logic organized by bounded contexts:
- terrain: Physical geography, elevation profiles, great-circle geometry
- link: Point-to-point radio links, Fresnel zones, clearance analysis
"""

# Imports alphabetized per project style (isort)
from domain import link, terrain

__all__ = ["link", "terrain"]
