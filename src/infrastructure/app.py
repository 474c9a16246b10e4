"""Application wiring.

``create_planner`` is the start-up hook for a shell (web handler, notebook,
batch script): it configures logging from settings and picks the elevation
provider. ``LinkPlanner`` fills in the configured sample count.
"""

from __future__ import annotations

import logging
from pathlib import Path

from domain.link.services import compute_fresnel_and_clearance
from domain.link.value_objects import LinkAnalysis, LinkSpec
from domain.terrain.repositories import ElevationProfileProvider
from infrastructure.logging_setup import configure_logging
from infrastructure.settings import LinkPlannerSettings, get_settings
from infrastructure.terrain import GeoTiffElevationProvider, OpenElevationProvider

logger = logging.getLogger(__name__)


class LinkPlanner:
    """Runs link analyses against one elevation provider."""

    def __init__(
        self,
        provider: ElevationProfileProvider,
        settings: LinkPlannerSettings | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or get_settings()

    def analyze(self, link: LinkSpec, sample_count: int | None = None) -> LinkAnalysis:
        """Analyse one link; ``sample_count`` defaults to settings."""
        if sample_count is None:
            sample_count = self.settings.default_sample_count

        analysis = compute_fresnel_and_clearance(link, sample_count, self.provider)
        clearance = analysis.clearance
        logger.info(
            "Link analysed: %d/%d points clear (%.1f%%), terrain %s",
            clearance.clear_point_count,
            clearance.total_point_count,
            clearance.clearance_percentage,
            analysis.terrain_source.value,
        )
        return analysis


def create_planner(
    settings: LinkPlannerSettings | None = None,
    dem_path: Path | str | None = None,
) -> LinkPlanner:
    """Configure logging and build a planner.

    A local DEM is used when ``dem_path`` is given, otherwise the
    Open-Elevation endpoint from settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    provider: ElevationProfileProvider
    if dem_path is not None:
        provider = GeoTiffElevationProvider(dem_path)
    else:
        provider = OpenElevationProvider(settings.elevation_api)
    return LinkPlanner(provider, settings)
