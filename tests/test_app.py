import logging

import pytest

from infrastructure.app import LinkPlanner, create_planner
from infrastructure.settings import OPEN_ELEVATION_URL, LinkPlannerSettings, get_settings
from infrastructure.terrain import GeoTiffElevationProvider, OpenElevationProvider


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, root.handlers[:]
    yield root
    root.handlers[:] = previous_handlers
    root.setLevel(previous_level)


def test_analyze_uses_configured_sample_count(short_link, make_provider):
    provider = make_provider()
    planner = LinkPlanner(provider, LinkPlannerSettings(default_sample_count=7))

    analysis = planner.analyze(short_link)

    assert provider.calls[0][2] == 7
    assert len(analysis.fresnel_points) == 7


def test_analyze_explicit_sample_count_wins(short_link, make_provider):
    provider = make_provider()
    planner = LinkPlanner(provider, LinkPlannerSettings(default_sample_count=7))

    analysis = planner.analyze(short_link, sample_count=5)

    assert provider.calls[0][2] == 5
    assert analysis.clearance.total_point_count == 5


def test_sample_count_env_override_reaches_provider(monkeypatch, short_link, make_provider):
    monkeypatch.setenv("LINK_PLANNER_SAMPLE_COUNT", "9")
    provider = make_provider()

    LinkPlanner(provider).analyze(short_link)

    assert provider.calls[0][2] == 9


def test_analyze_logs_clear_point_count(short_link, make_provider, caplog):
    planner = LinkPlanner(
        make_provider(overrides={5: 25.0}), LinkPlannerSettings(default_sample_count=11)
    )

    with caplog.at_level(logging.INFO, logger="infrastructure.app"):
        planner.analyze(short_link)

    assert "10/11 points clear" in caplog.text
    assert "terrain measured" in caplog.text


def test_create_planner_configures_logging(restore_root_logger):
    planner = create_planner(LinkPlannerSettings(log_level="ERROR"))

    assert restore_root_logger.level == logging.ERROR
    assert isinstance(planner.provider, OpenElevationProvider)
    assert planner.provider.settings.url == OPEN_ELEVATION_URL


def test_create_planner_with_dem_uses_geotiff(tmp_path, restore_root_logger):
    dem = tmp_path / "dem.tif"

    planner = create_planner(LinkPlannerSettings(), dem_path=dem)

    assert isinstance(planner.provider, GeoTiffElevationProvider)
    assert planner.provider.file_path == dem
