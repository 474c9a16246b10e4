"""Tests for the GeoTIFF terrain adapter and DEM-backed elevation provider.

Small DEMs are written to tmp_path with rasterio so every test reads a
real GeoTIFF.
"""

from __future__ import annotations

import math

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from domain.terrain.errors import (
    AllNoDataError,
    InsufficientMemoryError,
    InvalidRasterError,
    MissingCRSError,
)
from domain.terrain.value_objects import GeoPoint, ProfileSource
from infrastructure.terrain.geotiff_adapter import (
    GeoTiffElevationProvider,
    GeoTiffTerrainAdapter,
)


def write_dem(path, data, *, crs="EPSG:4326", transform=None, nodata=None):
    """Write ``data`` (2D or 3D band-first) as a GeoTIFF."""
    if data.ndim == 2:
        data = data[np.newaxis, ...]
    count, height, width = data.shape
    transform = transform or from_origin(-1.0, 1.0, 0.01, 0.01)
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": count,
        "dtype": data.dtype,
        "transform": transform,
        "nodata": nodata,
    }
    if crs is not None:
        profile["crs"] = crs
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data)
    return path


@pytest.fixture
def constant_dem(tmp_path):
    """200x200 DEM at 100 m covering lat/lon [-1, 1]."""
    return write_dem(tmp_path / "dem_4326.tif", np.full((200, 200), 100.0, dtype=np.float32))


# ===========================================================================
# GeoTiffTerrainAdapter
# ===========================================================================
def test_same_crs_happy_path(constant_dem):
    grid = GeoTiffTerrainAdapter().load_dem(constant_dem)

    assert grid.crs == "EPSG:4326"
    assert grid.source_crs == "EPSG:4326"
    assert grid.data.dtype == np.float32
    assert grid.data.shape == (200, 200)
    assert math.isclose(grid.resolution[0], 0.01)
    assert math.isclose(grid.resolution[1], 0.01)
    assert grid.bounds.min_x == pytest.approx(-1.0)
    assert grid.bounds.max_y == pytest.approx(1.0)


def test_nodata_converted_to_nan(tmp_path):
    data = np.full((50, 50), 10.0, dtype=np.float32)
    data[0, 0] = -9999.0
    path = write_dem(tmp_path / "nodata.tif", data, nodata=-9999.0)

    grid = GeoTiffTerrainAdapter().load_dem(path)

    assert math.isnan(grid.data[0, 0])
    assert grid.data[1, 1] == 10.0


def test_int16_dem_loaded_as_float32(tmp_path):
    path = write_dem(tmp_path / "int16.tif", np.full((20, 20), 321, dtype=np.int16))

    grid = GeoTiffTerrainAdapter().load_dem(path)

    assert grid.data.dtype == np.float32
    assert grid.data[5, 5] == 321.0


def test_all_nodata_rejected(tmp_path):
    data = np.full((20, 20), -9999.0, dtype=np.float32)
    path = write_dem(tmp_path / "all_nodata.tif", data, nodata=-9999.0)

    with pytest.raises(AllNoDataError):
        GeoTiffTerrainAdapter().load_dem(path)


def test_multiband_rejected(tmp_path):
    path = write_dem(tmp_path / "rgb.tif", np.zeros((3, 10, 10), dtype=np.uint8))

    with pytest.raises(InvalidRasterError):
        GeoTiffTerrainAdapter().load_dem(path)


def test_missing_crs_rejected(tmp_path):
    path = write_dem(tmp_path / "nocrs.tif", np.zeros((10, 10), dtype=np.float32), crs=None)

    with pytest.raises(MissingCRSError):
        GeoTiffTerrainAdapter().load_dem(path)


def test_memory_budget_enforced(constant_dem):
    with pytest.raises(InsufficientMemoryError):
        GeoTiffTerrainAdapter(max_bytes=1_000).load_dem(constant_dem)


def test_file_not_found_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        GeoTiffTerrainAdapter().load_dem(tmp_path / "missing.tif")


def test_wrong_extension_rejected(tmp_path):
    p = tmp_path / "image.png"
    p.write_bytes(b"\x89PNG")

    with pytest.raises(InvalidRasterError, match="extension"):
        GeoTiffTerrainAdapter().load_dem(p)


def test_empty_file_rejected(tmp_path):
    p = tmp_path / "empty.tif"
    p.write_bytes(b"")

    with pytest.raises(InvalidRasterError, match="Empty file"):
        GeoTiffTerrainAdapter().load_dem(p)


def test_corrupted_file_rejected(tmp_path):
    p = tmp_path / "corrupted.tif"
    p.write_bytes(b"this is not a tiff" * 10)

    with pytest.raises(InvalidRasterError):
        GeoTiffTerrainAdapter().load_dem(p)


def test_utm_dem_reprojected(tmp_path, caplog):
    data = np.linspace(0, 500, 40 * 40, dtype=np.float32).reshape(40, 40)
    path = write_dem(
        tmp_path / "utm23s.tif",
        data,
        crs="EPSG:32723",
        transform=from_origin(500_000.0, 7_800_000.0, 30.0, 30.0),
    )

    with caplog.at_level("INFO"):
        grid = GeoTiffTerrainAdapter().load_dem(path)

    assert grid.crs == "EPSG:4326"
    assert grid.source_crs == "EPSG:32723"
    assert -90 <= grid.bounds.min_y < grid.bounds.max_y <= 90
    assert "Reprojected" in caplog.text


# ===========================================================================
# GeoTiffElevationProvider
# ===========================================================================
def test_provider_reads_measured_profile(constant_dem):
    provider = GeoTiffElevationProvider(constant_dem)
    start = GeoPoint(latitude=0.0, longitude=0.0)
    end = GeoPoint(latitude=0.0, longitude=0.01)

    profile = provider.get_profile(start, end, 11)

    assert profile.source is ProfileSource.MEASURED
    assert len(profile.samples) == 11
    assert all(e == pytest.approx(100.0) for e in profile.elevations())


def test_provider_caches_grid(constant_dem, monkeypatch):
    adapter = GeoTiffTerrainAdapter()
    calls = []
    original = adapter.load_dem
    monkeypatch.setattr(adapter, "load_dem", lambda p: calls.append(p) or original(p))
    provider = GeoTiffElevationProvider(constant_dem, adapter=adapter)
    start = GeoPoint(latitude=0.0, longitude=0.0)
    end = GeoPoint(latitude=0.1, longitude=0.1)

    provider.get_profile(start, end, 5)
    provider.get_profile(start, end, 5)

    assert len(calls) == 1


def test_provider_missing_dem_falls_back(tmp_path, caplog):
    provider = GeoTiffElevationProvider(tmp_path / "missing.tif")
    start = GeoPoint(latitude=0.0, longitude=0.0)
    end = GeoPoint(latitude=0.0, longitude=0.01)

    profile = provider.get_profile(start, end, 6)

    assert profile.is_fallback
    assert profile.fallback_reason == "DEM unavailable: FileNotFoundError"
    assert profile.elevations() == (0.0,) * 6
    assert "could not be loaded" in caplog.text


def test_provider_path_outside_dem_falls_back(constant_dem):
    provider = GeoTiffElevationProvider(constant_dem)
    start = GeoPoint(latitude=10.0, longitude=10.0)
    end = GeoPoint(latitude=10.0, longitude=10.01)

    profile = provider.get_profile(start, end, 6)

    assert profile.is_fallback
    assert profile.fallback_reason == "path leaves DEM bounds"


class _BrokenGridAdapter:
    """Adapter whose grid construction fails validation."""

    def load_dem(self, file_path):
        raise ValueError("bounds outside WGS84 range")


def test_provider_grid_validation_error_falls_back(tmp_path):
    provider = GeoTiffElevationProvider(tmp_path / "dem.tif", adapter=_BrokenGridAdapter())
    start = GeoPoint(latitude=0.0, longitude=0.0)
    end = GeoPoint(latitude=0.0, longitude=0.01)

    profile = provider.get_profile(start, end, 6)

    assert profile.is_fallback
    assert profile.fallback_reason == "DEM unavailable: ValueError"
