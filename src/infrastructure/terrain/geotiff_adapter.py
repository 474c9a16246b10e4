"""GeoTIFF adapters for the terrain ports.

``GeoTiffTerrainAdapter`` implements TerrainRepository: it loads a DEM with
rasterio, reprojects it to EPSG:4326 when needed, converts NoData to NaN and
returns a TerrainGrid.

``GeoTiffElevationProvider`` implements ElevationProfileProvider on top of
it. Load failures never escape; they degrade to flat fallback profiles.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from rasterio.crs import CRS
from rasterio.enums import Resampling
from rasterio.errors import RasterioError
from rasterio.transform import array_bounds
from rasterio.warp import calculate_default_transform, reproject

from domain.terrain.errors import (
    AllNoDataError,
    InsufficientMemoryError,
    InvalidBoundsError,
    InvalidGeotransformError,
    InvalidRasterError,
    MissingCRSError,
    TerrainError,
)
from domain.terrain.services import GridElevationProvider, flat_profile
from domain.terrain.value_objects import (
    BoundingBox,
    ElevationProfile,
    GeoPoint,
    TerrainGrid,
)

logger = logging.getLogger(__name__)

_TARGET_CRS = CRS.from_epsg(4326)
_HIGH_NODATA_PCT = 80.0


def _check_transform(transform: Any) -> None:
    if not isinstance(transform, Affine):
        raise InvalidGeotransformError("Missing affine transform")
    if any(not math.isfinite(v) for v in transform[:6]):
        raise InvalidGeotransformError("Invalid (NaN/Inf) transform values")
    if transform.a == 0 or transform.e == 0:
        raise InvalidGeotransformError("Invalid transform scale (zero)")


def _bounds(height: int, width: int, transform: Affine) -> BoundingBox:
    minx, miny, maxx, maxy = array_bounds(height, width, transform)
    try:
        return BoundingBox(min_x=minx, min_y=miny, max_x=maxx, max_y=maxy)
    except ValueError as e:
        raise InvalidBoundsError(str(e)) from e


class GeoTiffTerrainAdapter:
    """Infrastructure adapter for loading DEMs from GeoTIFF files.

    Parameters
    ----------
    max_bytes: int | None
        Optional memory budget for the resulting float32 grid (height*width*4).
        Exceeding it raises InsufficientMemoryError before allocation.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes

    def _check_budget(self, width: int, height: int) -> None:
        if self.max_bytes is None:
            return
        est_bytes = int(width) * int(height) * 4  # float32
        if est_bytes > self.max_bytes:
            raise InsufficientMemoryError(
                f"Estimated grid size {est_bytes}B exceeds budget {self.max_bytes}B"
            )

    def load_dem(self, file_path: Path | str) -> TerrainGrid:
        """Load DEM from GeoTIFF and return a normalized TerrainGrid."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(str(path))
        if path.suffix.lower() not in (".tif", ".tiff"):
            raise InvalidRasterError(f"Unsupported file extension: {path.suffix}")
        if path.stat().st_size == 0:
            raise InvalidRasterError("Empty file")

        try:
            with rasterio.Env():
                with rasterio.open(path) as src:
                    if src.count != 1:
                        raise InvalidRasterError(f"Expected 1 band, got {src.count}")
                    if not src.crs:
                        raise MissingCRSError("Raster has no CRS defined")
                    _check_transform(src.transform)

                    if src.crs == _TARGET_CRS:
                        data, transform = self._read_native(src)
                    else:
                        data, transform = self._read_reprojected(src)
                        logger.info(
                            "DEM %s: Reprojected from %s to EPSG:4326",
                            path.name,
                            src.crs.to_string(),
                        )
                    source_crs = src.crs.to_string()
        except (RasterioError, OSError) as e:
            if isinstance(e, FileNotFoundError):
                raise
            raise InvalidRasterError(f"Corrupted or invalid raster: {e}") from e
        except MemoryError as e:
            raise InsufficientMemoryError("Insufficient memory to load raster") from e

        if np.isnan(data).all():
            raise AllNoDataError("Raster contains 100% NoData pixels - unusable")

        height, width = data.shape
        grid = TerrainGrid(
            data=data,
            bounds=_bounds(height, width, transform),
            crs="EPSG:4326",
            resolution=(abs(transform.a), abs(transform.e)),
            source_crs=source_crs,
        )

        # Log only the filename, never the full path
        nodata_pct = float(np.isnan(data).mean() * 100.0)
        if nodata_pct > _HIGH_NODATA_PCT:
            logger.warning("DEM %s: %.1f%% NoData pixels detected", path.name, nodata_pct)
        logger.debug("DEM %s: Loaded %dx%d grid", path.name, width, height)
        return grid

    def _read_native(self, src: Any) -> tuple[np.ndarray, Affine]:
        self._check_budget(src.width, src.height)
        data = src.read(1, masked=True, out_dtype="float32")
        # Masked cells and the declared nodata value both become NaN
        data = np.ma.filled(data.astype(np.float32), np.float32(np.nan))
        if src.nodata is not None:
            data = np.where(data == src.nodata, np.float32(np.nan), data)
        return data.astype(np.float32), src.transform

    def _read_reprojected(self, src: Any) -> tuple[np.ndarray, Affine]:
        dst_transform, dst_width, dst_height = calculate_default_transform(
            src.crs, _TARGET_CRS, src.width, src.height, *src.bounds
        )
        self._check_budget(dst_width, dst_height)

        dst = np.full((dst_height, dst_width), np.nan, dtype=np.float32)
        reproject(
            source=rasterio.band(src, 1),
            destination=dst,
            src_transform=src.transform,
            src_crs=src.crs,
            dst_transform=dst_transform,
            dst_crs=_TARGET_CRS,
            resampling=Resampling.bilinear,
            src_nodata=src.nodata,
            dst_nodata=np.nan,
        )
        return dst, dst_transform


class GeoTiffElevationProvider:
    """ElevationProfileProvider reading terrain from a local GeoTIFF DEM.

    The DEM is loaded on first use and cached. A DEM that cannot be loaded
    turns every request into a flat fallback profile.
    """

    def __init__(
        self,
        file_path: Path | str,
        adapter: GeoTiffTerrainAdapter | None = None,
    ) -> None:
        self.file_path = Path(file_path)
        self.adapter = adapter or GeoTiffTerrainAdapter()
        self._grid_provider: GridElevationProvider | None = None
        self._load_error: str | None = None

    def _provider(self) -> GridElevationProvider | None:
        if self._grid_provider is None and self._load_error is None:
            try:
                grid = self.adapter.load_dem(self.file_path)
            except (TerrainError, OSError, ValueError) as e:
                self._load_error = f"DEM unavailable: {type(e).__name__}"
                logger.error("DEM %s could not be loaded: %s", self.file_path.name, e)
            else:
                self._grid_provider = GridElevationProvider(grid)
        return self._grid_provider

    def get_profile(
        self, start: GeoPoint, end: GeoPoint, sample_count: int
    ) -> ElevationProfile:
        provider = self._provider()
        if provider is None:
            reason = self._load_error or "DEM unavailable"
            return flat_profile(start, end, sample_count, reason)
        return provider.get_profile(start, end, sample_count)
