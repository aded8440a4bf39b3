"""
Shared fixtures: synthetic backscatter rasters.

All rasters are built in memory from seeded numpy generators so every test
is deterministic and runs offline.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from adaptive_threshold.raster import Raster


def make_bimodal(
    shape: tuple[int, int] = (120, 120),
    water_db: float = -20.0,
    land_db: float = -5.0,
    noise: float = 2.5,
    seed: int = 42,
) -> np.ndarray:
    """Left half water, right half land, Gaussian speckle on both."""
    rng = np.random.default_rng(seed)
    cols = shape[1]
    base = np.full(shape, land_db)
    base[:, : cols // 2] = water_db
    return base + rng.normal(0.0, noise, size=shape)


@pytest.fixture
def bimodal_raster() -> Raster:
    return Raster.from_array(make_bimodal(), resolution=30.0, crs="EPSG:32617")


@pytest.fixture
def write_geotiff(tmp_path: Path):
    """Factory writing a single-band GeoTIFF (float32 by default) and returning its path."""

    def _write(
        array: np.ndarray,
        filename: str = "mosaic.tif",
        resolution: float = 30.0,
        description: str | None = "VV",
        nodata: float | None = -9999.0,
        dtype: str = "float32",
    ) -> Path:
        path = tmp_path / filename
        height, width = array.shape
        with rasterio.open(
            path, "w",
            driver="GTiff",
            height=height,
            width=width,
            count=1,
            dtype=dtype,
            crs="EPSG:32617",
            transform=from_origin(500000.0, 4700000.0, resolution, resolution),
            nodata=nodata,
        ) as dst:
            dst.write(array.astype(dtype), 1)
            if description:
                dst.set_band_description(1, description)
        return path

    return _write
