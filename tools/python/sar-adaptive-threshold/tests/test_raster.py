"""
Tests — Raster and Region
===========================
Uses small synthetic GeoTIFFs written to ``tmp_path`` with rasterio.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from shapely.geometry import box, mapping

from adaptive_threshold.raster import Raster, Region
from shared.python.exceptions import (
    BandNotFoundError,
    InvalidParameterError,
    RasterError,
)


class TestRaster:
    def test_from_array_marks_nodata(self) -> None:
        arr = np.array([[1.0, np.nan], [-9999.0, np.inf]])
        raster = Raster.from_array(arr, nodata=-9999.0)
        assert raster.valid.tolist() == [[True, False], [False, False]]
        assert raster.valid_count == 1

    def test_arrays_are_read_only(self) -> None:
        raster = Raster.from_array(np.zeros((3, 3)))
        with pytest.raises(ValueError):
            raster.data[0, 0] = 1.0
        with pytest.raises(ValueError):
            raster.valid[0, 0] = False

    def test_source_array_copied(self) -> None:
        arr = np.zeros((3, 3))
        raster = Raster.from_array(arr)
        arr[0, 0] = 5.0
        assert raster.data[0, 0] == 0.0

    def test_resolution_and_area(self) -> None:
        raster = Raster.from_array(np.zeros((4, 4)), resolution=20.0)
        assert raster.resolution == 20.0
        assert raster.pixel_area == 400.0

    def test_derive_keeps_grid(self) -> None:
        raster = Raster.from_array(np.zeros((4, 4)), resolution=20.0, crs="EPSG:32617", band="VH")
        derived = raster.derive(np.ones((4, 4)))
        assert derived.transform == raster.transform
        assert derived.crs == "EPSG:32617" and derived.band == "VH"
        assert np.array_equal(derived.valid, raster.valid)

    def test_shape_mismatch_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            Raster(np.zeros((3, 3)), np.ones((2, 2), dtype=bool))

    def test_not_2d_rejected(self) -> None:
        with pytest.raises(RasterError):
            Raster(np.zeros(5), np.ones(5, dtype=bool))


class TestFromGeotiff:
    def test_reads_described_band(self, write_geotiff) -> None:
        arr = np.full((8, 6), -12.0)
        arr[0, 0] = -9999.0
        raster = Raster.from_geotiff(write_geotiff(arr), band="VV")
        assert raster.shape == (8, 6)
        assert raster.resolution == 30.0
        assert raster.valid_count == 47
        assert raster.crs == "EPSG:32617"

    def test_reads_integer_band(self, write_geotiff) -> None:
        arr = np.full((5, 5), -15)
        arr[2, 2] = -32768
        path = write_geotiff(arr, dtype="int16", nodata=-32768)
        raster = Raster.from_geotiff(path, band="VV")
        assert raster.data.dtype == np.float64
        assert raster.valid_count == 24
        assert raster.data[0, 0] == -15.0

    def test_single_band_without_description(self, write_geotiff) -> None:
        path = write_geotiff(np.zeros((4, 4)), description=None)
        assert Raster.from_geotiff(path, band="VH").band == "VH"

    def test_missing_band(self, write_geotiff) -> None:
        path = write_geotiff(np.zeros((4, 4)), description="VV")
        with pytest.raises(BandNotFoundError):
            Raster.from_geotiff(path, band="VH")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidParameterError):
            Raster.from_geotiff(tmp_path / "nope.tif")

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "mosaic.csv"
        path.write_text("a,b\n")
        with pytest.raises(InvalidParameterError):
            Raster.from_geotiff(path)

    def test_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.tif"
        path.write_bytes(b"not a tiff")
        with pytest.raises(RasterError):
            Raster.from_geotiff(path)


class TestRegion:
    def test_full_extent_by_default(self) -> None:
        raster = Raster.from_array(np.zeros((5, 5)))
        assert Region().mask_for(raster).all()

    def test_bounds_use_pixel_centres(self) -> None:
        raster = Raster.from_array(np.zeros((10, 10)), resolution=30.0)
        region = Region.from_bounds(0, 0, 150, 300)
        mask = region.mask_for(raster)
        assert mask.sum() == 50
        assert mask[:, :5].all()

    def test_footprint_excludes_nodata(self) -> None:
        arr = np.zeros((10, 10))
        arr[0, 0] = np.nan
        raster = Raster.from_array(arr, resolution=30.0)
        assert Region.from_bounds(0, 0, 150, 300).footprint(raster).sum() == 49

    def test_from_geojson_feature_collection(self, tmp_path: Path) -> None:
        doc = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "properties": {}, "geometry": mapping(box(0, 0, 60, 60))},
                {"type": "Feature", "properties": {}, "geometry": mapping(box(60, 0, 120, 60))},
            ],
        }
        path = tmp_path / "region.geojson"
        path.write_text(json.dumps(doc))
        region = Region.from_geojson(path)
        assert region.geometry.area == pytest.approx(120 * 60)

    def test_from_geojson_bare_geometry(self, tmp_path: Path) -> None:
        path = tmp_path / "region.geojson"
        path.write_text(json.dumps(mapping(box(0, 0, 10, 10))))
        assert Region.from_geojson(path).geometry.area == pytest.approx(100)

    def test_from_geojson_without_geometry(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.geojson"
        path.write_text(json.dumps({"type": "FeatureCollection", "features": []}))
        with pytest.raises(InvalidParameterError):
            Region.from_geojson(path)
