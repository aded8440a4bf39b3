"""
Tests — Edge detection, length filter and buffer
==================================================
Synthetic binary and edge rasters exercise :class:`EdgeDetector`,
:class:`EdgeFilter` and :class:`EdgeBuffer`.
"""

from __future__ import annotations

import numpy as np
import pytest
from scipy import ndimage as ndi
from skimage.feature import canny

from adaptive_threshold.edges import (
    STRONG_EDGE,
    WEAK_EDGE,
    EdgeBuffer,
    EdgeDetector,
    EdgeFilter,
)
from adaptive_threshold.raster import Raster
from shared.python.exceptions import InvalidParameterError


def _edge_raster(groups: np.ndarray, valid: np.ndarray | None = None) -> Raster:
    valid = np.ones(groups.shape, dtype=bool) if valid is None else valid
    return Raster(groups.astype(float), valid)


def _square(size: int = 40, inner: int = 20) -> np.ndarray:
    block = np.zeros((size, size), dtype=bool)
    lo = (size - inner) // 2
    block[lo:lo + inner, lo:lo + inner] = True
    return block


# ---------------------------------------------------------------------------
# EdgeDetector
# ---------------------------------------------------------------------------


class TestEdgeDetector:
    def test_edges_follow_class_boundary(self) -> None:
        block = _square()
        detection = EdgeDetector().detect(Raster.from_array(block.astype(float)))
        edges = detection.edge_pixels
        band = ndi.binary_dilation(block, iterations=2) & ~ndi.binary_erosion(block, iterations=2)
        assert edges.sum() > 60
        assert not np.any(edges & ~band)

    def test_no_smoothing(self) -> None:
        detection = EdgeDetector(sigma=0).detect(Raster.from_array(_square().astype(float)))
        assert detection.edge_pixels.any()

    def test_uniform_input_has_no_edges(self) -> None:
        detection = EdgeDetector().detect(Raster.from_array(np.ones((20, 20))))
        assert not detection.edge_pixels.any()
        assert np.all(detection.strength.data == 0)

    def test_strength_only_on_edges(self) -> None:
        detection = EdgeDetector().detect(Raster.from_array(_square().astype(float)))
        strength = detection.strength.data
        edges = detection.edge_pixels
        assert np.all(strength[~edges] == 0)
        assert np.all(strength[edges] > 0)

    def test_matches_skimage_canny(self) -> None:
        image = _square().astype(float)
        detection = EdgeDetector(sigma=0.5, high_threshold=1.0, low_threshold=0.05).detect(
            Raster.from_array(image)
        )
        expected = canny(image, sigma=0.5, low_threshold=0.05, high_threshold=1.0)
        assert np.array_equal(detection.edge_pixels, expected)

    def test_high_threshold_suppresses_edges(self) -> None:
        detection = EdgeDetector(high_threshold=100.0).detect(
            Raster.from_array(_square().astype(float))
        )
        assert not detection.edge_pixels.any()

    def test_nodata_never_edge(self) -> None:
        arr = _square().astype(float)
        arr[:, 10] = np.nan
        raster = Raster.from_array(arr)
        detection = EdgeDetector().detect(raster)
        assert not np.any(detection.edge_pixels & ~raster.valid)
        assert np.array_equal(detection.strength.valid, raster.valid)

    def test_edge_groups(self) -> None:
        detection = EdgeDetector().detect(Raster.from_array(_square().astype(float)))
        groups = detection.edge_groups().data
        assert set(np.unique(groups)) <= {0.0, WEAK_EDGE, STRONG_EDGE}
        assert np.array_equal(groups != 0, detection.edge_pixels)

    def test_invalid_thresholds(self) -> None:
        with pytest.raises(InvalidParameterError):
            EdgeDetector(high_threshold=0.01, low_threshold=0.5)
        with pytest.raises(InvalidParameterError):
            EdgeDetector(sigma=-1)


# ---------------------------------------------------------------------------
# EdgeFilter
# ---------------------------------------------------------------------------


class TestEdgeFilter:
    def test_short_component_removed(self) -> None:
        groups = np.zeros((30, 30))
        groups[5, 5:10] = STRONG_EDGE          # 5 px
        groups[20, :] = STRONG_EDGE            # 30 px
        out = EdgeFilter(min_length=25).apply(_edge_raster(groups))
        assert np.all(out.data[5, 5:10] == 0)
        assert np.all(out.data[20, :] == 1)
        assert out.data.sum() == 30

    def test_diagonal_pixels_are_connected(self) -> None:
        groups = np.zeros((30, 30))
        idx = np.arange(25)
        groups[idx, idx] = STRONG_EDGE
        out = EdgeFilter(min_length=25).apply(_edge_raster(groups))
        assert out.data.sum() == 25

    def test_groups_counted_separately(self) -> None:
        groups = np.zeros((5, 30))
        groups[2, :15] = WEAK_EDGE
        groups[2, 15:] = STRONG_EDGE
        out = EdgeFilter(min_length=25).apply(_edge_raster(groups))
        assert out.data.sum() == 0

    def test_component_size_capped_at_neighborhood(self) -> None:
        groups = np.zeros((5, 60))
        groups[2, :] = STRONG_EDGE
        f = EdgeFilter(min_length=10, neighborhood=20)
        assert f.component_sizes(_edge_raster(groups)).max() == 20
        assert f.apply(_edge_raster(groups)).data.sum() == 60

    def test_idempotent(self) -> None:
        rng = np.random.default_rng(11)
        groups = rng.choice([0, WEAK_EDGE, STRONG_EDGE], size=(50, 50), p=[0.6, 0.2, 0.2])
        f = EdgeFilter(min_length=6, neighborhood=30)
        once = f.apply(_edge_raster(groups.astype(float)))
        twice = f.apply(once)
        assert np.array_equal(once.data, twice.data)

    def test_nodata_preserved(self) -> None:
        groups = np.zeros((10, 10))
        valid = np.ones((10, 10), dtype=bool)
        valid[0, 0] = False
        out = EdgeFilter(min_length=1).apply(_edge_raster(groups, valid))
        assert np.array_equal(out.valid, valid)

    def test_min_length_above_neighborhood_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            EdgeFilter(min_length=150, neighborhood=100)


# ---------------------------------------------------------------------------
# EdgeBuffer
# ---------------------------------------------------------------------------


class TestEdgeBuffer:
    def _single_edge(self, size: int = 21) -> Raster:
        edges = np.zeros((size, size))
        edges[size // 2, size // 2] = 1
        return Raster.from_array(edges, resolution=30.0)

    def test_zero_distance_returns_edges(self) -> None:
        rng = np.random.default_rng(5)
        edges = Raster.from_array((rng.random((30, 30)) > 0.9).astype(float))
        out = EdgeBuffer(0).apply(edges, 30.0)
        assert np.array_equal(out.data, edges.data)

    def test_distance_in_pixels(self) -> None:
        # 60 m at 30 m/px -> strictly less than 2 px: the 3 x 3 block
        out = EdgeBuffer(60).apply(self._single_edge(), 30.0)
        assert out.data.sum() == 9
        assert np.all(out.data[9:12, 9:12] == 1)

    def test_resolution_defaults_to_raster(self) -> None:
        edges = self._single_edge()
        assert np.array_equal(EdgeBuffer(60).apply(edges).data, EdgeBuffer(60).apply(edges, 30.0).data)

    def test_monotonic_in_distance(self) -> None:
        rng = np.random.default_rng(9)
        edges = Raster.from_array((rng.random((40, 40)) > 0.97).astype(float))
        previous = None
        for distance in (0, 30, 45, 60, 150, 300):
            mask = EdgeBuffer(distance).apply(edges, 30.0).data.astype(bool)
            if previous is not None:
                assert not np.any(previous & ~mask)
            previous = mask

    def test_nodata_excluded_but_not_blocking(self) -> None:
        arr = np.zeros((21, 21))
        arr[10, 10] = 1
        arr[:, 11] = np.nan
        edges = Raster.from_array(arr, resolution=30.0)
        out = EdgeBuffer(90).apply(edges, 30.0)
        assert not np.any(out.data[:, 11])
        assert not np.any(out.valid[:, 11])
        assert out.data[10, 12] == 1

    def test_no_edges_empty_buffer(self) -> None:
        out = EdgeBuffer(60).apply(Raster.from_array(np.zeros((10, 10))), 30.0)
        assert out.data.sum() == 0

    def test_negative_distance_rejected(self) -> None:
        with pytest.raises(InvalidParameterError):
            EdgeBuffer(-1)
