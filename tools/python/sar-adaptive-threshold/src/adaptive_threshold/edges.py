"""
edges.py
========
Edge stages of the adaptive pass.

  1.  EdgeDetector   Canny detection on the preliminary classification
                     (scikit-image ``feature.canny``) plus the Sobel
                     gradient magnitude of each detected pixel.
  2.  EdgeFilter     Drops connected edge groups shorter than a minimum
                     pixel count.
  3.  EdgeBuffer     Grows the surviving edges by a physical distance with a
                     Euclidean distance transform, giving the sampling mask
                     for the second histogram.

Edge rasters share one convention: on valid cells ``0`` means "no edge" and
any non-zero value is an edge pixel whose value names its group.  Pixels
are only connected to neighbours of the same group.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import ndimage as ndi
from skimage.feature import canny
from skimage.measure import label as sk_label

from shared.python.validators import Validators

from .raster import Raster

logger = logging.getLogger("adaptive_threshold.edges")

STRONG_EDGE = 2
WEAK_EDGE = 1


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class EdgeDetection:
    """Output of :meth:`EdgeDetector.detect`.

    Attributes:
        edge_mask: Boolean Canny edges, ``False`` on no-data.
        strength: Gradient magnitude on detected edge pixels, 0 elsewhere.
                  Same footprint as the detector input.
        low_threshold: The hysteresis lower threshold used.
    """

    edge_mask: np.ndarray
    strength: Raster
    low_threshold: float

    @property
    def edge_pixels(self) -> np.ndarray:
        return self.edge_mask

    def edge_groups(self) -> Raster:
        """Edge raster splitting detected pixels by residual strength.

        Detected pixels with strength below ``low_threshold`` form the
        :data:`WEAK_EDGE` group, the rest :data:`STRONG_EDGE`; connectivity
        is later counted within each group separately.
        """
        weak = self.strength.data < self.low_threshold
        groups = np.where(self.edge_mask, np.where(weak, WEAK_EDGE, STRONG_EDGE), 0)
        return self.strength.derive(groups.astype(np.float64))


class EdgeDetector:
    """Canny edge detector for binary classifications.

    Args:
        sigma: Gaussian pre-smoothing standard deviation; ``0`` disables it.
        high_threshold: Gradient magnitude at or above which a pixel is a
                        confirmed edge.
        low_threshold: Gradient magnitude below which a pixel is discarded.
                       Pixels in between survive only when connected to a
                       confirmed edge.
    """

    def __init__(
        self,
        sigma: float = 0.5,
        high_threshold: float = 1.0,
        low_threshold: float = 0.05,
    ) -> None:
        Validators.assert_min_value(sigma, 0, "canny_sigma")
        Validators.assert_positive(high_threshold, "canny_threshold")
        Validators.assert_min_value(low_threshold, 0, "canny_lt")
        Validators.assert_ordered(low_threshold, high_threshold, "canny_lt", "canny_threshold")
        self.sigma = float(sigma)
        self.high_threshold = float(high_threshold)
        self.low_threshold = float(low_threshold)

    def detect(self, classification: Raster) -> EdgeDetection:
        """Detect class boundaries in a {0, 1} raster.

        No-data cells are excluded through the Canny mask and are never
        reported as edges.
        """
        valid = classification.valid
        image = np.where(valid, classification.data, 0.0)

        edges = canny(
            image,
            sigma=self.sigma,
            low_threshold=self.low_threshold,
            high_threshold=self.high_threshold,
            mask=valid,
        )
        edges &= valid

        smoothed = image
        if self.sigma > 0:
            smoothed = ndi.gaussian_filter(image, sigma=self.sigma, mode="constant")
        magnitude = np.hypot(ndi.sobel(smoothed, axis=0), ndi.sobel(smoothed, axis=1))

        logger.debug(
            "Canny (sigma=%g, hi=%g, lo=%g): %d edge px",
            self.sigma, self.high_threshold, self.low_threshold, int(edges.sum()),
        )
        strength = classification.derive(np.where(edges, magnitude, 0.0))
        return EdgeDetection(edge_mask=edges, strength=strength, low_threshold=self.low_threshold)


# ---------------------------------------------------------------------------
# Length filter
# ---------------------------------------------------------------------------


class EdgeFilter:
    """Remove short edges: keep groups with at least ``min_length`` pixels.

    Component sizes are counted under 8-connectivity among pixels of the
    same group and capped at ``neighborhood``, so ``min_length`` may not
    exceed it.

    Args:
        min_length: Minimum connected pixel count for an edge to survive.
        neighborhood: Largest component size that is resolved.
    """

    def __init__(self, min_length: int = 25, neighborhood: int = 100) -> None:
        Validators.assert_positive_int(min_length, "edge_length")
        Validators.assert_positive_int(neighborhood, "connected_pixels")
        Validators.assert_ordered(min_length, neighborhood, "edge_length", "connected_pixels")
        self.min_length = min_length
        self.neighborhood = neighborhood

    def component_sizes(self, edges: Raster) -> np.ndarray:
        """Per-pixel size of the edge component each pixel belongs to (0 off-edge)."""
        groups = np.where(edges.valid, edges.data, 0)
        sizes = np.zeros(edges.shape, dtype=np.int64)
        for value in np.unique(groups[groups != 0]):
            labels = sk_label(groups == value, connectivity=2, background=0)
            counts = np.bincount(labels.ravel())
            counts[0] = 0
            sizes += np.minimum(counts, self.neighborhood)[labels]
        return sizes

    def apply(self, edges: Raster) -> Raster:
        """Return a {0, 1} edge mask with short components removed."""
        keep = self.component_sizes(edges) >= self.min_length
        logger.debug(
            "Edge filter (min_length=%d): kept %d of %d edge px",
            self.min_length, int(keep.sum()), int(np.count_nonzero(edges.valid & (edges.data != 0))),
        )
        return edges.derive(keep.astype(np.float64))


# ---------------------------------------------------------------------------
# Buffer
# ---------------------------------------------------------------------------


class EdgeBuffer:
    """Grow edges by a physical distance.

    Args:
        distance: Buffer distance in map units.  ``0`` returns the edges
                  unchanged.
    """

    def __init__(self, distance: float = 60.0) -> None:
        Validators.assert_min_value(distance, 0, "edge_buffer")
        self.distance = float(distance)

    def apply(self, edges: Raster, resolution: Optional[float] = None) -> Raster:
        """Return the {0, 1} sampling mask around *edges*.

        Cells closer than ``distance / resolution`` pixels to an edge pixel
        (Euclidean) join the mask.  No-data cells never join it, but they
        do not block the distance either.
        """
        resolution = edges.resolution if resolution is None else resolution
        Validators.assert_positive(resolution, "resolution")
        buffer_pixels = self.distance / resolution

        is_edge = edges.valid & (edges.data != 0)
        if is_edge.any():
            dist = ndi.distance_transform_edt(~is_edge)
            mask = is_edge | (dist < buffer_pixels)
        else:
            mask = np.zeros(edges.shape, dtype=bool)
        mask &= edges.valid

        logger.debug(
            "Edge buffer %g units (%.2f px): %d px", self.distance, buffer_pixels, int(mask.sum())
        )
        return edges.derive(mask.astype(np.float64))
