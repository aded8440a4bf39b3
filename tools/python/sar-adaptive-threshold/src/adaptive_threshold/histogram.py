"""
histogram.py
============
Bucketed histograms of raster values over a region.

Buckets follow the convention of the Earth Engine histogram reducer the
method was first written against: at most ``max_buckets`` equal-width
buckets, each no narrower than ``min_bucket_width``, reported by their
centre value ("bucket mean") and pixel count.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from shared.python.exceptions import EmptyRegionError
from shared.python.validators import Validators

from .budget import ReductionBudget
from .raster import Raster, Region

logger = logging.getLogger("adaptive_threshold.histogram")

THRESHOLD_ANNOTATION = "Otsu Threshold"


@dataclass(frozen=True, eq=False)
class Histogram:
    """Ordered (bucket mean, count) pairs.

    Attributes:
        bucket_means: Strictly increasing bucket centres.
        counts: Non-negative pixel count per bucket.
        min_value: Lower edge of the first bucket.
        bucket_width: Width shared by every bucket.
    """

    bucket_means: np.ndarray
    counts: np.ndarray
    min_value: float
    bucket_width: float

    def __post_init__(self) -> None:
        for name, dtype in (("bucket_means", np.float64), ("counts", np.int64)):
            arr = np.array(getattr(self, name), dtype=dtype, copy=True)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    @property
    def non_empty_buckets(self) -> int:
        return int(np.count_nonzero(self.counts))

    def __len__(self) -> int:
        return len(self.counts)

    def to_frame(self, threshold: Optional[float] = None) -> pd.DataFrame:
        """Chart-ready table: ``backscatter``, ``count``, ``annotation``.

        The row whose bucket mean equals *threshold* is annotated with
        ``"Otsu Threshold"``; every other annotation is ``None``.
        """
        annotation = [None] * len(self)
        if threshold is not None:
            hits = np.flatnonzero(np.isclose(self.bucket_means, threshold))
            if hits.size:
                annotation[int(hits[0])] = THRESHOLD_ANNOTATION
        return pd.DataFrame(
            {
                "backscatter": self.bucket_means,
                "count": self.counts,
                "annotation": pd.Series(annotation, dtype=object),
            }
        )


def chart_title(band: str, kind: str, season: Optional[str] = None, year: Optional[int] = None) -> str:
    """Title for a histogram chart, e.g. ``"VV Global Threshold Histogram Summer 2023"``."""
    parts = [f"{band} {kind.capitalize()} Threshold Histogram"]
    if season:
        parts.append(str(season))
    if year is not None:
        parts.append(str(year))
    return " ".join(parts)


class HistogramBuilder:
    """Build :class:`Histogram` objects from raster samples.

    Args:
        max_buckets: Upper bound on the number of buckets.
        min_bucket_width: Lower bound on the bucket width.

    Example::

        hist = HistogramBuilder().build(raster, region)
        print(hist.total, len(hist))
    """

    def __init__(self, max_buckets: int = 255, min_bucket_width: float = 0.1) -> None:
        Validators.assert_positive_int(max_buckets, "max_buckets")
        Validators.assert_positive(min_bucket_width, "min_bucket_width")
        self.max_buckets = max_buckets
        self.min_bucket_width = float(min_bucket_width)

    def build(
        self,
        raster: Raster,
        region: Optional[Region] = None,
        sample_mask: Optional[Raster] = None,
        budget: Optional[ReductionBudget] = None,
        stage: str = "histogram",
    ) -> Histogram:
        """Histogram of the valid samples of *raster* inside *region*.

        Args:
            raster: Source samples.
            region: Restricts sampling; ``None`` means the full extent.
            sample_mask: Optional binary raster on the same grid; only
                         cells where it is valid and 1 are sampled.
            budget: Checked before the samples are read.
            stage: Name reported to the budget and in log messages.

        Raises:
            EmptyRegionError: If no valid samples remain.
            ResourceBudgetExceededError: If the budget is exceeded.
        """
        footprint = (region or Region()).footprint(raster)
        if sample_mask is not None:
            Validators.assert_raster_shapes_match(raster.shape, sample_mask.shape)
            footprint &= sample_mask.valid & (sample_mask.data == 1)

        if budget is not None:
            budget.checkpoint(stage, int(footprint.sum()))

        samples = raster.data[footprint]
        if samples.size == 0:
            raise EmptyRegionError(stage, raster.resolution)

        lo, hi = float(samples.min()), float(samples.max())
        width = max((hi - lo) / self.max_buckets, self.min_bucket_width)
        n_buckets = min(max(math.ceil((hi - lo) / width), 1), self.max_buckets)

        index = np.floor((samples - lo) / width).astype(np.int64)
        np.clip(index, 0, n_buckets - 1, out=index)
        counts = np.bincount(index, minlength=n_buckets)
        means = lo + (np.arange(n_buckets) + 0.5) * width

        logger.debug(
            "%s: %d samples, %d buckets of width %.4g over [%.4g, %.4g]",
            stage, samples.size, n_buckets, width, lo, hi,
        )
        return Histogram(
            bucket_means=means,
            counts=counts.astype(np.int64),
            min_value=lo,
            bucket_width=width,
        )
