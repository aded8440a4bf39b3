"""
otsu.py
=======
Otsu thresholding on a bucketed histogram.

For every split index ``k`` in ``1 .. N-1`` the buckets ``[0, k)`` form
class A and ``[k, N)`` class B.  The between-class sum of squares

    BSS(k) = countA * (meanA - mean)**2 + countB * (meanB - mean)**2

is maximised and the bucket mean at the winning split is returned.  Ties
go to the last maximum, i.e. the highest bucket mean.

The returned value is ``means[k]``, the first bucket of class B.  Scripts
that rank ``means[1:]`` by BSS report ``means[k - 1]`` instead, one bucket
lower: for buckets ``[-20, -5]`` with equal counts this gives ``-5``, not
``-20``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from shared.python.exceptions import DegenerateHistogramError

from .histogram import Histogram

logger = logging.getLogger("adaptive_threshold.otsu")


@dataclass(frozen=True)
class ThresholdResult:
    """A threshold and the split that produced it.

    Attributes:
        value: The chosen bucket mean.
        split_index: Index ``k`` of the first bucket of class B; ``value``
                     is ``histogram.bucket_means[split_index]``.
        between_class_variance: ``BSS(k)`` at the chosen split.
    """

    value: float
    split_index: int
    between_class_variance: float

    def __float__(self) -> float:
        return self.value


def bss_curve(histogram: Histogram) -> np.ndarray:
    """Between-class sum of squares for splits ``k = 1 .. N-1``.

    Element ``i`` of the result belongs to split ``k = i + 1``.  Splits
    that leave one class empty score 0.
    """
    counts = histogram.counts.astype(np.float64)
    means = histogram.bucket_means
    total = counts.sum()
    if len(counts) < 2 or total == 0:
        return np.zeros(max(len(counts) - 1, 0))

    weighted = counts * means
    grand_mean = weighted.sum() / total

    count_a = np.cumsum(counts)[:-1]
    sum_a = np.cumsum(weighted)[:-1]
    count_b = total - count_a

    both = (count_a > 0) & (count_b > 0)
    bss = np.zeros_like(count_a)
    mean_a = sum_a[both] / count_a[both]
    mean_b = (grand_mean * total - sum_a[both]) / count_b[both]
    bss[both] = (
        count_a[both] * (mean_a - grand_mean) ** 2
        + count_b[both] * (mean_b - grand_mean) ** 2
    )
    return bss


class OtsuThresholder:
    """Select the bimodal split of a histogram.

    Example::

        result = OtsuThresholder().threshold(hist)
        water = raster.data < result.value
    """

    def threshold(self, histogram: Histogram, stage: Optional[str] = None) -> ThresholdResult:
        """Return the bucket mean maximising between-class variance.

        Args:
            histogram: Histogram with at least two non-empty buckets.
            stage: Pass name used in error and log messages.

        Raises:
            DegenerateHistogramError: If fewer than two buckets hold
                samples, so every split scores zero.
        """
        non_empty = histogram.non_empty_buckets
        if non_empty < 2:
            raise DegenerateHistogramError(non_empty, stage)

        bss = bss_curve(histogram)
        best = float(bss.max())
        if best <= 0:
            raise DegenerateHistogramError(non_empty, stage)

        # last maximum
        i = len(bss) - 1 - int(np.argmax(bss[::-1]))
        k = i + 1
        value = float(histogram.bucket_means[k])
        logger.debug(
            "Otsu%s: split %d/%d, threshold %.4f, BSS %.4g",
            f" ({stage})" if stage else "", k, len(histogram), value, best,
        )
        return ThresholdResult(value=value, split_index=k, between_class_variance=best)
