"""
masks.py
========
Threshold application and class pixel counts.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .budget import ReductionBudget
from .raster import Raster, Region

logger = logging.getLogger("adaptive_threshold.masks")


class MaskGenerator:
    """Binary classification of a raster against a threshold.

    The class of interest (water) is everything strictly below the
    threshold.  No-data cells stay no-data.
    """

    @staticmethod
    def apply(raster: Raster, threshold: float) -> Raster:
        """Return a {0, 1} raster: 1 where ``value < threshold``."""
        below = (raster.data < float(threshold)) & raster.valid
        return raster.derive(below.astype(np.float64))

    @staticmethod
    def count(
        mask: Raster,
        region: Optional[Region] = None,
        budget: Optional[ReductionBudget] = None,
        stage: str = "class count",
    ) -> int:
        """Number of valid cells equal to 1 inside *region*.

        Raises:
            ResourceBudgetExceededError: If the budget is exceeded.
        """
        footprint = (region or Region()).footprint(mask)
        if budget is not None:
            budget.checkpoint(stage, int(footprint.sum()))
        n = int(np.count_nonzero(mask.data[footprint] == 1))
        logger.debug("%s: %d px", stage, n)
        return n
