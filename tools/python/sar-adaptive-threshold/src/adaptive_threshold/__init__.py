"""
SAR Adaptive Threshold
======================
Edge-guided, two-pass Otsu thresholding of SAR backscatter rasters for
surface water mapping.

Public API::

    from adaptive_threshold import AdaptiveRefiner, RefinerConfig, Raster, Region
"""

from .config import Band, RefinerConfig, Season, season_window
from .edges import EdgeBuffer, EdgeDetection, EdgeDetector, EdgeFilter
from .histogram import Histogram, HistogramBuilder
from .masks import MaskGenerator
from .otsu import OtsuThresholder, ThresholdResult
from .raster import Raster, Region
from .refiner import AdaptiveRefiner, RefinementResult, RefinerState

__all__ = [
    "AdaptiveRefiner",
    "RefinementResult",
    "RefinerState",
    "RefinerConfig",
    "Band",
    "Season",
    "season_window",
    "Raster",
    "Region",
    "Histogram",
    "HistogramBuilder",
    "OtsuThresholder",
    "ThresholdResult",
    "EdgeDetector",
    "EdgeDetection",
    "EdgeFilter",
    "EdgeBuffer",
    "MaskGenerator",
]
__version__ = "1.0.0"
