"""
SAR Adaptive Threshold — Shared Python Package
===============================================
Re-exports the shared base class, exception hierarchy, and validator
utilities so the pipeline modules can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import EmptyRegionError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    AdaptiveThresholdError,
    BandNotFoundError,
    DegenerateHistogramError,
    EmptyRegionError,
    InvalidParameterError,
    PipelineCancelledError,
    RasterError,
    ResourceBudgetExceededError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "AdaptiveThresholdError",
    "InvalidParameterError",
    "BandNotFoundError",
    "RasterError",
    "EmptyRegionError",
    "DegenerateHistogramError",
    "ResourceBudgetExceededError",
    "PipelineCancelledError",
]
