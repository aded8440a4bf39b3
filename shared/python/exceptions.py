"""
SAR Adaptive Threshold — Custom Exception Hierarchy
====================================================
Every stage of the thresholding pipeline raises exceptions from this
module so callers can catch them at the right level of granularity.

Hierarchy::

    AdaptiveThresholdError               ← catch-all base
    ├── InvalidParameterError            ← bad config, band, resolution, file
    │   └── BandNotFoundError            ← requested band not in the raster
    ├── RasterError                      ← rasterio / numpy raster issues
    │   └── EmptyRegionError             ← no valid samples to reduce
    ├── DegenerateHistogramError         ← Otsu undefined (one bucket)
    ├── ResourceBudgetExceededError      ← pixel / time budget exceeded
    └── PipelineCancelledError           ← caller cancelled the run

None of these are retried internally: every stage is deterministic, so a
retry would reproduce the same failure.

Usage::

    from shared.python.exceptions import EmptyRegionError

    raise EmptyRegionError("buffer mask", resolution=30.0)
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class AdaptiveThresholdError(Exception):
    """Base exception for the adaptive thresholding pipeline.

    Catch this to handle any pipeline error without caring about the
    exact subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------


class InvalidParameterError(AdaptiveThresholdError):
    """Raised when a configuration value or input fails validation.

    Always raised before any raster computation starts.
    """


class BandNotFoundError(InvalidParameterError):
    """Raised when a requested polarisation band is not available.

    Args:
        band: The band name that was requested (e.g. ``"VH"``).
        available: Band names that ARE present, used to build a helpful
                   error message.

    Example::

        raise BandNotFoundError("VH", ["VV"])
    """

    def __init__(self, band: str, available: list[str]) -> None:
        available_str = ", ".join(f"'{b}'" for b in available) or "none"
        super().__init__(
            f"Band '{band}' not found. Available bands: {available_str}"
        )
        self.band: str = band
        self.available: list[str] = available


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------


class RasterError(AdaptiveThresholdError):
    """Raised for general raster processing failures (rasterio / numpy)."""


class EmptyRegionError(RasterError):
    """Raised when a reduction finds zero valid samples.

    Args:
        what: Short description of the sampled area
              (e.g. ``"region"`` or ``"buffer mask"``).
        resolution: Pixel size the reduction ran at.

    Example::

        raise EmptyRegionError("region", resolution=30.0)
    """

    def __init__(self, what: str, resolution: float | None = None) -> None:
        at = f" at {resolution:g} units/pixel" if resolution else ""
        super().__init__(f"No valid samples in {what}{at}.")
        self.what: str = what
        self.resolution: float | None = resolution


# ---------------------------------------------------------------------------
# Thresholding
# ---------------------------------------------------------------------------


class DegenerateHistogramError(AdaptiveThresholdError):
    """Raised when a histogram has no informative split.

    Otsu's between-class variance is zero for every split when all the
    mass sits in a single bucket, so no threshold can be chosen.

    Args:
        non_empty_buckets: Number of buckets with a non-zero count.
        stage: Which pass produced the histogram (``"global"`` or
               ``"adaptive"``), if known.
    """

    def __init__(self, non_empty_buckets: int, stage: str | None = None) -> None:
        where = f" ({stage} pass)" if stage else ""
        super().__init__(
            f"Histogram is degenerate{where}: {non_empty_buckets} non-empty "
            "bucket(s), at least 2 are required for Otsu thresholding."
        )
        self.non_empty_buckets: int = non_empty_buckets
        self.stage: str | None = stage


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class ResourceBudgetExceededError(AdaptiveThresholdError):
    """Raised when a reduction would exceed the configured budget.

    Args:
        stage: Name of the materialisation point that tripped the budget.
        reason: Short explanation (pixel count or elapsed time).

    Example::

        raise ResourceBudgetExceededError("global histogram", "2.1e10 > 1e10 pixels")
    """

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"Budget exceeded at '{stage}': {reason}")
        self.stage: str = stage
        self.reason: str = reason


class PipelineCancelledError(AdaptiveThresholdError):
    """Raised at a checkpoint when the caller has requested cancellation.

    Args:
        stage: Name of the checkpoint where cancellation was observed.
    """

    def __init__(self, stage: str) -> None:
        super().__init__(f"Pipeline cancelled at '{stage}'.")
        self.stage: str = stage
