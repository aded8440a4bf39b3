"""
refiner.py
==========
Two-pass adaptive thresholding of a single-band backscatter raster.

Pipeline (one strictly sequential pass through :class:`RefinerState`):

  1.  GLOBAL_PASS             histogram + Otsu over the whole region
  2.  PRELIMINARY_CLASSIFIED  raster < global threshold
  3.  EDGES_DETECTED          Canny-style edges of the preliminary classes
  4.  EDGES_FILTERED          short edge groups removed
  5.  BUFFERED                surviving edges grown by ``edge_buffer``
  6.  ADAPTIVE_PASS           histogram + Otsu restricted to the buffer
  7.  DONE                    final classification + diagnostics

The global threshold is pulled around by speckle over large homogeneous
areas.  Sampling only a narrow band around likely water edges gives a
cleaner bimodal mixture for the second Otsu pass.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from shared.python.base_tool import GeoTool
from shared.python.exceptions import BandNotFoundError, DegenerateHistogramError
from shared.python.validators import Validators

from .budget import ReductionBudget
from .config import RefinerConfig, Season, season_window
from .edges import EdgeBuffer, EdgeDetector, EdgeFilter
from .histogram import Histogram, HistogramBuilder, chart_title
from .masks import MaskGenerator
from .otsu import OtsuThresholder, ThresholdResult
from .raster import Raster, Region

logger = logging.getLogger("adaptive_threshold.refiner")


class RefinerState(Enum):
    GLOBAL_PASS = "global_pass"
    PRELIMINARY_CLASSIFIED = "preliminary_classified"
    EDGES_DETECTED = "edges_detected"
    EDGES_FILTERED = "edges_filtered"
    BUFFERED = "buffered"
    ADAPTIVE_PASS = "adaptive_pass"
    DONE = "done"


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class RefinementResult:
    """Everything one refinement run produces."""

    # ---- Thresholds -------------------------------------------------------
    global_threshold: ThresholdResult
    adaptive_threshold: ThresholdResult

    # ---- Final classification (adaptive threshold), 1 = water -------------
    classification: Raster

    # ---- Diagnostics ------------------------------------------------------
    edges: Raster                     # filtered edge mask
    buffer: Raster                    # sampling mask of the adaptive pass
    global_histogram: Histogram
    adaptive_histogram: Histogram

    # ---- Class pixel counts inside the region -----------------------------
    global_class_count: int
    adaptive_class_count: int

    band: str = "VV"
    season: Optional[Season] = None
    year: Optional[int] = None
    params: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def edge_pixel_count(self) -> int:
        return MaskGenerator.count(self.edges)

    @property
    def buffer_pixel_count(self) -> int:
        return MaskGenerator.count(self.buffer)

    def class_area(self, count: int) -> float:
        """Area of *count* pixels in squared map units."""
        return count * self.classification.pixel_area

    def chart_title(self, kind: str) -> str:
        """Histogram chart title for ``"global"`` or ``"adaptive"``."""
        season = self.season.value if self.season else None
        return chart_title(self.band, kind, season, self.year)

    def summary(self) -> str:
        """Multi-line, human-readable summary of the run."""
        lines = ["=== Adaptive Threshold Summary ============================"]
        if self.season is not None and self.year is not None:
            start, end = season_window(self.season, self.year)
            lines.append(
                f"  Season                 : {self.season.value} {self.year} "
                f"({start.isoformat()} to {end.isoformat()})"
            )
        lines += [
            f"  Band                   : {self.band}",
            f"  Global threshold       : {self.global_threshold.value:.4f}",
            f"  Adaptive threshold     : {self.adaptive_threshold.value:.4f}",
            f"  Global water pixels    : {self.global_class_count:,}",
            f"  Adaptive water pixels  : {self.adaptive_class_count:,}",
            f"  Adaptive water area    : {self.class_area(self.adaptive_class_count):,.0f} units2",
            f"  Filtered edge pixels   : {self.edge_pixel_count:,}",
            f"  Buffer pixels sampled  : {self.adaptive_histogram.total:,}",
            "==========================================================",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AdaptiveRefiner(GeoTool):
    """Run the global and adaptive Otsu passes over one raster.

    Inherits the Template Method pipeline from :class:`~shared.python.GeoTool`:
    every parameter is validated before the first reduction.

    Args:
        raster: Single-band backscatter raster (dB) on a grid whose pixel
                size equals ``config.resolution``.
        region: Restricts both histogram passes and the pixel counts;
                ``None`` uses the full raster extent.
        config: A :class:`RefinerConfig`; defaults when omitted.
        season: Optional season label carried into the result.
        year: Year label; required when *season* is given.
        cancel_event: Set it from another thread to stop the run at the
                      next reduction.
        verbose: Enable DEBUG-level logging.

    Example::

        result = AdaptiveRefiner(raster, Region.from_geojson(path)).run()
        print(result.summary())
    """

    def __init__(
        self,
        raster: Raster,
        region: Optional[Region] = None,
        config: Optional[RefinerConfig] = None,
        *,
        season: "Season | str | None" = None,
        year: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        verbose: bool = False,
    ) -> None:
        super().__init__(verbose=verbose)
        self.raster = raster
        self.region = region or Region()
        self.config = config or RefinerConfig()
        self.season = season
        self.year = year
        self.cancel_event = cancel_event
        self.state: Optional[RefinerState] = None

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Validate parameters, band, grid and labels.

        Raises:
            InvalidParameterError: For any out-of-range parameter, a
                resolution mismatch or an invalid season / year.
            BandNotFoundError: If the raster does not hold ``config.band``.
        """
        self.config.validate()
        if self.raster.band != self.config.band.value:
            raise BandNotFoundError(self.config.band.value, [self.raster.band])
        Validators.assert_resolution_matches(self.raster.resolution, self.config.resolution)

        if self.season is not None:
            self.season = Season.parse(self.season)
            Validators.assert_positive_int(self.year, "year")
        logger.debug("Inputs validated: %s", self.config)

    def process(self) -> RefinementResult:
        """Run every state in order and return the result."""
        cfg = self.config
        budget = ReductionBudget(cfg.max_pixels, cfg.timeout_s, self.cancel_event)
        builder = HistogramBuilder(cfg.max_buckets, cfg.min_bucket_width)
        otsu = OtsuThresholder()

        self._enter(RefinerState.GLOBAL_PASS)
        global_hist = builder.build(
            self.raster, self.region, budget=budget, stage="global histogram"
        )
        global_threshold = otsu.threshold(global_hist, stage="global")
        logger.info("Global threshold: %.4f", global_threshold.value)

        self._enter(RefinerState.PRELIMINARY_CLASSIFIED)
        preliminary = MaskGenerator.apply(self.raster, global_threshold.value)
        global_count = MaskGenerator.count(
            preliminary, self.region, budget, stage="global class count"
        )

        self._enter(RefinerState.EDGES_DETECTED)
        detection = EdgeDetector(cfg.canny_sigma, cfg.canny_threshold, cfg.canny_lt).detect(
            preliminary
        )

        self._enter(RefinerState.EDGES_FILTERED)
        edges = EdgeFilter(cfg.edge_length, cfg.connected_pixels).apply(detection.edge_groups())
        n_edges = MaskGenerator.count(edges)
        if n_edges == 0:
            logger.warning(
                "No edges of at least %d px survived; the adaptive pass has nothing to sample.",
                cfg.edge_length,
            )

        self._enter(RefinerState.BUFFERED)
        buffer = EdgeBuffer(cfg.edge_buffer).apply(edges, cfg.resolution)

        self._enter(RefinerState.ADAPTIVE_PASS)
        adaptive_hist = builder.build(
            self.raster, self.region, sample_mask=buffer, budget=budget,
            stage="adaptive histogram",
        )
        try:
            adaptive_threshold = otsu.threshold(adaptive_hist, stage="adaptive")
        except DegenerateHistogramError:
            logger.warning(
                "Buffer sample of %d px is degenerate; no adaptive threshold.",
                adaptive_hist.total,
            )
            raise
        logger.info("Adaptive threshold: %.4f", adaptive_threshold.value)

        classification = MaskGenerator.apply(self.raster, adaptive_threshold.value)
        adaptive_count = MaskGenerator.count(
            classification, self.region, budget, stage="adaptive class count"
        )

        self._enter(RefinerState.DONE)
        return RefinementResult(
            global_threshold=global_threshold,
            adaptive_threshold=adaptive_threshold,
            classification=classification,
            edges=edges,
            buffer=buffer,
            global_histogram=global_hist,
            adaptive_histogram=adaptive_hist,
            global_class_count=global_count,
            adaptive_class_count=adaptive_count,
            band=cfg.band.value,
            season=self.season,  # type: ignore[arg-type]
            year=self.year,
            params=cfg.as_dict(),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _enter(self, state: RefinerState) -> None:
        logger.debug("State %s -> %s", self.state.value if self.state else "start", state.value)
        self.state = state
