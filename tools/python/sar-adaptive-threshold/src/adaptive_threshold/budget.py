"""
budget.py
=========
Resource guard for the pipeline's materialisation points.

Every histogram build and pixel-count reduction calls
:meth:`ReductionBudget.checkpoint` before touching the data.  The
checkpoint enforces the pixel budget, the optional wall-clock deadline and
cooperative cancellation, failing explicitly instead of truncating.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from shared.python.exceptions import (
    PipelineCancelledError,
    ResourceBudgetExceededError,
)

logger = logging.getLogger("adaptive_threshold.budget")


class ReductionBudget:
    """Pixel / time / cancellation budget shared by one pipeline run.

    Args:
        max_pixels: Largest number of pixels a single reduction may read.
        timeout_s: Seconds allowed since :meth:`start` (or construction);
                   ``None`` disables the deadline.
        cancel_event: Optional event; once set, the next checkpoint raises
                      :class:`PipelineCancelledError`.

    Example::

        budget = ReductionBudget(max_pixels=1e8, timeout_s=60)
        budget.checkpoint("global histogram", raster.data.size)
    """

    def __init__(
        self,
        max_pixels: float = 1e10,
        timeout_s: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.max_pixels = max_pixels
        self.timeout_s = timeout_s
        self.cancel_event = cancel_event
        self._started = time.monotonic()
        self.checkpoints: list[str] = []

    def start(self) -> None:
        """Reset the deadline clock and the checkpoint log."""
        self._started = time.monotonic()
        self.checkpoints = []

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    def checkpoint(self, stage: str, pixel_count: int = 0) -> None:
        """Gate a materialisation point.

        Args:
            stage: Human-readable name of the reduction.
            pixel_count: Number of pixels the reduction is about to read.

        Raises:
            PipelineCancelledError: If cancellation was requested.
            ResourceBudgetExceededError: If *pixel_count* exceeds
                ``max_pixels`` or the deadline has passed.
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PipelineCancelledError(stage)

        if self.timeout_s is not None and self.elapsed > self.timeout_s:
            raise ResourceBudgetExceededError(
                stage, f"{self.elapsed:.1f}s elapsed > {self.timeout_s:g}s timeout"
            )

        if pixel_count > self.max_pixels:
            raise ResourceBudgetExceededError(
                stage, f"{pixel_count:,} pixels > max_pixels {self.max_pixels:g}"
            )

        self.checkpoints.append(stage)
        logger.debug("Checkpoint '%s': %d px, %.2fs elapsed", stage, pixel_count, self.elapsed)
