"""
SAR Adaptive Threshold — Shared Input Validators
=================================================
Static utility methods used to validate pipeline parameters before any
raster computation begins.

All methods raise an appropriate exception from
:mod:`shared.python.exceptions` rather than returning booleans — this
keeps ``validate_inputs`` implementations simple and readable::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_min_value(self.config.resolution, 10, "resolution")
            Validators.assert_positive(self.config.canny_threshold, "canny_threshold")
"""

from __future__ import annotations

import math
import numbers
from pathlib import Path
from typing import Sequence

from shared.python.exceptions import BandNotFoundError, InvalidParameterError


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Raises:
            InvalidParameterError: If *path* does not exist or is a
                directory rather than a file.
        """
        path = Path(path)
        if not path.exists():
            raise InvalidParameterError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InvalidParameterError(
                f"Expected a file but got a directory: '{path}'."
            )

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Assert that *path* has one of the allowed file extensions.

        Args:
            path: File path to check.
            extensions: Allowed extensions, each starting with a dot
                        (e.g. ``[".tif", ".tiff"]``).

        Raises:
            InvalidParameterError: If the file extension is not in
                *extensions*.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        allowed = [ext.lower() for ext in extensions]
        if suffix not in allowed:
            raise InvalidParameterError(
                f"Unsupported file extension '{suffix}' for '{path.name}'. "
                f"Accepted extensions: {', '.join(allowed)}"
            )

    # ------------------------------------------------------------------
    # Numeric parameter checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_finite(value: float, name: str) -> None:
        """Assert that *value* is a finite real number.

        Strings and booleans are rejected even though ``float()`` accepts
        them.

        Raises:
            InvalidParameterError: For NaN, infinities and non-numbers.
        """
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
        ):
            raise InvalidParameterError(
                f"Parameter '{name}' must be a finite number, got {value!r}."
            )

    @staticmethod
    def assert_min_value(value: float, minimum: float, name: str) -> None:
        """Assert that *value* is at least *minimum*.

        Example::

            Validators.assert_min_value(config.resolution, 10, "resolution")
        """
        Validators.assert_finite(value, name)
        if value < minimum:
            raise InvalidParameterError(
                f"Parameter '{name}' must be >= {minimum:g}, got {value:g}."
            )

    @staticmethod
    def assert_positive(value: float, name: str) -> None:
        """Assert that *value* is strictly greater than zero."""
        Validators.assert_finite(value, name)
        if value <= 0:
            raise InvalidParameterError(
                f"Parameter '{name}' must be > 0, got {value:g}."
            )

    @staticmethod
    def assert_positive_int(value: int, name: str) -> None:
        """Assert that *value* is an integer (not ``bool``) of at least 1.

        Any :class:`numbers.Integral` is accepted, numpy integers included.
        """
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise InvalidParameterError(
                f"Parameter '{name}' must be an integer, got {value!r}."
            )
        if value < 1:
            raise InvalidParameterError(
                f"Parameter '{name}' must be >= 1, got {value}."
            )

    @staticmethod
    def assert_ordered(low: float, high: float, low_name: str, high_name: str) -> None:
        """Assert that ``low <= high``.

        Raises:
            InvalidParameterError: If the pair is inverted.
        """
        if low > high:
            raise InvalidParameterError(
                f"Parameter '{low_name}' ({low:g}) must not exceed "
                f"'{high_name}' ({high:g})."
            )

    # ------------------------------------------------------------------
    # Raster checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_band_available(band: str, available: Sequence[str]) -> None:
        """Assert that *band* is one of the raster's band names.

        Raises:
            BandNotFoundError: If *band* is not in *available*.
        """
        if band not in available:
            raise BandNotFoundError(band, list(available))

    @staticmethod
    def assert_resolution_matches(
        raster_resolution: float,
        configured: float,
        rel_tol: float = 1e-6,
    ) -> None:
        """Assert that a raster's pixel size equals the configured resolution.

        Resampling to a common grid is the caller's job, so a mismatch
        is a parameter error rather than something to fix silently.

        Raises:
            InvalidParameterError: If the two differ beyond *rel_tol*.
        """
        if not math.isclose(raster_resolution, configured, rel_tol=rel_tol):
            raise InvalidParameterError(
                f"Raster pixel size is {raster_resolution:g} but the configured "
                f"resolution is {configured:g}. Resample the raster first."
            )

    @staticmethod
    def assert_raster_shapes_match(
        shape_a: tuple[int, int],
        shape_b: tuple[int, int],
        label_a: str = "raster",
        label_b: str = "mask",
    ) -> None:
        """Assert that two arrays have identical (rows, cols) shapes.

        Raises:
            InvalidParameterError: If the shapes do not match.
        """
        if tuple(shape_a) != tuple(shape_b):
            raise InvalidParameterError(
                f"Raster shape mismatch: {label_a} is {tuple(shape_a)} but "
                f"{label_b} is {tuple(shape_b)}."
            )
