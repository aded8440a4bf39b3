"""
config.py
=========
Parameters for the adaptive thresholding pipeline.

Classes:
    Band            Legal Sentinel-1 polarisation channels.
    Season          Meteorological seasons used to label a composite.
    RefinerConfig   Validated parameter bundle for :class:`AdaptiveRefiner`.

Functions:
    season_window   Inclusive start / exclusive end dates for a season.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from shared.python.exceptions import InvalidParameterError
from shared.python.validators import Validators


# ---------------------------------------------------------------------------
# Default parameters
# ---------------------------------------------------------------------------

MIN_RESOLUTION = 10.0                # map units per pixel

DEFAULT_PARAMS: Dict[str, Any] = dict(
    edge_length=25,                  # min connected edge pixels kept
    edge_buffer=60.0,                # map units around surviving edges
    connected_pixels=100,            # neighbourhood size for the count
    canny_threshold=1.0,             # confirmed-edge gradient
    canny_sigma=0.5,                 # Gaussian pre-smoothing, 0 = off
    canny_lt=0.05,                   # discard / weak-edge threshold
    resolution=30.0,                 # map units per pixel, min 10
    band="VV",
    max_buckets=255,
    min_bucket_width=0.1,            # dB
    max_pixels=1e10,
    timeout_s=None,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Band(str, Enum):
    """Sentinel-1 polarisation channel to threshold."""

    VV = "VV"
    VH = "VH"
    HV = "HV"
    HH = "HH"

    @classmethod
    def parse(cls, value: "Band | str") -> "Band":
        """Return the :class:`Band` for *value* (case-insensitive).

        Raises:
            InvalidParameterError: If *value* is not one of the legal bands.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            legal = ", ".join(b.value for b in cls)
            raise InvalidParameterError(
                f"Unrecognised band {value!r}. Choose one of: {legal}."
            ) from None


class Season(str, Enum):
    """Season of the composite, with its (start, end) calendar months."""

    FALL = "Fall"
    WINTER = "Winter"
    SPRING = "Spring"
    SUMMER = "Summer"

    @property
    def months(self) -> tuple[int, int]:
        return _SEASON_MONTHS[self]

    @classmethod
    def parse(cls, value: "Season | str") -> "Season":
        """Return the :class:`Season` for *value* (case-insensitive).

        Raises:
            InvalidParameterError: For anything other than Fall, Winter,
                Spring or Summer.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().capitalize()
        try:
            return cls(key)
        except ValueError:
            raise InvalidParameterError(
                f"Invalid season {value!r}. Choose Fall, Winter, Spring, or Summer."
            ) from None


_SEASON_MONTHS = {
    Season.FALL: (9, 11),
    Season.WINTER: (12, 2),
    Season.SPRING: (3, 5),
    Season.SUMMER: (6, 8),
}


def season_window(season: "Season | str", year: int) -> tuple[dt.date, dt.date]:
    """Return ``(start, end)`` dates for *season* of *year*.

    *end* is exclusive (the first day after the season).  Winter spans
    two calendar years: December of ``year - 1`` to February of *year*.

    Example::

        >>> season_window("Winter", 2023)
        (datetime.date(2022, 12, 1), datetime.date(2023, 3, 1))
    """
    season = Season.parse(season)
    start_month, end_month = season.months
    start_year = year - 1 if start_month > end_month else year
    start = dt.date(start_year, start_month, 1)
    # first day of the month after end_month
    if end_month == 12:
        end = dt.date(year + 1, 1, 1)
    else:
        end = dt.date(year, end_month + 1, 1)
    return start, end


# ---------------------------------------------------------------------------
# Configuration bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RefinerConfig:
    """Configuration for :class:`~adaptive_threshold.refiner.AdaptiveRefiner`.

    Attributes:
        edge_length: Minimum connected-component pixel count for an edge
                     to survive noise filtering.
        edge_buffer: Buffer distance around surviving edges, in the
                     raster's map units.
        connected_pixels: Neighbourhood size for the connectivity count;
                          component sizes are resolved up to this value.
        canny_threshold: Gradient magnitude at or above which a pixel is
                         a confirmed edge.
        canny_sigma: Standard deviation of the Gaussian pre-smoothing.
                     ``0`` disables smoothing.
        canny_lt: Lower hysteresis threshold; also splits detected edges
                  into weak / strong groups.
        resolution: Pixel size in map units; at least 10.
        band: Polarisation channel the raster holds.
        max_buckets: Maximum number of histogram buckets.
        min_bucket_width: Smallest histogram bucket width.
        max_pixels: Pixel budget for any single reduction.
        timeout_s: Optional wall-clock limit for the whole run.
    """

    edge_length: int = DEFAULT_PARAMS["edge_length"]
    edge_buffer: float = DEFAULT_PARAMS["edge_buffer"]
    connected_pixels: int = DEFAULT_PARAMS["connected_pixels"]
    canny_threshold: float = DEFAULT_PARAMS["canny_threshold"]
    canny_sigma: float = DEFAULT_PARAMS["canny_sigma"]
    canny_lt: float = DEFAULT_PARAMS["canny_lt"]
    resolution: float = DEFAULT_PARAMS["resolution"]
    band: Band = Band.VV
    max_buckets: int = DEFAULT_PARAMS["max_buckets"]
    min_bucket_width: float = DEFAULT_PARAMS["min_bucket_width"]
    max_pixels: float = DEFAULT_PARAMS["max_pixels"]
    timeout_s: Optional[float] = DEFAULT_PARAMS["timeout_s"]

    def __post_init__(self) -> None:
        # Accept plain strings for the band ("vv", "VH", ...)
        object.__setattr__(self, "band", Band.parse(self.band))

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "RefinerConfig":
        """Build a config from a plain mapping such as a parsed JSON file.

        Raises:
            InvalidParameterError: If *params* contains unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise InvalidParameterError(
                f"Unknown parameter(s): {', '.join(unknown)}. "
                f"Known parameters: {', '.join(sorted(known))}"
            )
        return cls(**dict(params))

    def validate(self) -> None:
        """Check every parameter; raise on the first invalid one.

        Raises:
            InvalidParameterError: If any value is out of range.
        """
        Validators.assert_min_value(self.resolution, MIN_RESOLUTION, "resolution")
        Validators.assert_positive_int(self.edge_length, "edge_length")
        Validators.assert_positive_int(self.connected_pixels, "connected_pixels")
        Validators.assert_ordered(
            self.edge_length, self.connected_pixels, "edge_length", "connected_pixels"
        )
        Validators.assert_min_value(self.edge_buffer, 0, "edge_buffer")
        Validators.assert_min_value(self.canny_sigma, 0, "canny_sigma")
        Validators.assert_positive(self.canny_threshold, "canny_threshold")
        Validators.assert_min_value(self.canny_lt, 0, "canny_lt")
        Validators.assert_ordered(
            self.canny_lt, self.canny_threshold, "canny_lt", "canny_threshold"
        )
        Validators.assert_positive_int(self.max_buckets, "max_buckets")
        Validators.assert_positive(self.min_bucket_width, "min_bucket_width")
        Validators.assert_positive(self.max_pixels, "max_pixels")
        if self.timeout_s is not None:
            Validators.assert_positive(self.timeout_s, "timeout_s")

    def as_dict(self) -> Dict[str, Any]:
        """Plain-dict snapshot with the band as its string value."""
        params = asdict(self)
        params["band"] = self.band.value
        return params
