"""
raster.py
=========
Immutable raster and region types shared by every pipeline stage.

A :class:`Raster` is a single-band grid of float samples plus a boolean
validity footprint (``False`` = no-data) on an affine grid.  Stages never
modify a raster in place: they derive a new one on the same grid with
:meth:`Raster.derive`.

A :class:`Region` is a shapely geometry that restricts reductions.  It is
rasterised onto a raster's grid with the pixel-centre rule.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import numpy as np
import numpy.typing as npt
import rasterio
from rasterio.features import geometry_mask
from rasterio.transform import Affine, from_origin
from shapely.geometry import box, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from shared.python.exceptions import InvalidParameterError, RasterError
from shared.python.validators import Validators

logger = logging.getLogger("adaptive_threshold.raster")

SUPPORTED_EXTENSIONS = [".tif", ".tiff", ".vrt", ".img"]


def _frozen(array: npt.ArrayLike, dtype) -> np.ndarray:
    out = np.array(array, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Raster:
    """Immutable single-band raster.

    Attributes:
        data: 2-D float64 samples.  Values under no-data cells are
              meaningless and never read.
        valid: 2-D bool footprint, ``True`` where ``data`` holds a sample.
        transform: Affine pixel-to-map transform.
        crs: Coordinate reference (EPSG string or WKT), ``None`` if unknown.
        band: Name of the channel the samples came from.
    """

    data: np.ndarray
    valid: np.ndarray
    transform: Affine = field(default_factory=Affine.identity)
    crs: Optional[str] = None
    band: str = "VV"

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        valid = np.asarray(self.valid)
        if data.ndim != 2:
            raise RasterError(f"Raster data must be 2-D, got shape {data.shape}.")
        Validators.assert_raster_shapes_match(data.shape, valid.shape, "data", "valid")
        object.__setattr__(self, "data", _frozen(data, np.float64))
        object.__setattr__(self, "valid", _frozen(valid, bool))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_array(
        cls,
        array: npt.ArrayLike,
        resolution: float = 30.0,
        *,
        nodata: Optional[float] = None,
        transform: Optional[Affine] = None,
        crs: Optional[str] = None,
        band: str = "VV",
    ) -> "Raster":
        """Wrap a 2-D array; NaN, infinities and *nodata* become no-data.

        When *transform* is omitted a north-up grid with origin ``(0, 0)``
        at the top-left corner and square pixels of *resolution* is used.
        """
        arr = np.asarray(array, dtype=np.float64)
        valid = np.isfinite(arr)
        if nodata is not None:
            valid &= arr != nodata
        if transform is None:
            transform = from_origin(0.0, arr.shape[0] * resolution, resolution, resolution)
        return cls(np.where(valid, arr, 0.0), valid, transform, crs, band)

    @classmethod
    def from_geotiff(cls, path: Path, band: str = "VV") -> "Raster":
        """Read one band of a GeoTIFF.

        The band is chosen by its description (e.g. a band described as
        ``"VV"``).  Single-band files without descriptions are accepted
        as-is.

        Raises:
            InvalidParameterError: If the file is missing or not a raster
                format this reader accepts.
            BandNotFoundError: If a multi-band file has no band named
                *band*.
            RasterError: If rasterio cannot read the file.
        """
        path = Path(path)
        Validators.assert_file_exists(path)
        Validators.assert_supported_extension(path, SUPPORTED_EXTENSIONS)

        try:
            with rasterio.open(path) as src:
                names = [d or "" for d in src.descriptions]
                if band in names:
                    index = names.index(band) + 1
                elif src.count == 1 and not names[0]:
                    index = 1
                else:
                    Validators.assert_band_available(band, [n for n in names if n])
                array = src.read(index, masked=True).astype(np.float64)
                transform = src.transform
                crs = src.crs.to_string() if src.crs else None
        except rasterio.errors.RasterioIOError as exc:
            raise RasterError(f"Could not open raster '{path}': {exc}") from exc

        valid = ~np.ma.getmaskarray(array) & np.isfinite(array.filled(np.nan))
        logger.debug("Read band %s from %s: %s, %d valid px", band, path.name, array.shape, valid.sum())
        return cls(array.filled(0.0), valid, transform, crs, band)

    def derive(self, data: npt.ArrayLike, valid: Optional[npt.ArrayLike] = None) -> "Raster":
        """Return a new raster on the same grid with new samples."""
        return replace(self, data=data, valid=self.valid if valid is None else valid)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape  # type: ignore[return-value]

    @property
    def resolution(self) -> float:
        """Pixel width in map units."""
        return abs(self.transform.a)

    @property
    def pixel_area(self) -> float:
        return abs(self.transform.a * self.transform.e)

    @property
    def valid_count(self) -> int:
        return int(self.valid.sum())

    def __repr__(self) -> str:
        return (
            f"Raster(shape={self.shape}, band={self.band!r}, "
            f"resolution={self.resolution:g}, valid={self.valid_count})"
        )


# ---------------------------------------------------------------------------
# Region
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Region:
    """Geometric boundary that restricts reductions.

    ``geometry=None`` means the full extent of whatever raster the region
    is applied to.
    """

    geometry: Optional[BaseGeometry] = None

    @classmethod
    def from_bounds(cls, minx: float, miny: float, maxx: float, maxy: float) -> "Region":
        return cls(box(minx, miny, maxx, maxy))

    @classmethod
    def from_geojson(cls, path: Path) -> "Region":
        """Load a GeoJSON file and union all of its geometries.

        Accepts a FeatureCollection, a single Feature or a bare geometry.

        Raises:
            InvalidParameterError: If the file is missing, unparsable or
                contains no geometry.
        """
        path = Path(path)
        Validators.assert_file_exists(path)
        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidParameterError(f"Cannot read region '{path}': {exc}") from exc

        if doc.get("type") == "FeatureCollection":
            geoms = [f.get("geometry") for f in doc.get("features", [])]
        elif doc.get("type") == "Feature":
            geoms = [doc.get("geometry")]
        else:
            geoms = [doc]
        geoms = [shape(g) for g in geoms if g]
        if not geoms:
            raise InvalidParameterError(f"Region file '{path}' contains no geometry.")
        return cls(unary_union(geoms))

    def mask_for(self, raster: Raster) -> np.ndarray:
        """Boolean array on *raster*'s grid, ``True`` inside the region."""
        if self.geometry is None:
            return np.ones(raster.shape, dtype=bool)
        if self.geometry.is_empty:
            return np.zeros(raster.shape, dtype=bool)
        return geometry_mask(
            [self.geometry],
            out_shape=raster.shape,
            transform=raster.transform,
            invert=True,
        )

    def footprint(self, raster: Raster) -> np.ndarray:
        """Valid cells of *raster* that fall inside the region."""
        return raster.valid & self.mask_for(raster)
