"""
SAR Adaptive Threshold — CLI Entry Point
=========================================
Installed as the ``sar-adaptive-threshold`` command via ``pyproject.toml``.

Usage:
    sar-adaptive-threshold --input data/s1_mosaic_vv.tif
    sar-adaptive-threshold -i mosaic.tif --region basin.geojson --edge-buffer 90 \\
        --season Summer --year 2023
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from shared.python.exceptions import AdaptiveThresholdError, InvalidParameterError

from .config import Band, RefinerConfig, Season
from .raster import Raster, Region
from .refiner import AdaptiveRefiner


def _load_params(config_path: Optional[Path]) -> Dict[str, Any]:
    if config_path is None:
        return {}
    try:
        params = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidParameterError(f"Cannot read config '{config_path}': {exc}") from exc
    if not isinstance(params, dict):
        raise InvalidParameterError(f"Config '{config_path}' must hold a JSON object.")
    return params


@click.command(
    name="sar-adaptive-threshold",
    help="Map surface water in a SAR backscatter GeoTIFF with edge-guided adaptive Otsu thresholding.",
)
@click.option(
    "--input", "-i", "input_path",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    help="Backscatter raster (dB), already composited and resampled.",
)
@click.option(
    "--band",
    type=click.Choice([b.value for b in Band], case_sensitive=False),
    default=None,
    help="Polarisation band to threshold.  [default: VV]",
)
@click.option(
    "--region", "region_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="GeoJSON boundary restricting the histograms.  Omit for the full extent.",
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file of parameters; options given on the command line win.",
)
@click.option("--resolution", type=float, default=None, help="Pixel size in map units (min 10).  [default: 30]")
@click.option("--edge-length", type=int, default=None, help="Minimum edge length in pixels.  [default: 25]")
@click.option("--edge-buffer", type=float, default=None, help="Buffer around edges in map units.  [default: 60]")
@click.option("--connected-pixels", type=int, default=None, help="Connectivity neighbourhood size.  [default: 100]")
@click.option("--canny-threshold", type=float, default=None, help="Confirmed-edge gradient.  [default: 1]")
@click.option("--canny-sigma", type=float, default=None, help="Gaussian smoothing sigma, 0 = off.  [default: 0.5]")
@click.option("--canny-lt", type=float, default=None, help="Lower hysteresis threshold.  [default: 0.05]")
@click.option("--max-pixels", type=float, default=None, help="Pixel budget per reduction.  [default: 1e10]")
@click.option(
    "--season",
    type=click.Choice([s.value for s in Season], case_sensitive=False),
    default=None,
    help="Season label of the composite.",
)
@click.option("--year", type=int, default=None, help="Year label of the composite.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(
    input_path: Path,
    band: Optional[str],
    region_path: Optional[Path],
    config_path: Optional[Path],
    resolution: Optional[float],
    edge_length: Optional[int],
    edge_buffer: Optional[float],
    connected_pixels: Optional[int],
    canny_threshold: Optional[float],
    canny_sigma: Optional[float],
    canny_lt: Optional[float],
    max_pixels: Optional[float],
    season: Optional[str],
    year: Optional[int],
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into AdaptiveRefiner."""
    overrides = {
        "band": band,
        "resolution": resolution,
        "edge_length": edge_length,
        "edge_buffer": edge_buffer,
        "connected_pixels": connected_pixels,
        "canny_threshold": canny_threshold,
        "canny_sigma": canny_sigma,
        "canny_lt": canny_lt,
        "max_pixels": max_pixels,
    }

    try:
        params = _load_params(config_path)
        params.update({k: v for k, v in overrides.items() if v is not None})
        config = RefinerConfig.from_mapping(params)

        raster = Raster.from_geotiff(input_path, band=config.band.value)
        region = Region.from_geojson(region_path) if region_path else None

        tool = AdaptiveRefiner(
            raster, region, config, season=season, year=year, verbose=verbose
        )
        result = tool.run()
    except AdaptiveThresholdError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    click.echo(result.summary())


if __name__ == "__main__":
    main()
