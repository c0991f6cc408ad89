# src/geoprimer/raster/sample.py

"""
This module extracts raster cell values at point locations.

Points are mapped to cell indices through the inverse of the raster's affine
transform. Points falling outside the grid receive the no-data sentinel.
"""

import logging
from typing import List, Literal, Optional, Union

import numpy as np

from geoprimer.crs import ensure_same_crs
from geoprimer.vector.layer import Vector
from .io import resolve_raster
from .layer import Raster

log = logging.getLogger(__name__)

__all__ = [
    "sample_points",
    "extract_to_points"
]

def _point_coordinates(points: Vector):
    geoms = points.data.geometry
    missing = geoms.isna() | geoms.is_empty
    present = geoms[~missing]

    non_points = sorted(set(present.geom_type) - {"Point"})
    if non_points:
        raise ValueError(f"Raster sampling needs Point geometries, got {non_points}")

    xs = np.full(len(geoms), np.nan)
    ys = np.full(len(geoms), np.nan)
    xs[~missing.to_numpy()] = present.x.to_numpy()
    ys[~missing.to_numpy()] = present.y.to_numpy()
    return xs, ys

def _output_dtype(band_dtype: np.dtype, fill) -> np.dtype:
    """Keep integer cell types when the sentinel fits in them, else use float64."""
    if np.issubdtype(band_dtype, np.integer) and np.isfinite(fill) and float(fill).is_integer():
        info = np.iinfo(band_dtype)
        if info.min <= fill <= info.max:
            return band_dtype
    if np.issubdtype(band_dtype, np.floating):
        return band_dtype
    return np.dtype(np.float64)

def _is_nodata(values: np.ndarray, nodata) -> np.ndarray:
    invalid = np.zeros(values.shape, dtype=bool)
    if np.issubdtype(values.dtype, np.floating):
        invalid |= np.isnan(values)
    if nodata is not None and not np.isnan(nodata):
        invalid |= values == nodata
    return invalid

def _sample_nearest(band: np.ndarray, cols_f: np.ndarray, rows_f: np.ndarray, inside: np.ndarray, out: np.ndarray):
    cols = np.floor(cols_f[inside]).astype(np.int64)
    rows = np.floor(rows_f[inside]).astype(np.int64)
    out[inside] = band[rows, cols]

def _sample_bilinear(band: np.ndarray, cols_f: np.ndarray, rows_f: np.ndarray, inside: np.ndarray, out: np.ndarray, nodata, fill):
    height, width = band.shape

    # fractional positions relative to cell centres
    c = cols_f[inside] - 0.5
    r = rows_f[inside] - 0.5
    c0 = np.floor(c).astype(np.int64)
    r0 = np.floor(r).astype(np.int64)
    fc = c - c0
    fr = r - r0

    c0c, c1c = np.clip(c0, 0, width - 1), np.clip(c0 + 1, 0, width - 1)
    r0c, r1c = np.clip(r0, 0, height - 1), np.clip(r0 + 1, 0, height - 1)

    v00 = band[r0c, c0c].astype(np.float64)
    v01 = band[r0c, c1c].astype(np.float64)
    v10 = band[r1c, c0c].astype(np.float64)
    v11 = band[r1c, c1c].astype(np.float64)

    values = (
        v00 * (1 - fc) * (1 - fr) +
        v01 * fc * (1 - fr) +
        v10 * (1 - fc) * fr +
        v11 * fc * fr
    )

    any_nodata = (
        _is_nodata(v00, nodata) | _is_nodata(v01, nodata) |
        _is_nodata(v10, nodata) | _is_nodata(v11, nodata)
    )
    values[any_nodata] = fill
    out[inside] = values

@resolve_raster
def sample_points(
    raster: Raster,
    points: Vector,
    band: Union[int, str] = 1,
    method: Literal["nearest", "bilinear"] = "nearest"
) -> np.ndarray:
    """
    Read the raster value under each point.

    Args:
        raster: Source raster (path or Raster).
        points: Point features in the raster's CRS.
        band: 1-based band index or band name.
        method: 'nearest' returns the value of the cell containing the point.
                'bilinear' interpolates the four surrounding cell centres and
                yields no-data if any of them is no-data.

    Returns:
        np.ndarray: One value per point, in point order. Points outside the grid
        (or with empty geometry) get the raster's no-data value (NaN when the
        raster declares none).

    Raises:
        CRSMismatch: If raster and points are in different CRS.
        ValueError: If a geometry is not a Point or the method is unknown.
    """
    if method not in ("nearest", "bilinear"):
        raise ValueError(f"Unknown sampling method '{method}'. Use 'nearest' or 'bilinear'.")
    ensure_same_crs(raster.crs, points.crs, operation="sample_points")

    values = raster.get_band(band)
    fill = raster.fill_value
    xs, ys = _point_coordinates(points)

    cols_f, rows_f = ~raster.transform * (xs, ys)
    inside = (
        np.isfinite(cols_f) & np.isfinite(rows_f) &
        (cols_f >= 0) & (cols_f < raster.width) &
        (rows_f >= 0) & (rows_f < raster.height)
    )

    if method == "nearest":
        out = np.full(len(xs), fill, dtype=_output_dtype(values.dtype, fill))
        _sample_nearest(values, cols_f, rows_f, inside, out)
    else:
        out = np.full(len(xs), fill, dtype=np.float64)
        _sample_bilinear(values, cols_f, rows_f, inside, out, raster.nodata, fill)

    outside = int((~inside).sum())
    if outside:
        log.info(f"{outside}/{len(xs)} points fall outside the raster extent; assigned no-data")

    return out

@resolve_raster
def extract_to_points(
    raster: Raster,
    points: Vector,
    columns: Optional[Union[str, List[str]]] = None,
    bands: Optional[Union[int, List[int]]] = None,
    method: Literal["nearest", "bilinear"] = "nearest"
) -> Vector:
    """
    Sample one or more raster bands at the points and append them as attributes.

    Args:
        raster: Source raster (path or Raster).
        points: Point features in the raster's CRS.
        columns: Output column name(s), one per sampled band. Defaults to the
                 band names (then 'b{index}').
        bands: 1-based band index or list of indices. Defaults to all bands.
        method: Sampling method, see sample_points.

    Returns:
        Vector: A copy of `points` with one new column per band.
    """
    if bands is None:
        bands = list(range(1, raster.count + 1))
    elif isinstance(bands, int):
        bands = [bands]

    if columns is None:
        columns = [raster.band_name(b) for b in bands]
    elif isinstance(columns, str):
        columns = [columns]

    if len(columns) != len(bands):
        raise ValueError(f"Got {len(columns)} column name(s) for {len(bands)} band(s)")

    gdf = points.data.copy()
    for name, b in zip(columns, bands):
        gdf[name] = sample_points(raster, points, band=b, method=method)

    log.info(f"Extracted {columns} for {len(gdf)} points")
    return Vector(gdf)
