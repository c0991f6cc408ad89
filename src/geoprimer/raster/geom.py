# src/geoprimer/raster/geom.py

"""
This module provides geometric operations on rasters: reprojection, and cropping
or masking to a polygon boundary.
"""

import logging
import math
from typing import Any, Optional, Union

import numpy as np
from rasterio.crs import CRS
from rasterio.errors import CRSError
from rasterio.features import geometry_mask
from rasterio.warp import Resampling, calculate_default_transform, reproject as rio_reproject
from rasterio.windows import Window, from_bounds, transform as window_transform
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from geoprimer.crs import resolve_crs, crs_code, ensure_same_crs, transform_path
from geoprimer.exceptions import EmptyIntersection, TransformUnavailable
from geoprimer.vector.layer import Vector
from .io import resolve_raster
from .layer import Raster

log = logging.getLogger(__name__)

__all__ = ["reproject", "crop", "mask", "clip"]

# Tolerance when snapping fractional window edges to the cell grid
_SNAP_EPS = 1e-9

@resolve_raster
def reproject(
    raster: Raster,
    target_crs: Any,
    res: Optional[float] = None,
    resampling: Resampling = Resampling.nearest
) -> Raster:
    """
    Reprojects a Raster to a new Coordinate Reference System (CRS).

    This function computes the transform and dimensions required to fit the
    data in the new CRS and warps the pixel grid into it. Cells not covered by
    the source are filled with no-data.

    Args:
        raster (Raster): The input raster (auto-resolved from path or object).
        target_crs: Destination CRS (EPSG code, "AUTH:CODE" string, WKT, CRS object).
        res (float, optional): Force a specific resolution in destination units.
                               If None, preserves the original pixel density.
        resampling (Resampling): Interpolation method (default: nearest, safe for
                                 categorical data). Use Resampling.bilinear for
                                 continuous surfaces.

    Returns:
        Raster: A new Raster object in the target CRS, or the input itself when
        it is already in that CRS.

    Raises:
        ValueError: If the raster has no CRS.
        UnknownCRS: If the target cannot be resolved.
        TransformUnavailable: If no transformation path exists.
    """
    if raster.crs is None:
        raise ValueError("Raster has no CRS. Cannot reproject.")

    target = resolve_crs(target_crs)
    if crs_code(raster.crs) == crs_code(target) and res is None:
        log.debug(f"Raster already in {crs_code(target)}; skipping reprojection")
        return raster

    transform_path(raster.crs, target)
    dst_crs = CRS.from_user_input(target)

    log.info(f"Reprojecting raster to {crs_code(target)} (Resampling: {resampling.name})")

    try:
        dst_transform, dst_width, dst_height = calculate_default_transform(
            raster.crs,
            dst_crs,
            raster.width,
            raster.height,
            *raster.bounds,
            resolution=res
        )
    except CRSError as e:
        raise TransformUnavailable(f"Cannot compute output grid for {crs_code(target)}: {e}") from e

    fill = raster.fill_value
    if np.isnan(fill) and not np.issubdtype(raster.dtype, np.floating):
        fill = 0

    new_data = np.full((raster.count, dst_height, dst_width), fill, dtype=raster.dtype)

    rio_reproject(
        source=raster.data,
        destination=new_data,
        src_transform=raster.transform,
        src_crs=raster.crs,
        src_nodata=raster.nodata,
        dst_transform=dst_transform,
        dst_crs=dst_crs,
        dst_nodata=raster.nodata,
        resampling=resampling
    )

    return Raster(
        data=new_data,
        transform=dst_transform,
        crs=dst_crs,
        nodata=raster.nodata,
        band_names=raster.band_names.copy()
    )

def _resolve_geometry(raster: Raster, geometry: Union[BaseGeometry, Vector], operation: str) -> BaseGeometry:
    """Reduce a Vector or shapely geometry to a single shapely geometry in the raster CRS."""
    if isinstance(geometry, Vector):
        ensure_same_crs(raster.crs, geometry.crs, operation=operation)
        return unary_union(geometry.data.geometry.to_numpy())
    if isinstance(geometry, BaseGeometry):
        return geometry
    raise TypeError(f"{operation} expects a shapely geometry or Vector, got {type(geometry).__name__}")

@resolve_raster
def crop(raster: Raster, geometry: Union[BaseGeometry, Vector]) -> Raster:
    """
    Crop a raster to the smallest cell-aligned window covering a geometry's extent.

    Args:
        raster (Raster): Input raster.
        geometry: Shapely geometry (assumed in the raster CRS) or Vector (CRS checked).

    Returns:
        Raster: A new cropped Raster object.

    Raises:
        CRSMismatch: If a Vector is given in a different CRS.
        EmptyIntersection: If the geometry does not overlap the raster extent.
    """
    geom = _resolve_geometry(raster, geometry, "crop")

    if geom.is_empty or not box(*raster.bounds).intersects(geom):
        raise EmptyIntersection(
            f"Geometry with bounds {geom.bounds} does not overlap raster extent {raster.bounds}"
        )

    window = from_bounds(*geom.bounds, transform=raster.transform)

    # Snap outward to whole cells so the window covers the full extent
    col_start = max(0, math.floor(window.col_off + _SNAP_EPS))
    row_start = max(0, math.floor(window.row_off + _SNAP_EPS))
    col_end = min(raster.width, math.ceil(window.col_off + window.width - _SNAP_EPS))
    row_end = min(raster.height, math.ceil(window.row_off + window.height - _SNAP_EPS))

    if col_end <= col_start or row_end <= row_start:
        raise EmptyIntersection(
            f"Geometry with bounds {geom.bounds} covers no whole cell of raster extent {raster.bounds}"
        )

    snapped = Window(col_start, row_start, col_end - col_start, row_end - row_start)
    log.info(f"Cropping raster to window {snapped}")

    new_data = raster.data[:, row_start:row_end, col_start:col_end].copy()

    return Raster(
        data=new_data,
        transform=window_transform(snapped, raster.transform),
        crs=raster.crs,
        nodata=raster.nodata,
        band_names=raster.band_names.copy()
    )

@resolve_raster
def mask(
    raster: Raster,
    geometry: Union[BaseGeometry, Vector],
    nodata: Optional[Union[float, int]] = None,
    all_touched: bool = False
) -> Raster:
    """
    Set every cell whose centre lies outside a geometry to no-data.

    Args:
        raster (Raster): Input raster.
        geometry: Shapely geometry (assumed in the raster CRS) or Vector (CRS checked).
        nodata: Value written outside the geometry. Defaults to the raster's
                no-data value, then NaN for floating point rasters.
        all_touched: Keep every cell touched by the geometry instead of only
                     cells whose centre is inside it.

    Returns:
        Raster: A new masked Raster with the same grid.

    Raises:
        CRSMismatch: If a Vector is given in a different CRS.
        ValueError: If no no-data value can be determined for an integer raster.
    """
    geom = _resolve_geometry(raster, geometry, "mask")

    fill = nodata if nodata is not None else raster.nodata
    if fill is None:
        if not np.issubdtype(raster.dtype, np.floating):
            raise ValueError(
                f"Raster of dtype {raster.dtype} has no no-data value; pass nodata= explicitly"
            )
        fill = np.nan

    if geom.is_empty:
        outside = np.ones((raster.height, raster.width), dtype=bool)
    else:
        outside = geometry_mask(
            [geom],
            out_shape=(raster.height, raster.width),
            transform=raster.transform,
            invert=False,
            all_touched=all_touched
        )

    new_data = raster.data.copy()
    new_data[:, outside] = fill

    # cells holding the previous sentinel must carry the new one
    if raster.nodata is not None and nodata is not None:
        if np.isnan(raster.nodata):
            old_nodata = np.isnan(raster.data)
        else:
            old_nodata = raster.data == raster.nodata
        new_data[old_nodata] = fill

    log.info(f"Masked {int(outside.sum())}/{outside.size} cells outside geometry")

    return Raster(
        data=new_data,
        transform=raster.transform,
        crs=raster.crs,
        nodata=fill,
        band_names=raster.band_names.copy()
    )

@resolve_raster
def clip(
    raster: Raster,
    geometry: Union[BaseGeometry, Vector],
    nodata: Optional[Union[float, int]] = None,
    all_touched: bool = False
) -> Raster:
    """
    Crop a raster to a geometry's extent, then mask cells outside the geometry.

    Raises:
        CRSMismatch: If a Vector is given in a different CRS.
        EmptyIntersection: If the geometry does not overlap the raster extent.
    """
    cropped = crop(raster, geometry)
    return mask(cropped, geometry, nodata=nodata, all_touched=all_touched)
