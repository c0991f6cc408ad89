# src/geoprimer/raster/io.py

"""
This module handles all disk-based operations for raster data.
"""

import logging
from functools import wraps
from pathlib import Path
from typing import Callable, Union, Optional, List, Dict, Any

import rasterio
from rasterio.windows import Window

from geoprimer.exceptions import RasterIOError
from .layer import Raster
from .utils import extract_band_indices, extract_band_names, check_memory_safety

log = logging.getLogger(__name__)

__all__ = [
    "load",
    "save",
    "read_info",
    "resolve_raster"
]

def load(
    path: Union[str, Path],
    bands: Optional[Union[int, List[int]]] = None,
    window: Optional[Window] = None,
    check_memory: bool = True
) -> Raster:
    """
    Load a raster from disk into memory.

    Supports loading all bands, specific bands, or a spatial subset via a window.
    The dataset handle is closed before returning, on success and on failure.

    Args:
        path: Path to raster file. All supported GDAL formats are accepted.
        bands: Specific band(s) to load (None=all, int=single, list=subset).
        window: Optional rasterio Window object to load only a spatial subset.
        check_memory: Estimate RAM needs before reading a whole file.
                      Ignored when a window is given.

    Returns:
        Raster: In-memory Raster object

    Raises:
        FileNotFoundError: If the path does not exist.
        MemoryError: If check_memory is True and the raster will not fit in RAM.
        RasterIOError: If the file cannot be read.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Raster file not found: {path}")

    log.debug(f"Loading raster: {path.name}")

    try:
        with rasterio.open(path) as src:
            indices = extract_band_indices(src, bands)

            if check_memory and window is None:
                is_safe, msg = check_memory_safety(src, band_count=len(indices))
                if not is_safe:
                    log.error(msg)
                    raise MemoryError(f"{msg}\nTip: pass a window to load a spatial subset.")
                log.debug(msg)

            data = src.read(indices, window=window)
            band_names = extract_band_names(src, indices)

            if window is not None:
                transform = src.window_transform(window)
            else:
                transform = src.transform

            return Raster(
                data=data,
                transform=transform,
                crs=src.crs,
                nodata=src.nodata,
                band_names=band_names
            )

    except rasterio.RasterioIOError as e:
        raise RasterIOError(f"Failed to read raster from {path}: {e}") from e

def save(
    raster: Raster,
    path: Union[str, Path],
    **profile_kwargs
):
    """
    Write a Raster object to disk.

    Args:
        raster: Raster object to save
        path: Output file path. All supported GDAL formats are accepted.
        **profile_kwargs: Override default rasterio profile settings.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    profile = raster.profile.copy()
    profile.update(profile_kwargs)

    log.info(f"Saving raster {raster.shape} -> {path}")

    try:
        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(raster.data)

            if raster.band_names:
                for name, idx in raster.band_names.items():
                    if 1 <= idx <= raster.count:
                        dst.set_band_description(idx, name)

    except rasterio.RasterioIOError as e:
        raise RasterIOError(f"Failed to save raster to {path}: {e}") from e

def read_info(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Inspect a raster file's spatial metadata without reading pixels.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    try:
        with rasterio.open(path) as src:
            return {
                'crs': src.crs,
                'transform': src.transform,
                'bounds': src.bounds,
                'width': src.width,
                'height': src.height,
                'count': src.count,
                'dtype': src.dtypes[0],
                'driver': src.driver,
                'nodata': src.nodata,
                'band_names': extract_band_names(src, list(src.indexes))
            }
    except rasterio.RasterioIOError as e:
        raise RasterIOError(f"Failed to read metadata from {path}: {e}") from e

def resolve_raster(func: Callable):
    """
    Decorator: Resolves polymorphic inputs for pipeline functions.

    Ensures that the first argument of the decorated function is always a
    Raster object, regardless of whether the user passed a file path or
    an existing Raster object.

    Behavior:
    1. Input is path (str/Path) -> Calls load().
    2. Input is Raster object -> Passes through.
    3. Input is None -> Passes None (for optional arguments).
    """
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, Raster, None], *args, **kwargs):
        if input_obj is None:
            return func(None, *args, **kwargs)

        if isinstance(input_obj, (str, Path)):
            try:
                raster = load(input_obj)
            except Exception:
                log.error(f"Auto-loading failed for {input_obj}")
                raise
        elif isinstance(input_obj, Raster):
            raster = input_obj
        else:
            raise TypeError(
                f"Function {func.__name__} expects a file path or Raster object, "
                f"got {type(input_obj).__name__}"
            )

        try:
            return func(raster, *args, **kwargs)
        except Exception as e:
            # Provide context on which function failed
            log.error(f"Pipeline error in {func.__name__}: {e}")
            raise
    return wrapper
