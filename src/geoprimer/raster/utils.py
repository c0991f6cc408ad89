# src/geoprimer/raster/utils.py

"""
This module provides shared utility functions for raster operations.

Functions include band selection, band naming and memory safety checks
performed before a whole raster is read into RAM.
"""
import logging
from pathlib import Path
from typing import Union, List, Optional, Dict, Tuple

import numpy as np
import psutil
import rasterio

log = logging.getLogger(__name__)

__all__ = [
    "extract_band_indices",
    "extract_band_names",
    "check_memory_safety"
]

DEFAULT_SAFETY_FACTOR = 2.0

def extract_band_indices(
    src: rasterio.DatasetReader,
    bands: Optional[Union[int, List[int]]]
) -> List[int]:
    """
    Normalize band selection to a list of 1-based indices.
    """
    if bands is None:
        return list(src.indexes)
    elif isinstance(bands, int):
        return [bands]
    return list(bands)

def extract_band_names(
    src: rasterio.DatasetReader,
    indices: List[int]
) -> Dict[str, int]:
    """
    Extract descriptions/names for specific bands.

    Single-band files without a description are named after the file stem,
    the way the band of a GeoTIFF shows up in most GIS tools.
    """
    band_names = {}
    for i, idx in enumerate(indices):
        if 0 <= (idx - 1) < len(src.descriptions):
            desc = src.descriptions[idx - 1]
            if desc:
                band_names[desc] = i + 1

    if not band_names and len(indices) == 1 and src.name:
        stem = Path(src.name).stem
        if stem:
            band_names[stem] = 1
    return band_names

def check_memory_safety(
    src: rasterio.DatasetReader,
    band_count: Optional[int] = None,
    safety_factor: float = DEFAULT_SAFETY_FACTOR
) -> Tuple[bool, str]:
    """
    Estimates if loading an opened raster is safe for available system RAM.

    Computes the uncompressed size (count * height * width * itemsize), scales it
    by `safety_factor` to account for NumPy working copies, and compares it to
    the memory currently available.

    Returns:
        Tuple[bool, str]: Whether loading is safe, and a human-readable explanation.
    """
    count = band_count if band_count is not None else src.count
    # NOTE: the first band's dtype is assumed representative of all bands
    bytes_per_pixel = np.dtype(src.dtypes[0]).itemsize
    raw_bytes = count * src.height * src.width * bytes_per_pixel
    required = raw_bytes * safety_factor
    available = psutil.virtual_memory().available

    req_gb = required / (1024**3)
    avail_gb = available / (1024**3)

    if required > available:
        return False, (
            f"Insufficient Memory: raster requires ~{req_gb:.2f} GB RAM "
            f"(Raw: {raw_bytes/(1024**3):.2f} GB * Factor: {safety_factor}), "
            f"but only {avail_gb:.2f} GB is available."
        )
    return True, f"Memory Check Passed: Requires ~{req_gb:.2f} GB (Available: {avail_gb:.2f} GB)."
