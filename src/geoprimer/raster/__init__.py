# src/geoprimer/raster/__init__.py
#
# Copyright (c) The geoprimer project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The raster subpackage provides core functionality for handling raster data,
including I/O operations, point sampling and geometry utilities.
"""
# Core data structure
from .layer import (
    Raster
)

# I/O operations
from .io import (
    load,
    save,
    read_info,
    resolve_raster
)

# Geometry utilities
from .geom import (
    reproject,
    crop,
    mask,
    clip
)

# Point sampling
from .sample import (
    sample_points,
    extract_to_points
)

# Shared utilities
from .utils import (
    extract_band_names,
    extract_band_indices,
    check_memory_safety
)

__all__ = [
    # Layer
    "Raster",

    # I/O
    "load",
    "save",
    "read_info",
    "resolve_raster",

    # Geom utilities
    "reproject",
    "crop",
    "mask",
    "clip",

    # Sampling
    "sample_points",
    "extract_to_points",

    # Utils
    "extract_band_names",
    "extract_band_indices",
    "check_memory_safety"
]
