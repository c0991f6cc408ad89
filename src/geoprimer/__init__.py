# src/geoprimer/__init__.py
#
# Copyright (c) The geoprimer project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
geoprimer: point, polygon and raster transformations for a basic GIS walkthrough.
"""

from geoprimer import vector, raster
from geoprimer.crs import resolve_crs, crs_code, same_crs, transform_path
from geoprimer.exceptions import GeoPrimerError

__version__ = "0.1.0"

__all__ = [
    "vector",
    "raster",
    "resolve_crs",
    "crs_code",
    "same_crs",
    "transform_path",
    "GeoPrimerError",
    "__version__"
]
