# src/geoprimer/vector/__init__.py
#
# Copyright (c) The geoprimer project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The vector subpackage provides core functionality for handling vector data (points, polygons).
This includes tabular point loading, I/O operations, reprojection, filtering and spatial analysis.
"""

# I/O and data structure
from .layer import (
    Vector
)

from .points import (
    build_points,
    collect_points
)

from .io import (
    read_table,
    load_points,
    load_vector,
    save_vector,
    resolve_vector
)

# Geometric operations and spatial analysis

from .geom import (
    to_crs,
    make_valid,
    filter_vector,
    filter_by_attribute,
    select_columns
)

from .spatial_operations import (
    spatial_join,
    select_by_location,
    intersection,
    union_features,
    buffer_features
)

__all__ = [
    # I/O and data structure
    "Vector",
    "build_points",
    "collect_points",
    "read_table",
    "load_points",
    "load_vector",
    "save_vector",
    "resolve_vector",

    # Geometric operations and spatial analysis
    "to_crs",
    "make_valid",
    "filter_vector",
    "filter_by_attribute",
    "select_columns",
    "spatial_join",
    "select_by_location",
    "intersection",
    "union_features",
    "buffer_features"
]
