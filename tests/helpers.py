# tests/helpers.py

import numpy as np
from geoprimer.raster.layer import Raster
from geoprimer.vector.layer import Vector

def assert_grid_match(r1: Raster, r2: Raster):
    """Strictly verify two rasters share the exact same grid."""
    assert r1.crs == r2.crs, \
        f"CRS mismatch: {r1.crs} != {r2.crs}"

    assert r1.shape == r2.shape, \
        f"Shape mismatch: {r1.shape} != {r2.shape}"

    assert np.allclose(np.array(r1.transform), np.array(r2.transform), atol=1e-9), \
        "Transform mismatch (Pixel alignment error)"

def assert_same_features(v1: Vector, v2: Vector):
    """Verify two vectors hold the same CRS, attributes and geometries in the same order."""
    assert v1.crs_code == v2.crs_code, \
        f"CRS mismatch: {v1.crs_code} != {v2.crs_code}"

    assert v1.columns == v2.columns, \
        f"Column mismatch: {v1.columns} != {v2.columns}"

    assert len(v1) == len(v2), \
        f"Feature count mismatch: {len(v1)} != {len(v2)}"

    assert v1.data.geometry.geom_equals(v2.data.geometry).all(), \
        "Geometry mismatch"

    attrs = v1.attribute_columns
    assert v1.data[attrs].reset_index(drop=True).equals(v2.data[attrs].reset_index(drop=True)), \
        "Attribute mismatch"
