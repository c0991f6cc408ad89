# src/geoprimer/vector/layer.py

"""
This module defines the core data structure for feature collections (points, polygons) and basic properties.
"""

import logging

import geopandas as gpd

from geoprimer.crs import crs_code, is_geographic

log = logging.getLogger(__name__)

__all__ = [
    "Vector"
]

class Vector:
    """
    An ordered collection of features sharing one CRS.

    Wraps a GeoDataFrame (one row per feature, attributes in columns).
    Operations in geoprimer never modify a Vector in place; they return a new one.
    """
    def __init__(self, data: gpd.GeoDataFrame):
        if not isinstance(data, gpd.GeoDataFrame):
            raise TypeError(f"Expected GeoDataFrame, got {type(data)}")
        self._data = data

    @property
    def data(self) -> gpd.GeoDataFrame:
        return self._data

    @property
    def crs(self):
        return self._data.crs

    @property
    def crs_code(self):
        return crs_code(self._data.crs)

    @property
    def is_geographic(self) -> bool:
        return self._data.crs is not None and is_geographic(self._data.crs)

    @property
    def bounds(self):
        return self._data.total_bounds

    @property
    def columns(self):
        return self._data.columns.tolist()

    @property
    def attribute_columns(self):
        """Column names excluding the active geometry column."""
        geom_col = self._data.geometry.name
        return [c for c in self._data.columns if c != geom_col]

    @property
    def geom_types(self):
        return sorted(set(self._data.geom_type.dropna()))

    def copy(self) -> 'Vector':
        return Vector(self._data.copy())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self):
        return f"<Vector features={len(self._data)} crs={self.crs_code}>"
