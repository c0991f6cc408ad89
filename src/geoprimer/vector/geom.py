# src/geoprimer/vector/geom.py

"""
This module provides reprojection, geometry repair and attribute filtering for vector data.
"""

from typing import Any, Callable, Union
import logging
import operator

import pandas as pd
import shapely
from pyproj.exceptions import ProjError

from geoprimer.crs import resolve_crs, crs_code, transform_path
from geoprimer.exceptions import TransformUnavailable, TypeMismatch, UnknownAttribute
from geoprimer.vector.layer import Vector

log = logging.getLogger(__name__)

__all__ = [
    "to_crs",
    "make_valid",
    "filter_vector",
    "filter_by_attribute",
    "select_columns"
]

COMPARISONS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le
}
ORDERING = {">", ">=", "<", "<="}

def to_crs(vector: Vector, target_crs: Any) -> Vector:
    """
    Reproject a Vector to another CRS.

    Returns the input itself when the source and target codes are identical.

    Raises:
        ValueError: If the vector has no CRS.
        UnknownCRS: If the target cannot be resolved.
        TransformUnavailable: If no transformation path exists.
    """
    if vector.crs is None:
        raise ValueError("Vector has no CRS. Cannot reproject.")

    dst = resolve_crs(target_crs)
    if crs_code(vector.crs) == crs_code(dst):
        log.debug(f"Vector already in {crs_code(dst)}; skipping reprojection")
        return vector

    # Fail early with a domain error if pyproj has no operation for this pair
    transform_path(vector.crs, dst)

    log.info(f"Reprojecting {len(vector)} features {vector.crs_code} -> {crs_code(dst)}")
    try:
        new_gdf = vector.data.to_crs(dst)
    except ProjError as e:
        raise TransformUnavailable(f"Reprojection to {crs_code(dst)} failed: {e}") from e
    return Vector(new_gdf)

def make_valid(vector: Vector, drop_empty: bool = True) -> Vector:
    """
    Repair invalid geometries with shapely.make_valid.

    Args:
        vector: Input features.
        drop_empty: Remove features whose geometry is empty after repair.
    """
    gdf = vector.data.copy()
    invalid_mask = ~gdf.is_valid

    if invalid_mask.any():
        log.info(f"Repairing {int(invalid_mask.sum())} invalid geometries")
        geom_col = gdf.geometry.name
        gdf.loc[invalid_mask, geom_col] = shapely.make_valid(gdf.loc[invalid_mask, geom_col].to_numpy())

    if drop_empty:
        gdf = gdf[~(gdf.geometry.is_empty | gdf.geometry.isna())]

    return Vector(gdf)

def filter_vector(vector: Vector, condition: Union[pd.Series, Callable]) -> Vector:
    mask = condition(vector.data) if callable(condition) else condition
    filtered_gdf = vector.data[mask]
    return Vector(filtered_gdf.copy())

def _as_numeric(series: pd.Series, column: str) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series
    try:
        return pd.to_numeric(series)
    except (ValueError, TypeError) as e:
        raise TypeMismatch(f"Attribute '{column}' is not numeric; cannot apply an ordering comparison") from e

def filter_by_attribute(vector: Vector, column: str, op: str, value: Any) -> Vector:
    """
    Keep the features whose attribute satisfies `column <op> value`.

    Args:
        vector: Input features.
        column: Attribute name.
        op: One of '==', '!=', '>', '>=', '<', '<='.
        value: Scalar literal to compare against.

    Returns:
        Vector: Matching features in original order. Null attributes never match.

    Raises:
        UnknownAttribute: If the column does not exist.
        TypeMismatch: If a numeric comparison mixes numeric and non-numeric values.
        ValueError: If the operator is not supported.
    """
    if op not in COMPARISONS:
        raise ValueError(f"Unsupported comparison '{op}'. Choose from {list(COMPARISONS)}")
    if column not in vector.attribute_columns:
        raise UnknownAttribute(
            f"Attribute '{column}' not found. Available attributes: {vector.attribute_columns}"
        )

    series = vector.data[column]
    numeric_value = pd.api.types.is_number(value) and not pd.api.types.is_bool(value)
    numeric_column = pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)

    if op in ORDERING:
        if not numeric_value:
            raise TypeMismatch(f"Ordering comparison '{op}' needs a numeric literal, got {value!r}")
        series = _as_numeric(series, column)
    elif numeric_value and not numeric_column:
        series = _as_numeric(series, column)
    elif isinstance(value, str) and numeric_column:
        raise TypeMismatch(f"Attribute '{column}' is numeric; cannot compare with {value!r}")

    mask = COMPARISONS[op](series, value) & series.notna()
    result = filter_vector(vector, mask)
    log.info(f"Attribute filter {column} {op} {value!r}: {len(result)}/{len(vector)} features kept")
    return result

def select_columns(vector: Vector, columns: list) -> Vector:
    geom_col = vector.data.geometry.name
    missing = [c for c in columns if c not in vector.columns]
    if missing:
        raise UnknownAttribute(f"Column(s) {missing} not found. Available columns: {vector.columns}")

    if geom_col not in columns:
        columns = columns + [geom_col]

    selected_gdf = vector.data[columns]
    return Vector(selected_gdf.copy())
