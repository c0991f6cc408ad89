# src/geoprimer/vector/spatial_operations.py

"""
This module provides spatial operations between feature collections: point-in-polygon
joins, intersection filters, unions and buffers.
"""

from typing import List, Literal, Optional
import logging

import geopandas as gpd
import numpy as np
import shapely
from shapely.ops import unary_union

from geoprimer.crs import ensure_same_crs
from geoprimer.exceptions import UnknownAttribute, UnsuitableCRS
from geoprimer.vector.layer import Vector

log = logging.getLogger(__name__)

__all__ = [
    "spatial_join",
    "select_by_location",
    "intersection",
    "union_features",
    "buffer_features"
]

_LEFT_POS = "__left_pos"
_RIGHT_POS = "__right_pos"

def spatial_join(
    left: Vector,
    right: Vector,
    how: Literal["left", "inner"] = "left",
    right_columns: Optional[List[str]] = None,
    predicate: str = "intersects"
) -> Vector:
    """
    Attach to each left feature the attributes of the right feature that contains it.

    A point on a polygon boundary counts as contained. When several right
    polygons contain the same point, the first one in right input order wins.

    Args:
        left: Point features.
        right: Polygon features, in the same CRS as `left`.
        how: 'left' keeps unmatched left features with null right attributes,
             'inner' drops them.
        right_columns: Right attributes to carry over. Defaults to all of them.
        predicate: Spatial predicate passed to geopandas.sjoin.

    Returns:
        Vector: One feature per (kept) left feature, in left input order.

    Raises:
        CRSMismatch: If the inputs are in different CRS.
        UnknownAttribute: If a requested right column does not exist.
    """
    if how not in ("left", "inner"):
        raise ValueError(f"Unsupported join type '{how}'. Use 'left' or 'inner'.")
    ensure_same_crs(left.crs, right.crs, operation="spatial_join")

    if right_columns is None:
        right_columns = right.attribute_columns
    missing = [c for c in right_columns if c not in right.attribute_columns]
    if missing:
        raise UnknownAttribute(
            f"Column(s) {missing} not found in right vector. Available: {right.attribute_columns}"
        )

    left_gdf = left.data.copy()
    left_gdf[_LEFT_POS] = np.arange(len(left_gdf))

    right_gdf = right.data[right_columns + [right.data.geometry.name]].reset_index(drop=True)
    right_gdf[_RIGHT_POS] = np.arange(len(right_gdf))

    joined = gpd.sjoin(
        left_gdf,
        right_gdf,
        how="left",
        predicate=predicate,
        lsuffix="left",
        rsuffix="right"
    )

    # keep the first right match (input order) for each left feature
    joined = joined.sort_values([_LEFT_POS, _RIGHT_POS], kind="stable", na_position="last")
    joined = joined[~joined[_LEFT_POS].duplicated(keep="first")]

    matched = joined[_RIGHT_POS].notna()
    if how == "inner":
        joined = joined[matched]

    joined = joined.drop(columns=[_LEFT_POS, _RIGHT_POS, "index_right"], errors="ignore")
    log.info(f"Spatial join ({how}): {int(matched.sum())}/{len(left)} features matched")

    return Vector(joined)

def select_by_location(vector: Vector, region: Vector, predicate: str = "intersects") -> Vector:
    """
    Keep the features of `vector` that satisfy `predicate` against the union of
    `region`. Geometries are returned unchanged.
    """
    ensure_same_crs(vector.crs, region.crs, operation="select_by_location")

    region_geom = unary_union(region.data.geometry.to_numpy())
    mask = getattr(vector.data.geometry, predicate)(region_geom)

    result = Vector(vector.data[mask].copy())
    log.info(f"Selected {len(result)}/{len(vector)} features by location ({predicate})")
    return result

def intersection(vector: Vector, region: Vector, keep_region_attributes: bool = False) -> Vector:
    """
    Clip the features of `vector` to the union of `region`.

    Features that do not intersect the region are dropped; the remaining
    geometries are replaced by their intersection with it. Attributes of
    `vector` are kept, input order is preserved.

    With `keep_region_attributes`, each feature is instead clipped to every
    region polygon it intersects and carries that polygon's attributes, so a
    feature spanning two regions yields two pieces (region input order).
    Colliding attribute names get '_left'/'_right' suffixes.

    Raises:
        CRSMismatch: If the inputs are in different CRS.
    """
    ensure_same_crs(vector.crs, region.crs, operation="intersection")

    if keep_region_attributes:
        return _intersection_by_region(vector, region)

    region_geom = unary_union(region.data.geometry.to_numpy())
    gdf = vector.data[vector.data.intersects(region_geom)].copy()

    geom_col = gdf.geometry.name
    gdf[geom_col] = gdf.geometry.intersection(region_geom)
    gdf = gdf[~gdf.geometry.is_empty]

    log.info(f"Intersection kept {len(gdf)}/{len(vector)} features")
    return Vector(gdf)

def _intersection_by_region(vector: Vector, region: Vector) -> Vector:
    left_gdf = vector.data.copy()
    left_gdf[_LEFT_POS] = np.arange(len(left_gdf))

    right_gdf = region.data.reset_index(drop=True)
    right_gdf[_RIGHT_POS] = np.arange(len(right_gdf))

    pairs = gpd.sjoin(
        left_gdf,
        right_gdf,
        how="inner",
        predicate="intersects",
        lsuffix="left",
        rsuffix="right"
    )
    pairs = pairs.sort_values([_LEFT_POS, _RIGHT_POS], kind="stable")

    region_geoms = right_gdf.geometry.to_numpy()[pairs[_RIGHT_POS].to_numpy()]
    geom_col = pairs.geometry.name
    pairs[geom_col] = shapely.intersection(pairs.geometry.to_numpy(), region_geoms)
    pairs = pairs[~pairs.geometry.is_empty]

    pairs = pairs.drop(columns=[_LEFT_POS, _RIGHT_POS, "index_right"], errors="ignore")
    log.info(f"Intersection produced {len(pairs)} pieces from {len(vector)} features")
    return Vector(pairs)

def union_features(vector: Vector) -> Vector:
    """
    Dissolve every geometry into a single feature.

    Attributes are dropped; the CRS is kept.

    Returns:
        Vector: A one-feature collection holding the (Multi)Polygon union.
    """
    if len(vector) == 0:
        raise ValueError("Cannot union an empty feature collection.")

    log.info(f"Dissolving {len(vector)} features into a single geometry...")
    dissolved = unary_union(vector.data.geometry.to_numpy())
    log.debug(f"Union result: {dissolved.geom_type} (valid={dissolved.is_valid})")

    return Vector(gpd.GeoDataFrame(geometry=[dissolved], crs=vector.crs))

def buffer_features(
    vector: Vector,
    distance: float,
    quad_segs: int = 30,
    join_style: Literal["round", "mitre", "bevel"] = "round",
    allow_geographic: bool = False
) -> Vector:
    """
    Expand every geometry outward by `distance` CRS units.

    Args:
        vector: Input features.
        distance: Non-negative buffer distance in the units of the vector's CRS.
        quad_segs: Segments used to approximate a quarter circle.
        join_style: Corner construction ('round', 'mitre' or 'bevel').
        allow_geographic: Buffer even when the CRS is in degrees. The distance is
                          then interpreted in degrees and a warning is logged.

    Returns:
        Vector: Buffered features with their attributes. A distance of 0
        returns the input unchanged.

    Raises:
        ValueError: If the distance is negative or the vector has no CRS.
        UnsuitableCRS: If the CRS is geographic and allow_geographic is False.
    """
    if distance < 0:
        raise ValueError(f"Buffer distance must be non-negative, got {distance}")
    if vector.crs is None:
        raise ValueError("Vector has no CRS. Buffer distance units are undefined.")
    if distance == 0:
        return vector

    if vector.is_geographic:
        if not allow_geographic:
            raise UnsuitableCRS(
                f"{vector.crs_code} is a geographic CRS; a buffer of {distance} would be in degrees. "
                f"Reproject to a projected CRS first, or pass allow_geographic=True."
            )
        log.warning(f"Buffering in geographic CRS {vector.crs_code}: distance {distance} is in degrees")

    gdf = vector.data.copy()
    geom_col = gdf.geometry.name
    gdf[geom_col] = shapely.buffer(
        gdf.geometry.to_numpy(),
        distance,
        quad_segs=quad_segs,
        join_style=join_style
    )

    log.info(f"Buffered {len(gdf)} features by {distance} ({vector.crs_code})")
    return Vector(gdf)
