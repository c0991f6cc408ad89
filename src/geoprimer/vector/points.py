# src/geoprimer/vector/points.py

"""
This module builds point features from tabular longitude/latitude records.
"""

import logging
from typing import Any, List, Optional, Tuple

import geopandas as gpd
import pandas as pd

from geoprimer.crs import resolve_crs
from geoprimer.exceptions import InvalidCoordinate, UnknownAttribute
from geoprimer.vector.layer import Vector

log = logging.getLogger(__name__)

__all__ = [
    "build_points",
    "collect_points"
]

LON_RANGE = (-180.0, 180.0)
LAT_RANGE = (-90.0, 90.0)

def _check_columns(df: pd.DataFrame, names: List[str]):
    missing = [n for n in names if n not in df.columns]
    if missing:
        raise UnknownAttribute(
            f"Column(s) {missing} not found. Available columns: {df.columns.tolist()}"
        )

def _screen_records(
    df: pd.DataFrame,
    lon_col: str,
    lat_col: str,
    geographic: bool
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split records into usable rows and rejected rows.

    Rows missing either coordinate are dropped silently (they never become
    features). The rejected frame carries a 'reason' column describing why a
    row with both coordinates present could not be used.
    """
    present = df[lon_col].notna() & df[lat_col].notna()
    dropped = int((~present).sum())
    if dropped:
        log.info(f"Dropping {dropped} records with missing coordinates")
    df = df[present]

    lon = pd.to_numeric(df[lon_col], errors="coerce")
    lat = pd.to_numeric(df[lat_col], errors="coerce")

    reasons = pd.Series(None, index=df.index, dtype=object)
    non_numeric = lon.isna() | lat.isna()
    reasons[non_numeric] = "non-numeric coordinate"

    if geographic:
        out_of_range = ~non_numeric & (
            ~lon.between(*LON_RANGE) | ~lat.between(*LAT_RANGE)
        )
        reasons[out_of_range] = "coordinate outside longitude/latitude range"

    bad = reasons.notna()
    clean = df[~bad].copy()
    clean[lon_col] = lon[~bad].astype(float)
    clean[lat_col] = lat[~bad].astype(float)

    rejected = df[bad].copy()
    rejected["reason"] = reasons[bad]
    return clean, rejected

def _to_vector(
    df: pd.DataFrame,
    lon_col: str,
    lat_col: str,
    crs: Any,
    columns: Optional[List[str]]
) -> Vector:
    if columns is None:
        columns = [c for c in df.columns if c not in (lon_col, lat_col)]

    gdf = gpd.GeoDataFrame(
        df[columns].copy(),
        geometry=gpd.points_from_xy(df[lon_col], df[lat_col]),
        crs=crs
    )
    return Vector(gdf)

def build_points(
    df: pd.DataFrame,
    lon_col: str,
    lat_col: str,
    crs: Any = "EPSG:4326",
    columns: Optional[List[str]] = None
) -> Vector:
    """
    Convert point records into a point feature collection.

    Rows missing either coordinate are excluded first. Any remaining row whose
    coordinate is non-numeric, or (for geographic CRS) outside the valid
    longitude/latitude range, aborts the build.

    Args:
        df: Input records.
        lon_col: Column holding longitude (x).
        lat_col: Column holding latitude (y).
        crs: CRS of the coordinates. Defaults to WGS84.
        columns: Attribute columns to keep. Defaults to every non-coordinate column.

    Returns:
        Vector: One Point feature per valid record, in input order.

    Raises:
        UnknownAttribute: If a coordinate or attribute column is missing.
        UnknownCRS: If the CRS cannot be resolved.
        InvalidCoordinate: If a coordinate is non-numeric or out of range.
    """
    _check_columns(df, [lon_col, lat_col] + list(columns or []))
    resolved = resolve_crs(crs)

    clean, rejected = _screen_records(df, lon_col, lat_col, resolved.is_geographic)
    if len(rejected):
        details = "; ".join(f"row {idx}: {reason}" for idx, reason in rejected["reason"].items())
        raise InvalidCoordinate(f"{len(rejected)} invalid coordinate record(s): {details}")

    vector = _to_vector(clean, lon_col, lat_col, resolved, columns)
    log.info(f"Built {len(vector)} point features in {vector.crs_code}")
    return vector

def collect_points(
    df: pd.DataFrame,
    lon_col: str,
    lat_col: str,
    crs: Any = "EPSG:4326",
    columns: Optional[List[str]] = None
) -> Tuple[Vector, pd.DataFrame]:
    """
    Lenient variant of build_points.

    Invalid records are set aside instead of raising.

    Returns:
        Tuple[Vector, pd.DataFrame]: The valid point features, and the rejected
        records with an added 'reason' column.
    """
    _check_columns(df, [lon_col, lat_col] + list(columns or []))
    resolved = resolve_crs(crs)

    clean, rejected = _screen_records(df, lon_col, lat_col, resolved.is_geographic)
    if len(rejected):
        log.warning(
            f"Skipping {len(rejected)} invalid coordinate records. "
            f"Row indices: {rejected.index.tolist()}"
        )

    vector = _to_vector(clean, lon_col, lat_col, resolved, columns)
    log.info(f"Built {len(vector)} point features in {vector.crs_code}")
    return vector, rejected
