# src/geoprimer/vector/io.py

"""
This module provides functions for reading and writing tabular and vector data using pandas and GeoPandas.
"""

from pathlib import Path
from typing import Union, Callable, Optional, Dict, List, Any
from functools import wraps
import logging

import geopandas as gpd
import pandas as pd

from geoprimer.vector.layer import Vector
from geoprimer.vector.points import build_points

log = logging.getLogger(__name__)

__all__ = [
    "read_table",
    "load_points",
    "load_vector",
    "save_vector",
    "resolve_vector"
]

def read_table(
    path: Union[str, Path],
    encoding: Optional[str] = None,
    rename: Optional[Dict[str, str]] = None,
    **kwargs
) -> pd.DataFrame:
    """
    Read a delimited table of point records.

    Args:
        path: CSV (or other delimited) file.
        encoding: Text encoding passed to pandas (e.g. 'utf-8-sig', 'big5').
        rename: Optional mapping of original to new column names, applied after reading.
        **kwargs: Passed through to pandas.read_csv (sep, usecols, ...).

    Returns:
        pd.DataFrame: The raw records.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table file not found: {path}")

    df = pd.read_csv(path, encoding=encoding, **kwargs)
    if rename:
        df = df.rename(columns=rename)

    log.debug(f"Read {len(df)} records with columns {df.columns.tolist()} from {path.name}")
    return df

def load_points(
    path: Union[str, Path],
    lon_col: str,
    lat_col: str,
    crs: Any = "EPSG:4326",
    columns: Optional[List[str]] = None,
    encoding: Optional[str] = None,
    rename: Optional[Dict[str, str]] = None,
    **kwargs
) -> Vector:
    """
    Read a delimited table and build point features from two coordinate columns.

    Coordinate column names refer to the table after `rename` has been applied.
    """
    df = read_table(path, encoding=encoding, rename=rename, **kwargs)
    return build_points(df, lon_col=lon_col, lat_col=lat_col, crs=crs, columns=columns)

def load_vector(
    path: Union[str, Path],
    encoding: Optional[str] = None,
    columns: Optional[List[str]] = None,
    engine: str = "pyogrio",
    **kwargs
) -> Vector:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Vector file not found: {path}")

    if encoding is not None:
        kwargs["encoding"] = encoding
    if columns is not None:
        kwargs["columns"] = columns

    gdf = gpd.read_file(path, engine=engine, **kwargs)
    log.debug(f"Loaded {len(gdf)} features from {path.name} (crs={gdf.crs})")
    return Vector(gdf)

def save_vector(vector: Vector, path: Union[str, Path], driver: str = None, engine: str = "pyogrio", **kwargs):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    vector.data.to_file(path, driver=driver, engine=engine, **kwargs)
    log.info(f"Saved {len(vector)} features -> {path}")

def resolve_vector(func: Callable):
    """
    Decorator: allows the first argument of a pipeline function to be a
    file path or a Vector object. Paths are loaded with load_vector.
    """
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, Vector], *args, **kwargs):
        if input_obj is None:
            return func(None, *args, **kwargs)

        if isinstance(input_obj, (str, Path)):
            vector_obj = load_vector(input_obj)
        elif isinstance(input_obj, Vector):
            vector_obj = input_obj
        else:
            raise TypeError(f"Expected file path or Vector object, got {type(input_obj)}")

        return func(vector_obj, *args, **kwargs)
    return wrapper
