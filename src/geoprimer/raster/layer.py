# src/geoprimer/raster/layer.py

"""
This module defines the in-memory raster grid used throughout geoprimer.
"""

import copy
import logging
from typing import Union, Optional, Dict, Any, Tuple

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.errors import CRSError
from rasterio.transform import Affine

from geoprimer.crs import crs_code
from geoprimer.exceptions import RasterValidationError, UnknownCRS

log = logging.getLogger(__name__)

__all__ = ["Raster"]

class Raster:
    """
    A raster grid held in memory.

    A Raster keeps together:
    1. The pixel values: a NumPy array in (Bands, Height, Width) order.
    2. The georeferencing: CRS and affine transform (cell index -> CRS coordinates).
    3. The no-data value marking cells without a valid measurement.

    Rasters are treated as immutable values: every geoprimer operation returns
    a new Raster and leaves its input untouched.

    Attributes:
        data (np.ndarray): The pixel array in (Bands, Height, Width) format.
        transform (Affine): The affine transform matrix.
        crs (CRS): The Coordinate Reference System.
        nodata (float | int | None): The value representing missing data.
        band_names (Dict[str, int]): Mapping of semantic names to 1-based band indices.
    """

    def __init__(
        self,
        data: np.ndarray,
        transform: Affine,
        crs: Union[CRS, str, int, None],
        nodata: Optional[Union[float, int]] = None,
        band_names: Optional[Dict[str, int]] = None
    ):
        """
        Initialize a Raster object.

        Args:
            data: Input array. Must be 2D (Height, Width) or 3D (Bands, Height, Width).
                  2D arrays are automatically promoted to 3D (1, Height, Width).
            transform: Geospatial transform (maps pixels to coordinates).
            crs: Coordinate Reference System (CRS object or any identifier rasterio accepts).
            nodata: Value indicating no data.
            band_names: Optional mapping of names to band indices ('AnnualTemp': 1).

        Raises:
            RasterValidationError: If dimensions mismatch or types are incorrect.
            UnknownCRS: If the CRS identifier cannot be resolved.
        """
        self.validate_inputs(data, transform)

        # Enforce 3D structure (Bands, Height, Width)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        if crs is not None and not isinstance(crs, CRS):
            try:
                crs = CRS.from_user_input(crs)
            except CRSError as e:
                raise UnknownCRS(f"Cannot resolve raster CRS '{crs}': {e}") from e

        self._data = data
        self.transform = transform
        self.crs = crs
        self.nodata = nodata
        self.band_names = band_names or {}

    @staticmethod
    def validate_inputs(data: np.ndarray, transform: Affine):
        if not isinstance(data, np.ndarray):
            raise TypeError(f"Data must be numpy.ndarray, got {type(data)}")

        if data.ndim not in (2, 3):
            raise RasterValidationError(f"Data must be 2D or 3D, got shape {data.shape}")

        if not isinstance(transform, Affine):
            raise TypeError(f"Transform must be rasterio.Affine, got {type(transform)}")

    # Dynamic metadata properties

    @property
    def data(self) -> np.ndarray:
        """Access the raw pixel data."""
        return self._data

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def width(self) -> int:
        return self._data.shape[2]

    @property
    def height(self) -> int:
        return self._data.shape[1]

    @property
    def count(self) -> int:
        return self._data.shape[0]

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Returns (Bands, Height, Width)."""
        return self._data.shape

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Returns (left, bottom, right, top) in CRS units."""
        return rasterio.transform.array_bounds(self.height, self.width, self.transform)

    @property
    def crs_code(self) -> Optional[str]:
        return crs_code(self.crs)

    @property
    def fill_value(self) -> Union[float, int]:
        """The sentinel written into cells without data: nodata, or NaN when none is declared."""
        return self.nodata if self.nodata is not None else np.nan

    @property
    def profile(self) -> Dict[str, Any]:
        """
        Generates a Rasterio-compliant profile based on current state.
        Properties like compression and tiling can be overridden in kwargs by passing
        rasterio profile parameters.
        """
        return {
            'driver': 'GTiff',
            'dtype': self._data.dtype,
            'nodata': self.nodata,
            'width': self.width,
            'height': self.height,
            'count': self.count,
            'crs': self.crs,
            'transform': self.transform,
            'compress': 'lzw'
        }

    def band_name(self, index: int) -> str:
        """Semantic name of a 1-based band index, falling back to 'b{index}'."""
        for name, idx in self.band_names.items():
            if idx == index:
                return name
        return f"b{index}"

    def get_band(self, identifier: Union[int, str]) -> np.ndarray:
        """
        Retrieve a specific band by 1-based index or semantic name.

        Returns:
            np.ndarray: 2D array of the band.
        """
        if isinstance(identifier, str):
            if identifier not in self.band_names:
                raise KeyError(f"Band name '{identifier}' not found in {list(self.band_names.keys())}")
            idx = self.band_names[identifier]
        else:
            idx = identifier

        if not (1 <= idx <= self.count):
            raise IndexError(f"Band index {idx} out of range (1-{self.count})")

        return self._data[idx - 1]

    def copy(self) -> 'Raster':
        """Returns a deep copy of the Raster."""
        return Raster(
            data=self._data.copy(),
            transform=copy.deepcopy(self.transform),
            crs=copy.deepcopy(self.crs),
            nodata=self.nodata,
            band_names=self.band_names.copy()
        )

    def __repr__(self) -> str:
        return (f"<Raster shape={self.shape} dtype={self._data.dtype} "
                f"crs={self.crs_code} bounds={self.bounds}>")

    def __eq__(self, other: object) -> bool:
        """Checks equality based on metadata and pixel data."""
        if not isinstance(other, Raster):
            return NotImplemented

        meta_eq = (
            self.transform == other.transform and
            self.crs == other.crs and
            self.shape == other.shape and
            (self.nodata == other.nodata or
             (self.nodata is not None and other.nodata is not None
              and np.isnan(self.nodata) and np.isnan(other.nodata)))
        )
        if not meta_eq:
            return False

        return np.array_equal(self._data, other.data, equal_nan=np.issubdtype(self.dtype, np.floating))

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        """Allows np.array(raster_obj) to work directly."""
        if dtype is not None:
            return self._data.astype(dtype)
        return self._data
