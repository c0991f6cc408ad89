# tests/conftest.py

import pytest
import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import Point, Polygon, box
import rasterio
from rasterio.transform import Affine

from geoprimer.raster import Raster
from geoprimer.vector import Vector

@pytest.fixture
def grid_raster():
    """
    2x2 single-band raster, cell size 1, upper-left origin (0, 2):

        10 20
        30 40
    """
    data = np.array([[10, 20], [30, 40]], dtype="int16")
    return Raster(
        data=data,
        transform=Affine(1.0, 0.0, 0.0, 0.0, -1.0, 2.0),
        crs="EPSG:3826",
        nodata=-9999,
        band_names={"AnnualTemp": 1}
    )

@pytest.fixture
def float_raster():
    """10x10 float raster covering (0, 0)-(10, 10) with values = row * 10 + col and no declared no-data."""
    data = np.arange(100, dtype="float32").reshape(10, 10)
    return Raster(
        data=data,
        transform=Affine(1.0, 0.0, 0.0, 0.0, -1.0, 10.0),
        crs="EPSG:3826",
        nodata=None
    )

@pytest.fixture
def raster_factory(tmp_path):
    """
    Factory: writes a GeoTIFF to tmp_path and returns its path.
    """
    def _create(
        filename="raster.tif",
        data=None,
        crs="EPSG:4326",
        transform=None,
        nodata=None,
        descriptions=None
    ):
        if data is None:
            data = np.arange(100, dtype="float32").reshape(1, 10, 10)
        if data.ndim == 2:
            data = data[np.newaxis, :, :]
        if transform is None:
            transform = Affine(0.1, 0.0, 120.0, 0.0, -0.1, 26.0)

        path = tmp_path / filename
        profile = {
            'driver': 'GTiff',
            'height': data.shape[1],
            'width': data.shape[2],
            'count': data.shape[0],
            'dtype': data.dtype,
            'crs': crs,
            'transform': transform,
            'nodata': nodata
        }
        with rasterio.open(path, 'w', **profile) as dst:
            dst.write(data)
            if descriptions:
                for i, desc in enumerate(descriptions, start=1):
                    dst.set_band_description(i, desc)
        return path
    return _create

@pytest.fixture
def taiwan_points():
    """Two observations: one in New Taipei, one in central Taiwan."""
    gdf = gpd.GeoDataFrame(
        {'obs_id': [1, 2]},
        geometry=[Point(121.5, 25.0), Point(121.0, 24.0)],
        crs="EPSG:4326"
    )
    return Vector(gdf)

@pytest.fixture
def counties():
    """Two county polygons; only the first contains a taiwan_points feature."""
    gdf = gpd.GeoDataFrame(
        {
            'COUNTY': ["新北市", "高雄市"],
            'COUNTY_ID': [65000, 64000]
        },
        geometry=[box(121.3, 24.8, 121.8, 25.3), box(120.2, 22.5, 120.6, 23.0)],
        crs="EPSG:4326"
    )
    return Vector(gdf)

@pytest.fixture
def temperature_points():
    gdf = gpd.GeoDataFrame(
        {
            'site': ["a", "b", "c", "d"],
            'AnnualTemp': [18.0, 22.0, 20.0, 25.0]
        },
        geometry=[Point(121.0, 24.0 + i * 0.1) for i in range(4)],
        crs="EPSG:4326"
    )
    return Vector(gdf)

@pytest.fixture
def square_polygon():
    return Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])

@pytest.fixture
def bowtie_polygon():
    """Self-intersecting polygon."""
    return Polygon([(0, 0), (10, 10), (0, 10), (10, 0)])

@pytest.fixture
def observations_df():
    """Raw records as read from the occurrence table, before renaming."""
    return pd.DataFrame({
        'lon_dd': [121.5, 121.0, None, 120.7],
        'lat_dd': [25.0, 24.0, 23.5, None],
        'species': ["Quercus gilva"] * 4
    })

@pytest.fixture
def csv_factory(tmp_path):
    def _create(df: pd.DataFrame, filename="records.csv", encoding="utf-8"):
        path = tmp_path / filename
        df.to_csv(path, index=False, encoding=encoding)
        return path
    return _create

@pytest.fixture
def walkthrough_files(tmp_path, raster_factory):
    """
    Writes the inputs of a small walkthrough to tmp_path/data:

    - records.csv: four occurrence records with Chinese coordinate headers
      (one missing latitude),
    - counties.gpkg: two county boxes stored in TWD97 (EPSG:3826),
    - temperature.tif: 0.1 degree EPSG:4326 grid over Taiwan where each row
      holds 15 + 0.5 * row degrees.

    Returns a dict of paths.
    """
    data_dir = tmp_path / "data"
    data_dir.mkdir()

    records = pd.DataFrame({
        '經度': [121.52, 121.03, 120.33, 120.9],
        '緯度': [25.03, 24.03, 22.73, None],
        'obs_id': [1, 2, 3, 4]
    })
    records_path = data_dir / "records.csv"
    records.to_csv(records_path, index=False, encoding="utf-8")

    counties = gpd.GeoDataFrame(
        {'COUNTY': ["新北市", "高雄市"], 'AREA_CODE': [65000, 64000]},
        geometry=[box(121.3, 24.8, 121.8, 25.3), box(120.2, 22.5, 120.6, 23.0)],
        crs="EPSG:4326"
    ).to_crs("EPSG:3826")
    counties_path = data_dir / "counties.gpkg"
    counties.to_file(counties_path, driver="GPKG")

    rows = np.arange(40, dtype="float32")[:, np.newaxis]
    temperature = np.repeat(15 + 0.5 * rows, 30, axis=1)
    raster_path = raster_factory(
        "data/temperature.tif",
        data=temperature,
        transform=Affine(0.1, 0.0, 119.5, 0.0, -0.1, 25.5)
    )

    return {
        "dir": data_dir,
        "points": records_path,
        "regions": counties_path,
        "raster": raster_path
    }
