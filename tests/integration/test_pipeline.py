# tests/integration/test_pipeline.py

import json

import pytest
import numpy as np
import pandas as pd
import pyogrio

from geoprimer.config import WalkthroughConfig
from geoprimer.exceptions import UnsuitableCRS
from geoprimer.pipeline import run_walkthrough, sample_to_attribute
from geoprimer.raster import load
from geoprimer.vector import Vector, load_points

def make_config(files, **overrides):
    values = {
        "points_path": files["points"],
        "regions_path": files["regions"],
        "raster_path": files["raster"],
        "rename": {"經度": "Longitude", "緯度": "Latitude"},
        "region_value": "新北市",
        "buffer_crs": "EPSG:3826"
    }
    values.update(overrides)
    return WalkthroughConfig(**values)

def test_full_walkthrough(walkthrough_files, tmp_path):
    """
    Simulates the complete walkthrough:
    1. Build points from the occurrence table.
    2. Reproject counties to the points CRS and repair them.
    3. Sample the temperature raster at the points.
    4. Join counties onto points, filter by county and by temperature.
    5. Union + buffer the counties and clip the raster to them.
    """
    out_dir = tmp_path / "out"
    config = make_config(walkthrough_files, output_dir=out_dir)

    result = run_walkthrough(config)

    # 1. record with a missing latitude is dropped
    assert result.points.data['obs_id'].tolist() == [1, 2, 3]
    assert result.points.crs_code == "EPSG:4326"

    # 2. counties now share the points CRS
    assert result.regions.crs_code == "EPSG:4326"
    assert result.regions.attribute_columns == ["COUNTY"]
    assert result.regions.data.is_valid.all()

    # 3. rows 4, 14 and 27 of the grid
    assert result.sampled.data['AnnualTemp'].tolist() == pytest.approx([17.0, 22.0, 28.5])

    # 4. join keeps every point, the central one has no county
    counties = result.joined.data['COUNTY']
    assert counties.iloc[0] == "新北市"
    assert pd.isna(counties.iloc[1])
    assert counties.iloc[2] == "高雄市"

    assert result.intersected.data['obs_id'].tolist() == [1]
    assert result.intersected.data['COUNTY'].tolist() == ["新北市"]
    assert result.region_points.data['obs_id'].tolist() == [1]
    assert result.above_threshold.data['obs_id'].tolist() == [2, 3]

    # 5. buffered union is built in TWD97, raster stays in EPSG:4326
    assert len(result.unioned) == 1
    assert result.buffered.crs_code == "EPSG:3826"
    assert result.clipped.crs_code == "EPSG:4326"
    assert result.clipped.width < 30 and result.clipped.height < 40
    assert np.isnan(result.clipped.data).any()
    assert (~np.isnan(result.clipped.data)).any()

    # outputs
    gpkg = out_dir / "walkthrough.gpkg"
    assert gpkg.exists()
    layers = {name for name, _ in pyogrio.list_layers(gpkg)}
    assert {"points", "joined", "above_threshold", "buffered"} <= layers

    clipped = load(out_dir / "clipped.tif")
    assert clipped.shape == result.clipped.shape

def test_walkthrough_without_region_value(walkthrough_files):
    result = run_walkthrough(make_config(walkthrough_files, region_value=None))

    assert result.intersected is None
    assert result.region_points is None
    assert "intersected" not in result.vector_layers()

def test_walkthrough_geographic_buffer_rejected(walkthrough_files):
    config = make_config(walkthrough_files, buffer_crs=None, buffer_distance=0.05)
    with pytest.raises(UnsuitableCRS):
        run_walkthrough(config)

def test_walkthrough_geographic_buffer_allowed(walkthrough_files):
    config = make_config(
        walkthrough_files,
        buffer_crs=None,
        buffer_distance=0.05,
        allow_geographic_buffer=True
    )
    result = run_walkthrough(config)
    assert result.buffered.crs_code == "EPSG:4326"

def test_walkthrough_from_json(walkthrough_files):
    config_path = walkthrough_files["dir"] / "walkthrough.json"
    config_path.write_text(json.dumps({
        "points_path": "records.csv",
        "regions_path": "counties.gpkg",
        "raster_path": "temperature.tif",
        "rename": {"經度": "Longitude", "緯度": "Latitude"},
        "buffer_crs": "EPSG:3826",
        "threshold": 25
    }, ensure_ascii=False), encoding="utf-8")

    result = run_walkthrough(WalkthroughConfig.from_json(config_path))

    assert result.above_threshold.data['obs_id'].tolist() == [3]

def test_sample_to_attribute_nodata_becomes_nan(walkthrough_files, grid_raster):
    points = load_points(
        walkthrough_files["points"],
        lon_col="Longitude",
        lat_col="Latitude",
        rename={"經度": "Longitude", "緯度": "Latitude"}
    )
    # grid_raster sits near the TWD97 origin, far from every point
    sampled = sample_to_attribute(grid_raster, points, "AnnualTemp")

    assert isinstance(sampled, Vector)
    assert sampled.crs_code == "EPSG:4326"
    assert sampled.data['AnnualTemp'].isna().all()
