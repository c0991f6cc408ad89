# tests/unit/test_config.py

import json
import os
from pathlib import Path

import pytest

from geoprimer.config import WalkthroughConfig, parse_rename

@pytest.fixture
def isolated_env(monkeypatch):
    """Give each test its own copy of os.environ so .env loading cannot leak."""
    monkeypatch.setattr(os, "environ", dict(os.environ))
    for key in list(os.environ):
        if key.startswith("GEOPRIMER_"):
            del os.environ[key]
    return os.environ

def write_json(path: Path, values: dict) -> Path:
    path.write_text(json.dumps(values, ensure_ascii=False), encoding="utf-8")
    return path

def test_defaults():
    config = WalkthroughConfig(points_path="a.csv", regions_path="b.shp", raster_path="c.tif")

    assert config.points_path == Path("a.csv")
    assert config.lon_col == "Longitude"
    assert config.value_column == "AnnualTemp"
    assert config.threshold == 20.0
    assert config.buffer_distance == 500.0
    assert config.allow_geographic_buffer is False
    assert config.output_dir is None

def test_from_json_resolves_relative_paths(tmp_path):
    path = write_json(tmp_path / "walkthrough.json", {
        "points_path": "data/points.csv",
        "regions_path": "/abs/regions.shp",
        "raster_path": "data/temp.tif",
        "region_value": "新北市",
        "rename": {"經度": "Longitude", "緯度": "Latitude"},
        "threshold": 18
    })

    config = WalkthroughConfig.from_json(path)

    assert config.points_path == tmp_path / "data" / "points.csv"
    assert config.regions_path == Path("/abs/regions.shp")
    assert config.region_value == "新北市"
    assert config.rename == {"經度": "Longitude", "緯度": "Latitude"}
    assert config.threshold == 18.0

def test_from_json_unknown_key(tmp_path):
    path = write_json(tmp_path / "bad.json", {
        "points_path": "p.csv",
        "regions_path": "r.shp",
        "raster_path": "t.tif",
        "colour": "red"
    })
    with pytest.raises(ValueError, match="colour"):
        WalkthroughConfig.from_json(path)

def test_from_json_missing_required(tmp_path):
    path = write_json(tmp_path / "bad.json", {"points_path": "p.csv"})
    with pytest.raises(ValueError, match="raster_path"):
        WalkthroughConfig.from_json(path)

def test_from_json_not_an_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        WalkthroughConfig.from_json(path)

def test_from_json_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        WalkthroughConfig.from_json(tmp_path / "ghost.json")

def test_negative_buffer():
    with pytest.raises(ValueError, match="buffer_distance"):
        WalkthroughConfig(points_path="a", regions_path="b", raster_path="c", buffer_distance=-5)

def test_from_env_variables(isolated_env, tmp_path):
    isolated_env["GEOPRIMER_POINTS_PATH"] = "points.csv"
    isolated_env["GEOPRIMER_REGIONS_PATH"] = "regions.gpkg"
    isolated_env["GEOPRIMER_RASTER_PATH"] = "temp.tif"
    isolated_env["GEOPRIMER_THRESHOLD"] = "21.5"
    isolated_env["GEOPRIMER_ALLOW_GEOGRAPHIC_BUFFER"] = "yes"
    isolated_env["GEOPRIMER_RENAME"] = "lon_dd=Longitude, lat_dd=Latitude"

    config = WalkthroughConfig.from_env(env_file=tmp_path / "absent.env")

    assert config.raster_path == Path("temp.tif")
    assert config.threshold == 21.5
    assert config.allow_geographic_buffer is True
    assert config.rename == {"lon_dd": "Longitude", "lat_dd": "Latitude"}

def test_from_env_dotenv_file(isolated_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "GEOPRIMER_POINTS_PATH=points.csv\n"
        "GEOPRIMER_REGIONS_PATH=regions.gpkg\n"
        "GEOPRIMER_RASTER_PATH=temp.tif\n"
        "GEOPRIMER_BUFFER_CRS=EPSG:3826\n"
    )
    # variables already set win over the file
    isolated_env["GEOPRIMER_RASTER_PATH"] = "override.tif"

    config = WalkthroughConfig.from_env(env_file=env_file)

    assert config.points_path == Path("points.csv")
    assert config.raster_path == Path("override.tif")
    assert config.buffer_crs == "EPSG:3826"

def test_from_env_bad_boolean(isolated_env, tmp_path):
    isolated_env["GEOPRIMER_POINTS_PATH"] = "p.csv"
    isolated_env["GEOPRIMER_REGIONS_PATH"] = "r.gpkg"
    isolated_env["GEOPRIMER_RASTER_PATH"] = "t.tif"
    isolated_env["GEOPRIMER_ALLOW_GEOGRAPHIC_BUFFER"] = "maybe"

    with pytest.raises(ValueError, match="boolean"):
        WalkthroughConfig.from_env(env_file=tmp_path / "absent.env")

def test_parse_rename():
    assert parse_rename(["a=b", " c = d ", ""]) == {"a": "b", "c": "d"}
    with pytest.raises(ValueError):
        parse_rename(["no_separator"])
