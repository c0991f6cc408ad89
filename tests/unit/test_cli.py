# tests/unit/test_cli.py

import json

import pytest
import numpy as np
import pandas as pd

from geoprimer.cli import main, build_parser
from geoprimer.raster import load
from geoprimer.vector import load_vector

def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])

def test_points_command(walkthrough_files, tmp_path):
    out = tmp_path / "points.gpkg"

    main([
        "points", str(walkthrough_files["points"]), str(out),
        "--lon", "Longitude", "--lat", "Latitude",
        "--rename", "經度=Longitude", "--rename", "緯度=Latitude"
    ])

    points = load_vector(out)
    assert len(points) == 3
    assert points.crs_code == "EPSG:4326"

def test_points_command_invalid_rows_exit(csv_factory, tmp_path):
    path = csv_factory(pd.DataFrame({'x': [121.0, 400.0], 'y': [24.0, 24.0]}))
    with pytest.raises(SystemExit) as exc:
        main(["points", str(path), str(tmp_path / "out.gpkg"), "--lon", "x", "--lat", "y"])
    assert exc.value.code == 1

def test_points_command_lenient(csv_factory, tmp_path):
    path = csv_factory(pd.DataFrame({'x': [121.0, 400.0], 'y': [24.0, 24.0]}))
    out = tmp_path / "out.gpkg"

    main(["points", str(path), str(out), "--lon", "x", "--lat", "y", "--lenient"])

    assert len(load_vector(out)) == 1
    rejected = pd.read_csv(tmp_path / "out_rejected.csv")
    assert rejected['x'].tolist() == [400.0]

def test_points_command_lenient_creates_output_dir(csv_factory, tmp_path):
    path = csv_factory(pd.DataFrame({'x': [121.0, 400.0], 'y': [24.0, 24.0]}))
    out = tmp_path / "nested" / "out.gpkg"

    main(["points", str(path), str(out), "--lon", "x", "--lat", "y", "--lenient"])

    assert len(load_vector(out)) == 1
    assert (tmp_path / "nested" / "out_rejected.csv").exists()

def test_points_command_unknown_column(csv_factory, tmp_path):
    path = csv_factory(pd.DataFrame({'x': [121.0], 'y': [24.0]}))
    with pytest.raises(SystemExit) as exc:
        main(["points", str(path), str(tmp_path / "out.gpkg"), "--lon", "lon", "--lat", "y"])
    assert exc.value.code == 1

def test_sample_command(walkthrough_files, tmp_path):
    points_out = tmp_path / "points.gpkg"
    main([
        "points", str(walkthrough_files["points"]), str(points_out),
        "--lon", "Longitude", "--lat", "Latitude",
        "--rename", "經度=Longitude", "--rename", "緯度=Latitude"
    ])

    sampled_out = tmp_path / "sampled.gpkg"
    main([
        "sample", str(walkthrough_files["raster"]), str(points_out), str(sampled_out),
        "--column", "AnnualTemp"
    ])

    sampled = load_vector(sampled_out)
    assert sampled.data['AnnualTemp'].tolist() == pytest.approx([17.0, 22.0, 28.5])

def test_clip_command(walkthrough_files, tmp_path):
    out = tmp_path / "clipped.tif"

    main([
        "clip", str(walkthrough_files["raster"]), str(walkthrough_files["regions"]), str(out),
        "--buffer", "500", "--buffer-crs", "EPSG:3826"
    ])

    clipped = load(out)
    assert clipped.crs_code == "EPSG:4326"
    assert clipped.width < 30
    assert np.isnan(clipped.data).any()

def test_clip_command_geographic_buffer_fails(walkthrough_files, tmp_path):
    # regions stored in EPSG:4326 so the buffer would be in degrees
    regions_4326 = load_vector(walkthrough_files["regions"]).data.to_crs("EPSG:4326")
    regions_path = tmp_path / "regions_4326.gpkg"
    regions_4326.to_file(regions_path, driver="GPKG")

    with pytest.raises(SystemExit) as exc:
        main([
            "clip", str(walkthrough_files["raster"]), str(regions_path), str(tmp_path / "out.tif"),
            "--buffer", "0.01"
        ])
    assert exc.value.code == 1

    main([
        "clip", str(walkthrough_files["raster"]), str(regions_path), str(tmp_path / "out.tif"),
        "--buffer", "0.01", "--allow-geographic"
    ])
    assert (tmp_path / "out.tif").exists()

def test_run_command(walkthrough_files, tmp_path):
    config_path = walkthrough_files["dir"] / "walkthrough.json"
    config_path.write_text(json.dumps({
        "points_path": "records.csv",
        "regions_path": "counties.gpkg",
        "raster_path": "temperature.tif",
        "rename": {"經度": "Longitude", "緯度": "Latitude"},
        "region_value": "新北市",
        "buffer_crs": "EPSG:3826"
    }, ensure_ascii=False), encoding="utf-8")
    out_dir = tmp_path / "results"

    main(["-v", "run", str(config_path), "--output-dir", str(out_dir)])

    assert (out_dir / "walkthrough.gpkg").exists()
    assert (out_dir / "clipped.tif").exists()

def test_run_command_missing_config(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["run", str(tmp_path / "ghost.json")])
    assert exc.value.code == 1
