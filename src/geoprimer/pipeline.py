# src/geoprimer/pipeline.py

"""
This module chains the library stages into the complete walkthrough:

1. load point observations and build point features,
2. load region polygons and reproject them to the points CRS,
3. sample the raster at the points,
4. join each point with the region containing it,
5. filter points spatially and by attribute,
6. union and buffer the regions, then clip the raster to the buffered boundary.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import numpy as np

from geoprimer.config import WalkthroughConfig
from geoprimer.raster import Raster, load, save, clip, extract_to_points
from geoprimer.vector import (
    Vector,
    load_points,
    load_vector,
    save_vector,
    select_columns,
    to_crs,
    make_valid,
    spatial_join,
    intersection,
    filter_by_attribute,
    union_features,
    buffer_features
)

log = logging.getLogger(__name__)

__all__ = [
    "WalkthroughResult",
    "run_walkthrough",
    "sample_to_attribute"
]

@dataclass
class WalkthroughResult:
    """
    Products of each walkthrough stage.

    Region-based products are None when no region value was configured.
    """
    points: Vector
    regions: Vector
    sampled: Vector
    joined: Vector
    intersected: Optional[Vector]
    region_points: Optional[Vector]
    above_threshold: Vector
    unioned: Vector
    buffered: Vector
    clipped: Raster

    def vector_layers(self) -> Dict[str, Vector]:
        """Named vector products, skipping the ones that were not computed."""
        layers = {
            "points": self.points,
            "regions": self.regions,
            "sampled": self.sampled,
            "joined": self.joined,
            "intersected": self.intersected,
            "region_points": self.region_points,
            "above_threshold": self.above_threshold,
            "unioned": self.unioned,
            "buffered": self.buffered
        }
        return {name: layer for name, layer in layers.items() if layer is not None}

def sample_to_attribute(raster: Raster, points: Vector, column: str, band: int = 1) -> Vector:
    """
    Attach the value of one raster band to the points as an attribute.

    Points are reprojected to the raster CRS for sampling only; the returned
    Vector keeps the geometry and CRS of `points`. No-data samples become NaN
    so that they never satisfy an attribute filter.
    """
    in_raster_crs = to_crs(points, raster.crs)
    extracted = extract_to_points(raster, in_raster_crs, columns=column, bands=band)

    values = extracted.data[column].to_numpy().astype(np.float64)
    if raster.nodata is not None and not np.isnan(raster.nodata):
        values[values == raster.nodata] = np.nan

    gdf = points.data.copy()
    gdf[column] = values
    return Vector(gdf)

def run_walkthrough(config: WalkthroughConfig) -> WalkthroughResult:
    """
    Run every walkthrough stage with the given settings.

    Args:
        config (WalkthroughConfig): Input paths and parameters.

    Returns:
        WalkthroughResult: All intermediate and final products. When
        `config.output_dir` is set they are also written to disk.
    """
    log.info("Walkthrough started")

    points = load_points(
        config.points_path,
        lon_col=config.lon_col,
        lat_col=config.lat_col,
        crs=config.points_crs,
        encoding=config.points_encoding,
        rename=config.rename or None
    )

    regions = load_vector(config.regions_path, encoding=config.regions_encoding)
    regions = select_columns(regions, [config.region_field])
    regions = make_valid(to_crs(regions, points.crs))

    raster = load(config.raster_path)

    sampled = sample_to_attribute(raster, points, config.value_column)
    joined = spatial_join(points, regions, how="left", right_columns=[config.region_field])

    intersected = None
    region_points = None
    if config.region_value is not None:
        region = filter_by_attribute(regions, config.region_field, "==", config.region_value)
        intersected = intersection(points, region, keep_region_attributes=True)
        region_points = filter_by_attribute(joined, config.region_field, "==", config.region_value)

    above_threshold = filter_by_attribute(sampled, config.value_column, ">", config.threshold)

    unioned = union_features(regions)
    to_buffer = to_crs(unioned, config.buffer_crs) if config.buffer_crs else unioned
    buffered = buffer_features(
        to_buffer,
        config.buffer_distance,
        allow_geographic=config.allow_geographic_buffer
    )

    clipped = clip(raster, to_crs(buffered, raster.crs))

    result = WalkthroughResult(
        points=points,
        regions=regions,
        sampled=sampled,
        joined=joined,
        intersected=intersected,
        region_points=region_points,
        above_threshold=above_threshold,
        unioned=unioned,
        buffered=buffered,
        clipped=clipped
    )

    if config.output_dir is not None:
        write_outputs(result, config.output_dir)

    log.info("Walkthrough finished")
    return result

def write_outputs(result: WalkthroughResult, output_dir: Path):
    """Write vector products as layers of walkthrough.gpkg and the clipped raster as clipped.tif."""
    output_dir = Path(output_dir)
    gpkg_path = output_dir / "walkthrough.gpkg"

    for name, layer in result.vector_layers().items():
        if len(layer) == 0:
            log.debug(f"Skipping empty layer '{name}'")
            continue
        save_vector(layer, gpkg_path, driver="GPKG", layer=name)

    save(result.clipped, output_dir / "clipped.tif")
