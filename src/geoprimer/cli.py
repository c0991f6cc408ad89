# src/geoprimer/cli.py

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from geoprimer.config import WalkthroughConfig, parse_rename
from geoprimer.exceptions import GeoPrimerError
from geoprimer.pipeline import run_walkthrough
from geoprimer.raster import load, save, clip, extract_to_points
from geoprimer.vector import (
    load_points,
    load_vector,
    save_vector,
    read_table,
    collect_points,
    to_crs,
    union_features,
    buffer_features
)

log = logging.getLogger(__name__)

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def run_command(args: argparse.Namespace) -> None:
    config = WalkthroughConfig.from_json(args.config)
    if args.output_dir is not None:
        config.output_dir = Path(args.output_dir)

    result = run_walkthrough(config)
    log.info(
        f"Walkthrough complete: {len(result.points)} points, "
        f"{len(result.above_threshold)} above {config.value_column} > {config.threshold}, "
        f"clipped raster {result.clipped.shape}"
    )

def points_command(args: argparse.Namespace) -> None:
    """
    Builds point features from a delimited table and writes them to a vector file.

    In lenient mode invalid rows are skipped and written next to the output as
    '<name>_rejected.csv' instead of aborting the run.
    """
    rename = parse_rename(args.rename or [])

    if args.lenient:
        df = read_table(args.table, encoding=args.encoding, rename=rename or None)
        points, rejected = collect_points(df, lon_col=args.lon, lat_col=args.lat, crs=args.crs)
        if len(rejected):
            rejected_path = Path(args.output).with_name(f"{Path(args.output).stem}_rejected.csv")
            rejected_path.parent.mkdir(parents=True, exist_ok=True)
            rejected.to_csv(rejected_path, index=True)
            log.warning(f"{len(rejected)} rejected rows written to {rejected_path}")
    else:
        points = load_points(
            args.table,
            lon_col=args.lon,
            lat_col=args.lat,
            crs=args.crs,
            encoding=args.encoding,
            rename=rename or None
        )

    save_vector(points, args.output)

def sample_command(args: argparse.Namespace) -> None:
    points = load_vector(args.points)
    raster = load(args.raster)

    sampled = extract_to_points(
        raster,
        to_crs(points, raster.crs),
        columns=args.column,
        bands=args.band,
        method=args.method
    )
    save_vector(sampled, args.output)

def clip_command(args: argparse.Namespace) -> None:
    raster = load(args.raster)
    boundary = union_features(load_vector(args.regions))

    if args.buffer:
        if args.buffer_crs:
            boundary = to_crs(boundary, args.buffer_crs)
        boundary = buffer_features(boundary, args.buffer, allow_geographic=args.allow_geographic)

    clipped = clip(raster, to_crs(boundary, raster.crs))
    save(clipped, args.output)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geoprimer",
        description="Point, polygon and raster walkthrough tools"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable DEBUG logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Runs the complete walkthrough described by a JSON configuration file."
    )
    run_parser.add_argument("config", type=str, help="Path to the walkthrough JSON configuration.")
    run_parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Overrides the output directory of the configuration file."
    )
    run_parser.set_defaults(handler=run_command)

    points_parser = subparsers.add_parser(
        "points",
        help="Converts a delimited table with coordinate columns into point features."
    )
    points_parser.add_argument("table", type=str, help="Input CSV file.")
    points_parser.add_argument("output", type=str, help="Output vector file (.gpkg, .shp, .geojson).")
    points_parser.add_argument("--lon", required=True, help="Longitude column (after renaming).")
    points_parser.add_argument("--lat", required=True, help="Latitude column (after renaming).")
    points_parser.add_argument("--crs", default="EPSG:4326", help="CRS of the coordinates. Defaults to EPSG:4326.")
    points_parser.add_argument("--encoding", default=None, help="Text encoding of the table.")
    points_parser.add_argument(
        "--rename",
        action="append",
        metavar="OLD=NEW",
        help="Renames a column before building points. Repeatable."
    )
    points_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skips invalid coordinate rows instead of failing."
    )
    points_parser.set_defaults(handler=points_command)

    sample_parser = subparsers.add_parser(
        "sample",
        help="Samples raster values at point locations."
    )
    sample_parser.add_argument("raster", type=str, help="Input raster.")
    sample_parser.add_argument("points", type=str, help="Input point vector file.")
    sample_parser.add_argument("output", type=str, help="Output vector file.")
    sample_parser.add_argument("--column", default=None, help="Name of the sampled attribute. Defaults to the band name.")
    sample_parser.add_argument("--band", type=int, default=1, help="1-based band index. Defaults to 1.")
    sample_parser.add_argument(
        "--method",
        choices=["nearest", "bilinear"],
        default="nearest",
        help="Sampling method. Defaults to nearest."
    )
    sample_parser.set_defaults(handler=sample_command)

    clip_parser = subparsers.add_parser(
        "clip",
        help="Clips a raster to the (optionally buffered) union of region polygons."
    )
    clip_parser.add_argument("raster", type=str, help="Input raster.")
    clip_parser.add_argument("regions", type=str, help="Polygon vector file.")
    clip_parser.add_argument("output", type=str, help="Output GeoTIFF.")
    clip_parser.add_argument("--buffer", type=float, default=0.0, help="Buffer distance in CRS units.")
    clip_parser.add_argument("--buffer-crs", default=None, help="CRS in which to buffer.")
    clip_parser.add_argument(
        "--allow-geographic",
        action="store_true",
        help="Allows buffering in degrees when the buffer CRS is geographic."
    )
    clip_parser.set_defaults(handler=clip_command)

    return parser

def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and routes execution to the matching subcommand.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        args.handler(args)
    except (GeoPrimerError, OSError, ValueError, KeyError) as e:
        logging.error(f"{args.command} failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
