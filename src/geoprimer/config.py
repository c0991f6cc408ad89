# src/geoprimer/config.py

"""
This module holds the settings of the walkthrough pipeline.

Settings come from a JSON file (WalkthroughConfig.from_json) or from
GEOPRIMER_* environment variables, optionally stored in a .env file
(WalkthroughConfig.from_env).
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv, find_dotenv

log = logging.getLogger(__name__)

__all__ = [
    "WalkthroughConfig",
    "parse_rename",
    "ENV_PREFIX"
]

ENV_PREFIX = "GEOPRIMER_"

_PATH_FIELDS = ("points_path", "regions_path", "raster_path", "output_dir")
_REQUIRED_FIELDS = ("points_path", "regions_path", "raster_path")

@dataclass
class WalkthroughConfig:
    """
    Inputs and parameters of the walkthrough pipeline.

    Args:
        points_path: Delimited table of point observations.
        regions_path: Polygon layer (shapefile, GeoPackage, ...) of administrative regions.
        raster_path: Raster sampled at the points and clipped to the buffered regions.
        lon_col: Longitude column, after renaming.
        lat_col: Latitude column, after renaming.
        rename: Mapping of original to new column names applied when reading the table.
        points_encoding: Text encoding of the table.
        points_crs: CRS of the table's coordinates.
        regions_encoding: Attribute encoding of the polygon layer (e.g. 'big5').
        region_field: Region attribute carried by the spatial join.
        region_value: Region selected for the spatial and attribute filters.
                      Both filters are skipped when None.
        value_column: Name of the sampled raster column.
        threshold: Points with value_column greater than this are kept by the value filter.
        buffer_distance: Buffer distance applied to the unioned regions.
        buffer_crs: CRS in which to buffer. Defaults to the points CRS.
        allow_geographic_buffer: Permit buffering in degrees when the buffer CRS is geographic.
        output_dir: Directory receiving the GeoPackage layers and clipped GeoTIFF.
    """
    points_path: Path
    regions_path: Path
    raster_path: Path
    lon_col: str = "Longitude"
    lat_col: str = "Latitude"
    rename: Dict[str, str] = field(default_factory=dict)
    points_encoding: Optional[str] = None
    points_crs: str = "EPSG:4326"
    regions_encoding: Optional[str] = None
    region_field: str = "COUNTY"
    region_value: Optional[str] = None
    value_column: str = "AnnualTemp"
    threshold: float = 20.0
    buffer_distance: float = 500.0
    buffer_crs: Optional[str] = None
    allow_geographic_buffer: bool = False
    output_dir: Optional[Path] = None

    def __post_init__(self):
        for name in _REQUIRED_FIELDS:
            if not getattr(self, name):
                raise ValueError(f"Walkthrough setting '{name}' is required")

        for name in _PATH_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, Path(value))

        if not isinstance(self.rename, dict):
            raise ValueError(f"'rename' must be a mapping of old to new column names, got {self.rename!r}")

        self.threshold = float(self.threshold)
        self.buffer_distance = float(self.buffer_distance)
        if self.buffer_distance < 0:
            raise ValueError(f"'buffer_distance' must be non-negative, got {self.buffer_distance}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any], base_dir: Optional[Union[str, Path]] = None) -> 'WalkthroughConfig':
        """
        Build a config from a plain mapping.

        Relative paths are resolved against `base_dir` when given.
        Unknown keys raise ValueError.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown walkthrough setting(s): {unknown}")

        values = dict(values)
        if base_dir is not None:
            for name in _PATH_FIELDS:
                if values.get(name):
                    path = Path(values[name])
                    values[name] = path if path.is_absolute() else Path(base_dir) / path

        missing = [name for name in _REQUIRED_FIELDS if name not in values]
        if missing:
            raise ValueError(f"Missing required walkthrough setting(s): {missing}")

        return cls(**values)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'WalkthroughConfig':
        """Load settings from a JSON object; paths are relative to the file's directory."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            values = json.load(f)

        if not isinstance(values, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")

        log.debug(f"Loaded walkthrough configuration from {path}")
        return cls.from_dict(values, base_dir=path.parent)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> 'WalkthroughConfig':
        """
        Load settings from GEOPRIMER_<SETTING> environment variables.

        A .env file (the given one, or the nearest found) is loaded first without
        overriding variables already set. `rename` is written as OLD=NEW pairs
        separated by commas; booleans accept 1/0, true/false, yes/no.
        """
        dotenv_path = str(env_file) if env_file is not None else find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path)
            log.debug(f"Loaded environment from {dotenv_path}")

        values = {}
        for f in fields(cls):
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            if f.name == "rename":
                values[f.name] = parse_rename(raw.split(","))
            elif f.name == "allow_geographic_buffer":
                values[f.name] = _parse_bool(raw, f.name)
            else:
                values[f.name] = raw

        return cls.from_dict(values)

def parse_rename(pairs) -> Dict[str, str]:
    """Turn ['OLD=NEW', ...] into {'OLD': 'NEW', ...}."""
    mapping = {}
    for pair in pairs:
        pair = pair.strip()
        if not pair:
            continue
        old, sep, new = pair.partition("=")
        if not sep or not old or not new:
            raise ValueError(f"Invalid rename '{pair}'. Expected OLD=NEW.")
        mapping[old.strip()] = new.strip()
    return mapping

def _parse_bool(raw: str, name: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Setting '{name}' expects a boolean, got '{raw}'")
