from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/params.yaml"
CONFIG_ENV_VAR = "TERRAIN_CONFIG"

DEFAULTS: Dict[str, Any] = {
    "service": {
        "name": "LocalTerrain3D",
        "description": "Locally hosted terrain elevation tiles",
        "copyright": "Downloaded from ArcGIS World Elevation",
        "current_version": 10.81,
        "host": "0.0.0.0",
        "port": 3001,
    },
    "upstream": {
        # relay: HTTP hop to the archive service; direct: read the archive in-process
        "mode": "relay",
        "url": "http://localhost:5567",
        "timeout_s": 30.0,
    },
    "archive": {
        "directory": "tiles",
        "file_name": "IslamabadDtedSample1-15",
        "host": "0.0.0.0",
        "port": 5567,
        "static_dir": None,
    },
    "addressing": {"scheme": "xyz"},
    "pixel": {
        "size_x": 10,
        "size_y": 10,
        "min_value": -500,
        "max_value": 9000,
        "no_data_value": -9999,
    },
    "logging": {"level": "INFO"},
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the YAML config and merge it over DEFAULTS.

    Path precedence: explicit `path`, env TERRAIN_CONFIG, config/params.yaml.
    A missing file yields the defaults unchanged.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    if not Path(path).exists():
        return copy.deepcopy(DEFAULTS)
    with open(path, "r") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return _deep_merge(DEFAULTS, loaded)


def archive_path(cfg: Dict[str, Any], file_name: Optional[str] = None) -> Path:
    """Filesystem path of an archive `<directory>/<file_name>.mbtiles`."""
    a = cfg["archive"]
    return Path(a["directory"]) / f"{file_name or a['file_name']}.mbtiles"
