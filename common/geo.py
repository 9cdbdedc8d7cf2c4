from __future__ import annotations

import math
from typing import Sequence, Tuple

# --- Web Mercator (EPSG:3857) constants ---
WEB_MERCATOR_WKID = 3857
ORIGIN_SHIFT = 20037508.34              # half the projected world width (m), as used for extents
TILE_ORIGIN = 20037508.342787           # full-precision origin advertised in tileInfo
TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798            # Mercator is undefined at the poles


def lonlat_to_web_mercator(lon: float, lat: float) -> Tuple[float, float]:
    """
    Spherical Web Mercator forward transform: lon/lat (deg) -> x/y (m).

    Latitude is clamped to +-MAX_LATITUDE so polar bounds (e.g. the
    -180,-90,180,90 world extent) land on the square Mercator world edge.
    """
    x = lon * ORIGIN_SHIFT / 180.0
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    y = math.log(math.tan((90.0 + lat) * math.pi / 360.0)) / (math.pi / 180.0)
    return x, y * ORIGIN_SHIFT / 180.0


def web_mercator_to_lonlat(x: float, y: float) -> Tuple[float, float]:
    """Inverse of lonlat_to_web_mercator()."""
    lon = x / ORIGIN_SHIFT * 180.0
    lat = y / ORIGIN_SHIFT * 180.0
    lat = 180.0 / math.pi * (2.0 * math.atan(math.exp(lat * math.pi / 180.0)) - math.pi / 2.0)
    return lon, lat


def project_bounds(bounds: Sequence[float]) -> Tuple[float, float, float, float]:
    """
    Project [minLon, minLat, maxLon, maxLat] to (xmin, ymin, xmax, ymax).
    """
    min_lon, min_lat, max_lon, max_lat = (float(b) for b in bounds)
    xmin, ymin = lonlat_to_web_mercator(min_lon, min_lat)
    xmax, ymax = lonlat_to_web_mercator(max_lon, max_lat)
    return xmin, ymin, xmax, ymax


def tile_count(level: int) -> int:
    """Tiles per axis at a zoom level."""
    return 1 << int(level)


def tile_to_lonlat(level: int, x: int, y: int) -> Tuple[float, float]:
    """Top-left corner (lon, lat) of XYZ tile (level, x, y)."""
    n = float(tile_count(level))
    lon = x / n * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n))))
    return lon, lat


def lonlat_to_tile(level: int, lon: float, lat: float) -> Tuple[int, int]:
    """XYZ tile (x, y) containing lon/lat at a zoom level, clamped to the grid."""
    n = tile_count(level)
    lat_r = math.radians(max(-MAX_LATITUDE, min(MAX_LATITUDE, lat)))
    x = int((lon + 180.0) / 360.0 * n)
    y = int((1.0 - math.asinh(math.tan(lat_r)) / math.pi) / 2.0 * n)
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)
