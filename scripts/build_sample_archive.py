#!/usr/bin/env python3
"""
Build a small synthetic elevation MBTiles archive for local smoke tests.

Each tile is a 256x256 little-endian float32 grid (a smooth ridge plus noise,
metres), stored raw rather than LERC-encoded: enough to exercise extent/LOD
synthesis and tile relay end to end, not for rendering in a real client.

Examples:
  python scripts/build_sample_archive.py
  python scripts/build_sample_archive.py --bbox 72 33 73 34 --zoom 10 12 --out tiles/Sample.mbtiles
"""
from __future__ import annotations

import argparse
import os
import sqlite3
import sys
from pathlib import Path
from typing import Tuple

import numpy as np

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.geo import TILE_SIZE, lonlat_to_tile, tile_count, tile_to_lonlat


def synthesize_elevation(
    level: int, x: int, y: int, rng: np.random.Generator, size: int = TILE_SIZE
) -> np.ndarray:
    """Ridge running SW-NE across the world grid, so neighbouring tiles join up."""
    lon0, lat0 = tile_to_lonlat(level, x, y)
    lon1, lat1 = tile_to_lonlat(level, x + 1, y + 1)
    lons = np.linspace(lon0, lon1, size, dtype=np.float64)[None, :]
    lats = np.linspace(lat0, lat1, size, dtype=np.float64)[:, None]
    ridge = 1500.0 + 1200.0 * np.sin(np.radians(lons * 40.0)) * np.cos(np.radians(lats * 40.0))
    noise = rng.normal(0.0, 5.0, size=(size, size))
    return (ridge + noise).astype("<f4")


def create_schema(conn: sqlite3.Connection) -> None:
    conn.execute("CREATE TABLE metadata (name TEXT, value TEXT)")
    conn.execute("CREATE TABLE tiles (zoom_level INTEGER, tile_column INTEGER, tile_row INTEGER, tile_data BLOB)")
    conn.execute("CREATE UNIQUE INDEX tile_index ON tiles (zoom_level, tile_column, tile_row)")


def tile_range(level: int, bbox: Tuple[float, float, float, float]) -> Tuple[int, int, int, int]:
    lon_min, lat_min, lon_max, lat_max = bbox
    x0, y0 = lonlat_to_tile(level, lon_min, lat_max)  # NW
    x1, y1 = lonlat_to_tile(level, lon_max, lat_min)  # SE
    return x0, y0, x1, y1


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--bbox", nargs=4, type=float, default=[72.0, 33.0, 73.0, 34.0],
                    metavar=("LON_MIN", "LAT_MIN", "LON_MAX", "LAT_MAX"))
    ap.add_argument("--zoom", nargs=2, type=int, default=[10, 12], metavar=("MIN", "MAX"))
    ap.add_argument("--out", default="tiles/SampleTerrain.mbtiles")
    ap.add_argument("--seed", type=int, default=1234)
    args = ap.parse_args()

    zmin, zmax = sorted(args.zoom)
    bbox = tuple(args.bbox)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    if out.exists():
        out.unlink()

    rng = np.random.default_rng(args.seed)
    conn = sqlite3.connect(str(out))
    try:
        create_schema(conn)
        meta = {
            "name": out.stem,
            "format": "f32",
            "type": "baselayer",
            "bounds": ",".join(str(v) for v in bbox),
            "center": f"{(bbox[0] + bbox[2]) / 2},{(bbox[1] + bbox[3]) / 2},{zmin}",
            "minzoom": str(zmin),
            "maxzoom": str(zmax),
            "description": "Synthetic float32 elevation tiles",
        }
        conn.executemany("INSERT INTO metadata (name, value) VALUES (?, ?)", meta.items())

        count = 0
        for z in range(zmin, zmax + 1):
            x0, y0, x1, y1 = tile_range(z, bbox)
            for x in range(x0, x1 + 1):
                for y in range(y0, y1 + 1):
                    grid = synthesize_elevation(z, x, y, rng)
                    tms_y = tile_count(z) - 1 - y
                    conn.execute(
                        "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) VALUES (?, ?, ?, ?)",
                        (z, x, tms_y, sqlite3.Binary(grid.tobytes())),
                    )
                    count += 1
            print(f"[ok] z{z}: x {x0}..{x1}, y {y0}..{y1}")
        conn.commit()
    finally:
        conn.close()

    print(f"[ok] wrote {count} tiles to {out}")
    print("Serve it with archive.file_name set to the file stem:")
    print(f"  archive: {{directory: {out.parent}, file_name: {out.stem}}}")
    print("  python -m image_server.service")


if __name__ == "__main__":
    main()
