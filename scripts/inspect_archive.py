#!/usr/bin/env python3
"""
Print what the ImageServer would advertise for an MBTiles archive.

Reads the archive's bounds and zoom range, projects the extent to Web
Mercator, and prints the resulting extent and LOD pyramid as JSON.

Examples:
  python scripts/inspect_archive.py tiles/IslamabadDtedSample1-15.mbtiles
  python scripts/inspect_archive.py tiles/area.mbtiles --tile 10 5 3
"""
from __future__ import annotations

import argparse
import json
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from archive_server.mbtiles import ArchiveOpenError, MBTilesArchive, TileNotFoundError
from common.geo import web_mercator_to_lonlat
from image_server.extent import resolve_extent
from image_server.lods import generate_lods


def main() -> None:
    ap = argparse.ArgumentParser(description="Inspect an MBTiles elevation archive")
    ap.add_argument("path", help="Path to .mbtiles file")
    ap.add_argument("--tile", nargs=3, type=int, metavar=("Z", "X", "Y"), help="Also probe one XYZ tile")
    args = ap.parse_args()

    try:
        with MBTilesArchive.open(args.path) as mb:
            info = mb.get_info()
            probe = None
            if args.tile:
                z, x, y = args.tile
                try:
                    data, headers = mb.get_tile(z, x, y)
                    probe = {"z": z, "x": x, "y": y, "bytes": len(data), "headers": headers}
                except TileNotFoundError:
                    probe = {"z": z, "x": x, "y": y, "error": "Tile not found"}
    except ArchiveOpenError as e:
        raise SystemExit(f"Cannot open archive: {e}")

    extent = resolve_extent(info.bounds)
    out = {
        "archive": info.to_dict(),
        "extent": extent.to_dict() if extent else None,
        # round trip of the projected corners, to eyeball the projection
        "extent_lonlat": (
            [*web_mercator_to_lonlat(extent.xmin, extent.ymin), *web_mercator_to_lonlat(extent.xmax, extent.ymax)]
            if extent
            else None
        ),
        "lods": [lod.to_dict() for lod in generate_lods(info.zoom_range)],
    }
    if probe is not None:
        out["tile"] = probe
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
