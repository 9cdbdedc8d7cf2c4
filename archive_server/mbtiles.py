"""
Read-only MBTiles archive access.

MBTiles stores tiles in a SQLite database keyed by (zoom_level, tile_column,
tile_row) with TMS rows (row 0 at the bottom). This reader is addressed in
XYZ (row 0 at the top) and flips rows internally, so callers never see the
storage convention.

    with MBTilesArchive.open("tiles/area.mbtiles") as mb:
        info = mb.get_info()
        data, headers = mb.get_tile(10, 5, 3)
"""

from __future__ import annotations

import sqlite3
from email.utils import formatdate
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from common.geo import tile_count, tile_to_lonlat
from common.types import ArchiveInfo, Bounds


class ArchiveOpenError(Exception):
    """Archive file missing, unreadable, or not an MBTiles database."""


class TileNotFoundError(LookupError):
    """No tile stored at the requested address."""


# (magic prefix, offset, headers) checked in order
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", 0, {"Content-Type": "image/png"}),
    (b"\xff\xd8\xff", 0, {"Content-Type": "image/jpeg"}),
    (b"GIF8", 0, {"Content-Type": "image/gif"}),
    (b"WEBP", 8, {"Content-Type": "image/webp"}),
    (b"\x1f\x8b", 0, {"Content-Type": "application/x-protobuf", "Content-Encoding": "gzip"}),
    (b"\x78\x9c", 0, {"Content-Type": "application/x-protobuf", "Content-Encoding": "deflate"}),
    (b"CntZImage", 0, {"Content-Type": "application/octet-stream"}),  # LERC1
    (b"Lerc2 ", 0, {"Content-Type": "application/octet-stream"}),
)


def tile_headers(data: bytes) -> Dict[str, str]:
    """Content headers inferred from the leading bytes of a tile."""
    for magic, offset, headers in _SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            return dict(headers)
    return {"Content-Type": "application/octet-stream"}


def _parse_bounds(raw: Optional[str]) -> Optional[Bounds]:
    if not raw:
        return None
    try:
        parts = [float(p) for p in str(raw).split(",")]
    except ValueError:
        return None
    if len(parts) != 4:
        return None
    return parts[0], parts[1], parts[2], parts[3]


def _parse_center(raw: Optional[str]) -> Optional[Tuple[float, float, int]]:
    if not raw:
        return None
    try:
        lon, lat, z = str(raw).split(",")
        return float(lon), float(lat), int(float(z))
    except ValueError:
        return None


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(float(raw))
    except ValueError:
        return None


class MBTilesArchive:
    """
    One open, read-only handle to an .mbtiles file.

    Handles are cheap; the servers open one per request and close it when
    done, so tile reads always see the current file content.
    """

    def __init__(self, path: Union[str, Path], conn: sqlite3.Connection):
        self.path = Path(path)
        self._conn = conn

    @classmethod
    def open(cls, path: Union[str, Path]) -> "MBTilesArchive":
        p = Path(path)
        if not p.is_file():
            raise ArchiveOpenError(f"MBTiles file not found: {p}")
        try:
            conn = sqlite3.connect(f"{p.resolve().as_uri()}?mode=ro", uri=True)
            tables = {
                r[0]
                for r in conn.execute("SELECT name FROM sqlite_master WHERE type IN ('table', 'view')")
            }
        except sqlite3.Error as e:
            raise ArchiveOpenError(f"Cannot open {p}: {e}") from e
        if "tiles" not in tables or "metadata" not in tables:
            conn.close()
            raise ArchiveOpenError(f"Not an MBTiles archive (missing tiles/metadata): {p}")
        return cls(p, conn)

    # -------- context manager --------

    def __enter__(self) -> "MBTilesArchive":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    # -------- public API --------

    @property
    def name(self) -> str:
        return self.path.stem

    def metadata(self) -> Dict[str, str]:
        rows = self._conn.execute("SELECT name, value FROM metadata").fetchall()
        return {str(k): v for k, v in rows}

    def get_info(self) -> ArchiveInfo:
        """
        Archive bounds, zoom range and format.

        Zoom range and bounds missing from the metadata table are derived
        from the tiles table (bounds from the tile extent at max zoom).
        """
        meta = self.metadata()
        min_zoom = _parse_int(meta.get("minzoom"))
        max_zoom = _parse_int(meta.get("maxzoom"))
        if min_zoom is None or max_zoom is None:
            lo, hi = self._conn.execute("SELECT MIN(zoom_level), MAX(zoom_level) FROM tiles").fetchone()
            min_zoom = lo if min_zoom is None else min_zoom
            max_zoom = hi if max_zoom is None else max_zoom

        bounds = _parse_bounds(meta.get("bounds"))
        if bounds is None and max_zoom is not None:
            bounds = self._bounds_from_tiles(int(max_zoom))

        return ArchiveInfo(
            name=meta.get("name") or self.name,
            bounds=bounds,
            min_zoom=min_zoom,
            max_zoom=max_zoom,
            center=_parse_center(meta.get("center")),
            format=meta.get("format"),
            scheme=meta.get("scheme", "tms"),
            metadata=meta,
        )

    def get_tile(self, z: int, x: int, y: int) -> Tuple[bytes, Dict[str, str]]:
        """
        Return (tile bytes, content headers) for XYZ address z/x/y.
        Raises TileNotFoundError if absent.
        """
        z, x, y = int(z), int(x), int(y)
        if z < 0 or x < 0 or y < 0:
            raise TileNotFoundError("Tile does not exist")
        tms_y = tile_count(z) - 1 - y
        row = self._conn.execute(
            "SELECT tile_data FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?",
            (z, x, tms_y),
        ).fetchone()
        if row is None or row[0] is None:
            raise TileNotFoundError("Tile does not exist")

        data = bytes(row[0])
        headers = tile_headers(data)
        stat = self.path.stat()
        headers["Last-Modified"] = formatdate(stat.st_mtime, usegmt=True)
        headers["ETag"] = f'"{stat.st_size}-{int(stat.st_mtime)}"'
        return data, headers

    # -------- internals --------

    def _bounds_from_tiles(self, z: int) -> Optional[Bounds]:
        r = self._conn.execute(
            "SELECT MIN(tile_column), MAX(tile_column), MIN(tile_row), MAX(tile_row) "
            "FROM tiles WHERE zoom_level = ?",
            (z,),
        ).fetchone()
        if r is None or r[0] is None:
            return None
        min_x, max_x, min_row, max_row = (int(v) for v in r)
        n = tile_count(z)
        # TMS rows -> XYZ rows (north = smallest XYZ row)
        north_y = n - 1 - max_row
        south_y = n - 1 - min_row
        west, north = tile_to_lonlat(z, min_x, north_y)
        east, south = tile_to_lonlat(z, max_x + 1, south_y + 1)
        return west, south, east, north
