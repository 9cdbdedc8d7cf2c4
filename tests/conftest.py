"""
Shared fixtures: throwaway MBTiles archives and per-test configs.
"""

import os
import sqlite3
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from common.config import DEFAULTS, _deep_merge  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
LERC_BYTES = b"Lerc2 " + b"\x03\x00\x00\x00" + b"\x01" * 32


def write_mbtiles(
    path: Path,
    tiles: Dict[Tuple[int, int, int], bytes],
    metadata: Optional[Dict[str, str]] = None,
) -> Path:
    """
    Create an MBTiles file. `tiles` is keyed by XYZ (z, x, y); rows are
    stored TMS-flipped as the format requires.
    """
    conn = sqlite3.connect(str(path))
    try:
        conn.execute("CREATE TABLE metadata (name TEXT, value TEXT)")
        conn.execute("CREATE TABLE tiles (zoom_level INTEGER, tile_column INTEGER, tile_row INTEGER, tile_data BLOB)")
        for k, v in (metadata or {}).items():
            conn.execute("INSERT INTO metadata (name, value) VALUES (?, ?)", (k, v))
        for (z, x, y), data in tiles.items():
            tms_y = (1 << z) - 1 - y
            conn.execute(
                "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) VALUES (?, ?, ?, ?)",
                (z, x, tms_y, sqlite3.Binary(data)),
            )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def make_archive(tmp_path):
    def _make(name: str = "terrain", tiles=None, metadata=None) -> Path:
        return write_mbtiles(tmp_path / f"{name}.mbtiles", tiles or {}, metadata)
    return _make


@pytest.fixture
def islamabad_archive(make_archive):
    """Bounds [72,33,73,34], zoom 10..16, one tile at XYZ 10/5/3."""
    return make_archive(
        "terrain",
        tiles={(10, 5, 3): LERC_BYTES},
        metadata={
            "name": "terrain",
            "bounds": "72.0,33.0,73.0,34.0",
            "minzoom": "10",
            "maxzoom": "16",
            "format": "lerc",
        },
    )


@pytest.fixture
def make_config(tmp_path):
    def _make(**sections) -> Dict:
        base = _deep_merge(
            DEFAULTS,
            {
                "archive": {"directory": str(tmp_path), "file_name": "terrain"},
                "upstream": {"url": "http://archive.test:5567"},
            },
        )
        return _deep_merge(base, sections)
    return _make
