"""
Unit tests for the read-only MBTiles reader
"""

import gzip
import sqlite3

import pytest

from archive_server.mbtiles import ArchiveOpenError, MBTilesArchive, TileNotFoundError, tile_headers
from common.geo import tile_to_lonlat
from tests.conftest import LERC_BYTES, PNG_BYTES


class TestOpen:
    """Test cases for opening archives"""

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ArchiveOpenError"""
        with pytest.raises(ArchiveOpenError, match="not found"):
            MBTilesArchive.open(tmp_path / "missing.mbtiles")

    def test_not_a_database(self, tmp_path):
        """Test a non-SQLite file raises ArchiveOpenError"""
        p = tmp_path / "junk.mbtiles"
        p.write_bytes(b"this is not sqlite at all" * 10)
        with pytest.raises(ArchiveOpenError):
            MBTilesArchive.open(p)

    def test_sqlite_without_tiles_table(self, tmp_path):
        """Test a SQLite file lacking the MBTiles schema is rejected"""
        p = tmp_path / "other.mbtiles"
        conn = sqlite3.connect(str(p))
        conn.execute("CREATE TABLE foo (a INTEGER)")
        conn.commit()
        conn.close()
        with pytest.raises(ArchiveOpenError, match="Not an MBTiles"):
            MBTilesArchive.open(p)

    def test_name_is_file_stem(self, islamabad_archive):
        """Test the archive name defaults to the file stem"""
        with MBTilesArchive.open(islamabad_archive) as mb:
            assert mb.name == "terrain"


class TestGetInfo:
    """Test cases for archive metadata"""

    def test_reads_metadata(self, islamabad_archive):
        """Test bounds and zoom range come from the metadata table"""
        with MBTilesArchive.open(islamabad_archive) as mb:
            info = mb.get_info()
        assert info.bounds == (72.0, 33.0, 73.0, 34.0)
        assert info.min_zoom == 10
        assert info.max_zoom == 16
        assert info.format == "lerc"
        assert info.zoom_range.min == 10

    def test_zoom_derived_from_tiles(self, make_archive):
        """Test missing minzoom/maxzoom fall back to the tiles table"""
        path = make_archive(
            tiles={(3, 1, 1): b"a", (5, 4, 4): b"b"},
            metadata={"bounds": "0,0,10,10"},
        )
        with MBTilesArchive.open(path) as mb:
            info = mb.get_info()
        assert (info.min_zoom, info.max_zoom) == (3, 5)

    def test_bounds_derived_from_tiles(self, make_archive):
        """Test missing bounds are computed from the tile extent at max zoom"""
        path = make_archive(tiles={(4, 10, 5): b"a", (4, 11, 6): b"b"})
        with MBTilesArchive.open(path) as mb:
            info = mb.get_info()
        west, north = tile_to_lonlat(4, 10, 5)
        east, south = tile_to_lonlat(4, 12, 7)
        assert info.bounds == pytest.approx((west, south, east, north))

    def test_empty_archive(self, make_archive):
        """Test an archive with no tiles and no metadata reports nothing"""
        with MBTilesArchive.open(make_archive()) as mb:
            info = mb.get_info()
        assert info.bounds is None
        assert info.zoom_range is None

    def test_malformed_metadata_ignored(self, make_archive):
        """Test unparsable bounds/center/zoom values are treated as absent"""
        path = make_archive(
            tiles={(2, 1, 1): b"a"},
            metadata={"bounds": "a,b,c", "center": "x", "minzoom": "low"},
        )
        with MBTilesArchive.open(path) as mb:
            info = mb.get_info()
        assert info.center is None
        assert info.min_zoom == 2
        assert info.bounds is not None  # derived from tiles instead


class TestGetTile:
    """Test cases for tile reads"""

    def test_xyz_address_flips_to_tms(self, islamabad_archive):
        """Test XYZ 10/5/3 reads the row stored at TMS 1020"""
        with MBTilesArchive.open(islamabad_archive) as mb:
            data, headers = mb.get_tile(10, 5, 3)
        assert data == LERC_BYTES
        assert headers["Content-Type"] == "application/octet-stream"
        assert "ETag" in headers and "Last-Modified" in headers

        conn = sqlite3.connect(str(islamabad_archive))
        (row,) = conn.execute("SELECT tile_row FROM tiles").fetchone()
        conn.close()
        assert row == 1020

    def test_missing_tile(self, islamabad_archive):
        """Test absent tiles raise TileNotFoundError"""
        with MBTilesArchive.open(islamabad_archive) as mb:
            with pytest.raises(TileNotFoundError):
                mb.get_tile(10, 3, 5)

    def test_negative_address(self, islamabad_archive):
        """Test negative components are reported as missing"""
        with MBTilesArchive.open(islamabad_archive) as mb:
            with pytest.raises(TileNotFoundError):
                mb.get_tile(10, -1, 3)


class TestTileHeaders:
    """Test cases for content-type sniffing"""

    def test_png(self):
        assert tile_headers(PNG_BYTES) == {"Content-Type": "image/png"}

    def test_gzip_pbf(self):
        h = tile_headers(gzip.compress(b"vector"))
        assert h == {"Content-Type": "application/x-protobuf", "Content-Encoding": "gzip"}

    def test_webp(self):
        assert tile_headers(b"RIFF\x00\x00\x00\x00WEBPVP8 ")["Content-Type"] == "image/webp"

    def test_unknown_is_octet_stream(self):
        assert tile_headers(b"\x00\x01\x02") == {"Content-Type": "application/octet-stream"}
