"""
Unit tests for the Web Mercator helpers in common.geo
"""

import pytest

from common.geo import (
    ORIGIN_SHIFT,
    lonlat_to_tile,
    lonlat_to_web_mercator,
    project_bounds,
    tile_count,
    tile_to_lonlat,
    web_mercator_to_lonlat,
)


class TestProjection:
    """Test cases for the forward/inverse spherical Mercator transform"""

    def test_origin(self):
        """Test lon/lat 0,0 maps to the projected origin"""
        x, y = lonlat_to_web_mercator(0.0, 0.0)
        assert x == pytest.approx(0.0, abs=1e-6)
        assert y == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.parametrize("lat", [-60.0, 0.0, 33.5, 85.0])
    def test_antimeridian_x_independent_of_lat(self, lat):
        """Test lon=180 always gives x = 20037508.34"""
        x, _ = lonlat_to_web_mercator(180.0, lat)
        assert x == pytest.approx(20037508.34)

    def test_known_point(self):
        """Test a point in the Islamabad area against reference values"""
        x, y = lonlat_to_web_mercator(73.0, 33.7)
        assert x == pytest.approx(8126322.83, abs=0.01)
        assert y == pytest.approx(3988600.0, abs=2000.0)

    def test_north_is_positive_south_negative(self):
        """Test y sign follows the hemisphere"""
        assert lonlat_to_web_mercator(10.0, 45.0)[1] > 0
        assert lonlat_to_web_mercator(10.0, -45.0)[1] < 0

    def test_inverse_round_trip(self):
        """Test web_mercator_to_lonlat undoes the forward transform"""
        x, y = lonlat_to_web_mercator(72.5, 33.25)
        lon, lat = web_mercator_to_lonlat(x, y)
        assert lon == pytest.approx(72.5)
        assert lat == pytest.approx(33.25)

    @pytest.mark.parametrize("lat", [90.0, -90.0, 95.0])
    def test_poles_clamped(self, lat):
        """Test latitudes beyond the Mercator limit land on the world edge"""
        _, y = lonlat_to_web_mercator(0.0, lat)
        assert abs(y) == pytest.approx(ORIGIN_SHIFT, abs=1.0)

    def test_project_bounds_orders_corners(self):
        """Test bounds projection keeps min < max"""
        xmin, ymin, xmax, ymax = project_bounds([72.0, 33.0, 73.0, 34.0])
        assert xmin < xmax
        assert ymin < ymax
        assert xmax == pytest.approx(73.0 * ORIGIN_SHIFT / 180.0)


class TestTileGrid:
    """Test cases for XYZ tile grid helpers"""

    def test_tile_count(self):
        """Test tiles per axis doubles each level"""
        assert tile_count(0) == 1
        assert tile_count(10) == 1024

    def test_tile_to_lonlat_world_corner(self):
        """Test the top-left tile corner is the Mercator world corner"""
        lon, lat = tile_to_lonlat(0, 0, 0)
        assert lon == pytest.approx(-180.0)
        assert lat == pytest.approx(85.0511287798, abs=1e-6)

    def test_lonlat_to_tile(self):
        """Test tile lookup for quadrants at zoom 1"""
        assert lonlat_to_tile(1, -90.0, 45.0) == (0, 0)
        assert lonlat_to_tile(1, 90.0, -45.0) == (1, 1)

    def test_lonlat_to_tile_clamps(self):
        """Test points on the grid edge stay in range"""
        assert lonlat_to_tile(2, 180.0, -90.0) == (3, 3)
