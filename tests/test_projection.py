import math

import pytest

from rastermap.services.projection import (
    TILE_SIZE,
    lat_to_pixel_y,
    lat_to_tile_y,
    lon_to_pixel_x,
    lon_to_tile_x,
    pixel_x_to_lon,
    pixel_y_to_lat,
    tile_bounds,
    world_size,
)


def test_world_edges_map_to_pixel_space_edges():
    assert lon_to_pixel_x(-180.0, 3) == 0.0
    assert lon_to_pixel_x(180.0, 3) == world_size(3)
    assert lat_to_pixel_y(0.0, 3) == pytest.approx(world_size(3) / 2)
    assert world_size(0) == TILE_SIZE


def test_longitude_projection_is_monotonic():
    longitudes = [-179.9, -120.0, -95.80204, -94.92313, 0.0, 0.0001, 45.5, 179.9]
    for zoom in (0, 5, 10, 18):
        pixels = [lon_to_pixel_x(lon, zoom) for lon in longitudes]
        tiles = [lon_to_tile_x(lon, zoom) for lon in longitudes]
        assert pixels == sorted(pixels)
        assert tiles == sorted(tiles)


def test_latitude_projection_decreases_northward():
    latitudes = [-85.0, -45.0, -0.5, 0.0, 29.38048, 30.14344, 60.0, 85.0]
    for zoom in (0, 5, 10, 18):
        pixels = [lat_to_pixel_y(lat, zoom) for lat in latitudes]
        tiles = [lat_to_tile_y(lat, zoom) for lat in latitudes]
        assert pixels == sorted(pixels, reverse=True)
        assert tiles == sorted(tiles, reverse=True)


def test_houston_tile_indices_at_zoom_10():
    assert lon_to_tile_x(-95.80204, 10) == 239
    assert lon_to_tile_x(-94.92313, 10) == 241
    assert lat_to_tile_y(30.14344, 10) == 422
    assert lat_to_tile_y(29.38048, 10) == 424


def test_tile_index_is_floor_of_pixel_over_tile_size():
    lon, lat, zoom = 13.4050, 52.5200, 12
    assert lon_to_tile_x(lon, zoom) == math.floor(lon_to_pixel_x(lon, zoom) / TILE_SIZE)
    assert lat_to_tile_y(lat, zoom) == math.floor(lat_to_pixel_y(lat, zoom) / TILE_SIZE)


def test_inverse_conversions_recover_degrees():
    assert pixel_x_to_lon(lon_to_pixel_x(-95.80204, 10), 10) == pytest.approx(-95.80204)
    assert pixel_y_to_lat(lat_to_pixel_y(29.38048, 10), 10) == pytest.approx(29.38048)


def test_tile_bounds_contain_the_tile_points():
    south, west, north, east = tile_bounds(239, 422, 10)
    assert west <= -95.80204 < east
    assert south <= 30.14344 < north
    assert north > south
    assert east - west == pytest.approx(360.0 / 1024)
