"""Web-Mercator conversions between degrees, global pixels and slippy tile indices.

Global pixel space at zoom ``z`` is a square of ``256 * 2**z`` pixels whose origin
is the north-west corner of the world (lon -180, lat ~85.05). Pixel ``x`` grows
eastward and pixel ``y`` grows southward, matching tile ``x``/``y``.
"""

from __future__ import annotations

import math
from typing import Tuple

TILE_SIZE = 256
LATITUDE_LIMIT = 85.05112878


def world_size(zoom: int) -> int:
    """Width and height of the global pixel space at ``zoom``."""

    return TILE_SIZE * 2 ** zoom


def lon_to_pixel_x(lon: float, zoom: int) -> float:
    return (lon + 180.0) / 360.0 * world_size(zoom)


def lat_to_pixel_y(lat: float, zoom: int) -> float:
    """Mercator pixel row for ``lat``; diverges at the poles."""

    mercator = math.log(math.tan(math.pi / 4 + lat * math.pi / 360.0))
    return (1.0 - mercator / math.pi) / 2.0 * world_size(zoom)


def lon_to_tile_x(lon: float, zoom: int) -> int:
    return math.floor(lon_to_pixel_x(lon, zoom) / TILE_SIZE)


def lat_to_tile_y(lat: float, zoom: int) -> int:
    return math.floor(lat_to_pixel_y(lat, zoom) / TILE_SIZE)


def pixel_x_to_lon(pixel_x: float, zoom: int) -> float:
    return pixel_x / world_size(zoom) * 360.0 - 180.0


def pixel_y_to_lat(pixel_y: float, zoom: int) -> float:
    mercator = math.pi * (1.0 - 2.0 * pixel_y / world_size(zoom))
    return math.degrees(math.atan(math.sinh(mercator)))


def tile_bounds(x: int, y: int, zoom: int) -> Tuple[float, float, float, float]:
    """Return ``(south, west, north, east)`` of tile ``(x, y)`` in degrees."""

    west = pixel_x_to_lon(x * TILE_SIZE, zoom)
    east = pixel_x_to_lon((x + 1) * TILE_SIZE, zoom)
    north = pixel_y_to_lat(y * TILE_SIZE, zoom)
    south = pixel_y_to_lat((y + 1) * TILE_SIZE, zoom)
    return south, west, north, east
