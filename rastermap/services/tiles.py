from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, NamedTuple, Tuple

from .errors import InvalidRange
from .projection import LATITUDE_LIMIT, lat_to_tile_y, lon_to_tile_x

logger = logging.getLogger(__name__)

RECOMMENDED_MAX_ZOOM = 18


class GeoRange(NamedTuple):
    """Closed interval of degrees with ``minimum <= maximum``."""

    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum


@dataclass(frozen=True, order=True)
class TileCoordinate:
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class TileGrid:
    """Rectangular block of tiles at a single zoom level."""

    zoom: int
    tiles: Tuple[TileCoordinate, ...]

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[TileCoordinate]:
        return iter(self.tiles)

    def __contains__(self, tile: object) -> bool:
        return tile in self.tiles

    @property
    def xs(self) -> List[int]:
        return sorted({tile.x for tile in self.tiles})

    @property
    def ys(self) -> List[int]:
        return sorted({tile.y for tile in self.tiles})

    @property
    def columns(self) -> int:
        return len(self.xs)

    @property
    def rows(self) -> int:
        return len(self.ys)

    @property
    def min_x(self) -> int:
        return min(tile.x for tile in self.tiles)

    @property
    def min_y(self) -> int:
        return min(tile.y for tile in self.tiles)


def normalize_range(values: Iterable[float | None], *, label: str = "range") -> GeoRange:
    """Collapse arbitrary, possibly unordered input into a ``GeoRange``.

    Missing and non-finite values are ignored.
    """

    finite: List[float] = []
    for value in values:
        if value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidRange(f"{label} contains a non-numeric value: {value!r}") from exc
        if math.isfinite(number):
            finite.append(number)

    if not finite:
        raise InvalidRange(f"{label} contains no finite values.")

    result = GeoRange(min(finite), max(finite))
    if result.span <= 0:
        raise InvalidRange(
            f"{label} collapses to a single value ({result.minimum}); "
            "a region needs a non-empty interval."
        )
    return result


def validate_zoom(zoom: int) -> int:
    if isinstance(zoom, bool) or not isinstance(zoom, int):
        raise ValueError(f"Zoom level must be an integer, got {zoom!r}.")
    if zoom < 0:
        raise ValueError(f"Zoom level must not be negative, got {zoom}.")
    if zoom > RECOMMENDED_MAX_ZOOM:
        logger.warning(
            "Zoom level %s exceeds the recommended maximum of %s; the tile grid may be very large.",
            zoom,
            RECOMMENDED_MAX_ZOOM,
        )
    return zoom


def normalize_bounds(
    lon_range: Iterable[float | None], lat_range: Iterable[float | None]
) -> Tuple[GeoRange, GeoRange]:
    """Normalize both ranges and reject boxes the Web-Mercator grid cannot represent."""

    lon = normalize_range(lon_range, label="Longitude range")
    lat = normalize_range(lat_range, label="Latitude range")

    if lon.minimum < -180.0 or lon.maximum > 180.0:
        raise InvalidRange(
            "Longitudes must be within -180 and 180 degrees; "
            "boxes crossing the antimeridian are not supported."
        )
    if lat.minimum < -LATITUDE_LIMIT or lat.maximum > LATITUDE_LIMIT:
        raise InvalidRange(
            f"Latitudes must be within {-LATITUDE_LIMIT:.4f} and {LATITUDE_LIMIT:.4f} degrees "
            "for Web-Mercator tiles."
        )
    return lon, lat


def _clamp_tile(index: int, zoom: int) -> int:
    return max(0, min(index, 2 ** zoom - 1))


def enumerate_tiles(
    lon_range: Iterable[float | None],
    lat_range: Iterable[float | None],
    zoom: int,
) -> TileGrid:
    """Return every tile needed to cover the box at ``zoom``.

    Tile ``y`` grows southward, so the southern edge gives the largest row.
    """

    validate_zoom(zoom)
    lon, lat = normalize_bounds(lon_range, lat_range)

    west = _clamp_tile(lon_to_tile_x(lon.minimum, zoom), zoom)
    east = _clamp_tile(lon_to_tile_x(lon.maximum, zoom), zoom)
    north = _clamp_tile(lat_to_tile_y(lat.maximum, zoom), zoom)
    south = _clamp_tile(lat_to_tile_y(lat.minimum, zoom), zoom)

    tiles = tuple(
        TileCoordinate(x=x, y=y, z=zoom)
        for y in range(north, south + 1)
        for x in range(west, east + 1)
    )
    logger.debug(
        "Tile range at zoom %s: X [%s, %s], Y [%s, %s] (%s tiles)",
        zoom,
        west,
        east,
        north,
        south,
        len(tiles),
    )
    return TileGrid(zoom=zoom, tiles=tiles)
