from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

from .errors import GridMismatch
from .projection import TILE_SIZE, lat_to_pixel_y, lon_to_pixel_x, tile_bounds
from .raster import RasterImage, RasterKind, empty_raster
from .tiles import TileGrid, normalize_bounds


def stitch_tiles(grid: TileGrid, tiles: Sequence[RasterImage]) -> RasterImage:
    """Assemble ``tiles`` (in grid order) into one raster.

    Tile columns map west to east and tile rows map north to south. Cells that
    no tile covers keep the ``NO_DATA`` sentinel.
    """

    if len(tiles) != len(grid):
        raise GridMismatch(
            f"Received {len(tiles)} tiles for a grid of {len(grid)} tile coordinates."
        )
    if len(grid) == 0:
        raise GridMismatch("Cannot stitch an empty tile grid.")
    if len(set(grid.tiles)) != len(grid):
        raise GridMismatch("Tile grid contains duplicate tile coordinates.")

    xs = grid.xs
    ys = grid.ys
    column_index = {x: index for index, x in enumerate(xs)}
    row_index = {y: index for index, y in enumerate(ys)}

    _, west, north, _ = tile_bounds(xs[0], ys[0], grid.zoom)
    south, _, _, east = tile_bounds(xs[-1], ys[-1], grid.zoom)

    stitched = empty_raster(
        len(ys) * TILE_SIZE,
        len(xs) * TILE_SIZE,
        RasterKind.STITCHED,
        zoom=grid.zoom,
        min_tile_x=xs[0],
        min_tile_y=ys[0],
        columns=len(xs),
        rows=len(ys),
        bounds={"south": south, "west": west, "north": north, "east": east},
    )

    for coordinate, tile in zip(grid, tiles):
        if tile.shape != (TILE_SIZE, TILE_SIZE):
            raise GridMismatch(
                f"Tile {coordinate.z}/{coordinate.x}/{coordinate.y} is {tile.width}x{tile.height}, "
                f"expected {TILE_SIZE}x{TILE_SIZE}."
            )
        top = row_index[coordinate.y] * TILE_SIZE
        left = column_index[coordinate.x] * TILE_SIZE
        stitched.pixels[top : top + TILE_SIZE, left : left + TILE_SIZE] = tile.pixels

    return stitched


def pixel_window(start: float, end: float, origin: int, limit: int) -> Tuple[int, int]:
    """Return the inclusive ``(first, last)`` indices covering ``[start, end]``.

    ``start`` and ``end`` are global pixel coordinates and ``origin`` is the global
    coordinate of index 0. The window begins at the pixel containing ``start`` and
    spans ``round(end - start) + 1`` pixels. A window that overruns ``limit`` by the
    single rounding pixel is moved back one pixel, or clamped when it already starts
    at index 0. Raises :class:`GridMismatch` for a window outside ``[0, limit)``.
    """

    first = math.floor(start) - origin
    last = first + int(round(end - start))
    if last == limit and 0 <= first < limit:
        if first > 0:
            first -= 1
        last -= 1
    if first < 0 or first > limit - 1 or last > limit - 1:
        raise GridMismatch(
            f"Pixel window [{first}, {last}] lies outside the stitched raster of {limit} pixels."
        )
    return first, last


def crop_region(
    stitched: RasterImage,
    grid: TileGrid,
    lon_range: Iterable[float | None],
    lat_range: Iterable[float | None],
    zoom: int,
) -> RasterImage:
    """Slice the stitched raster down to the requested box at ``zoom``'s pixel resolution."""

    if stitched.kind is not RasterKind.STITCHED:
        raise GridMismatch(f"Expected a stitched raster, got {stitched.kind.value}.")
    if stitched.shape != (grid.rows * TILE_SIZE, grid.columns * TILE_SIZE):
        raise GridMismatch(
            f"Stitched raster is {stitched.width}x{stitched.height} but the grid spans "
            f"{grid.columns}x{grid.rows} tiles."
        )

    lon, lat = normalize_bounds(lon_range, lat_range)

    # North is the smaller pixel row.
    left, right = pixel_window(
        lon_to_pixel_x(lon.minimum, zoom),
        lon_to_pixel_x(lon.maximum, zoom),
        grid.min_x * TILE_SIZE,
        stitched.width,
    )
    top, bottom = pixel_window(
        lat_to_pixel_y(lat.maximum, zoom),
        lat_to_pixel_y(lat.minimum, zoom),
        grid.min_y * TILE_SIZE,
        stitched.height,
    )

    pixels = stitched.pixels[top : bottom + 1, left : right + 1].copy()
    return RasterImage(
        pixels=pixels,
        kind=RasterKind.REGION,
        metadata={
            "zoom": zoom,
            "window": {"left": left, "right": right, "top": top, "bottom": bottom},
            "bounds": {
                "south": lat.minimum,
                "west": lon.minimum,
                "north": lat.maximum,
                "east": lon.maximum,
            },
        },
    )
