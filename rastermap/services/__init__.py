"""Service utilities exposed by the ``rastermap.services`` package."""

from .cache import MemoryTileCache, TileCache, get_tile_cache
from .errors import GridMismatch, InvalidRange, RasterMapError, TileUnavailable
from .imagery import fetch_region, fetch_tile, fetch_tiles
from .providers import PROVIDERS, TileProvider, TileProviderKey, get_provider
from .region import BoundingBox, RegionResult
from .stitching import crop_region, stitch_tiles
from .tiles import TileCoordinate, TileGrid, enumerate_tiles

__all__ = [
    "BoundingBox",
    "GridMismatch",
    "InvalidRange",
    "MemoryTileCache",
    "PROVIDERS",
    "RasterMapError",
    "RegionResult",
    "TileCache",
    "TileCoordinate",
    "TileGrid",
    "TileProvider",
    "TileProviderKey",
    "TileUnavailable",
    "crop_region",
    "enumerate_tiles",
    "fetch_region",
    "fetch_tile",
    "fetch_tiles",
    "get_provider",
    "get_tile_cache",
    "stitch_tiles",
]
