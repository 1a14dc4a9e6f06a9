"""Fetch slippy-map tiles for a bounding box and stitch them into one cropped raster."""

from .services import (
    BoundingBox,
    GridMismatch,
    InvalidRange,
    MemoryTileCache,
    RasterMapError,
    RegionResult,
    TileCache,
    TileProvider,
    TileProviderKey,
    TileUnavailable,
    fetch_region,
    get_provider,
)

__version__ = "0.1.0"

__all__ = [
    "BoundingBox",
    "GridMismatch",
    "InvalidRange",
    "MemoryTileCache",
    "RasterMapError",
    "RegionResult",
    "TileCache",
    "TileProvider",
    "TileProviderKey",
    "TileUnavailable",
    "fetch_region",
    "get_provider",
]
