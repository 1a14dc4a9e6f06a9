from __future__ import annotations


class RasterMapError(Exception):
    """Base class for errors raised while assembling a region raster."""


class InvalidRange(RasterMapError, ValueError):
    """Raised when a longitude/latitude range cannot be turned into a tile grid."""


class TileUnavailable(RasterMapError):
    """Raised when a single tile cannot be fetched or decoded.

    The whole region request is aborted; no partial raster is produced.
    """

    def __init__(self, url: str, detail: str, *, status_code: int | None = None) -> None:
        self.url = url
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{url}: {detail}")


class GridMismatch(RasterMapError):
    """Raised when the fetched tiles do not line up with the enumerated tile grid."""
