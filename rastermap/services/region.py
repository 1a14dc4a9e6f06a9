from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from PIL import Image

from .raster import RasterImage
from .tiles import GeoRange


def _format_degrees(value: float) -> str:
    return f"{value:.4g}"


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @classmethod
    def from_ranges(cls, lon: GeoRange, lat: GeoRange) -> "BoundingBox":
        return cls(
            min_lat=lat.minimum,
            min_lon=lon.minimum,
            max_lat=lat.maximum,
            max_lon=lon.maximum,
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
        }


@dataclass(frozen=True)
class RegionResult:
    """A cropped raster together with the bounding box that was requested."""

    raster: RasterImage
    bbox: BoundingBox
    zoom: int
    provider: str

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height

    def summary(self) -> str:
        bbox = self.bbox
        return (
            f"Lat: {_format_degrees(bbox.min_lat)} - {_format_degrees(bbox.max_lat)} "
            f"({self.height} px); "
            f"Lon: {_format_degrees(bbox.min_lon)} - {_format_degrees(bbox.max_lon)} "
            f"({self.width} px)"
        )

    def to_image(self) -> Image.Image:
        return self.raster.to_image()

    def to_png(self) -> bytes:
        return self.raster.to_png()

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return f"<RegionResult {self.summary()}>"
