"""Raster values passed between the fetch, stitch and crop stages.

Every raster uses one layout: ``pixels[row, column, channel]`` with rows running
north to south, columns running west to east and RGBA channels in ``0..255``.
Cells that no tile covered hold :data:`NO_DATA` in every channel.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

import numpy as np
from PIL import Image

NO_DATA = -1
PIXEL_DTYPE = np.int16
CHANNELS = 4


class RasterKind(str, Enum):
    TILE = "tile"
    STITCHED = "stitched"
    REGION = "region"


@dataclass
class RasterImage:
    pixels: np.ndarray
    kind: RasterKind
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def no_data_mask(self) -> np.ndarray:
        return np.all(self.pixels == NO_DATA, axis=-1)

    def to_image(self) -> Image.Image:
        """Convert to a Pillow RGBA image; no-data cells become fully transparent."""

        rgba = np.where(self.pixels == NO_DATA, 0, self.pixels).astype(np.uint8)
        return Image.fromarray(rgba)

    def to_png(self) -> bytes:
        buffer = io.BytesIO()
        self.to_image().save(buffer, format="PNG")
        return buffer.getvalue()


def empty_raster(height: int, width: int, kind: RasterKind, **metadata: Any) -> RasterImage:
    pixels = np.full((height, width, CHANNELS), NO_DATA, dtype=PIXEL_DTYPE)
    return RasterImage(pixels=pixels, kind=kind, metadata=dict(metadata))


def raster_from_image(image: Image.Image, kind: RasterKind, **metadata: Any) -> RasterImage:
    pixels = np.asarray(image.convert("RGBA"), dtype=PIXEL_DTYPE)
    return RasterImage(pixels=pixels, kind=kind, metadata=dict(metadata))


def decode_raster(content: bytes, kind: RasterKind, **metadata: Any) -> RasterImage:
    """Decode PNG/JPEG bytes into a raster; raises Pillow's errors on bad payloads."""

    with Image.open(io.BytesIO(content)) as image:
        image.load()
        return raster_from_image(image, kind, **metadata)
