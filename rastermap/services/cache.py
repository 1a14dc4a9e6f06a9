from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections import OrderedDict
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Protocol

from PIL import UnidentifiedImageError

from .. import config
from .raster import RasterImage, RasterKind, decode_raster

logger = logging.getLogger(__name__)

TILE_EXTENSION = ".png"

_tile_cache: TileCache | None = None


class TileStore(Protocol):
    def get(self, url: str) -> RasterImage | None: ...

    def put(self, url: str, tile: RasterImage) -> None: ...


class TileCache:
    """On-disk cache of decoded tiles keyed by their source URL."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def get(self, url: str) -> RasterImage | None:
        cache_path = self._path(url, ensure_parent=False)
        if not cache_path.exists():
            return None

        try:
            tile = decode_raster(cache_path.read_bytes(), RasterKind.TILE)
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning("Ignoring unreadable cached tile %s: %s", cache_path, exc)
            return None
        tile.metadata.update(self._read_metadata(cache_path))
        tile.metadata["url"] = url
        return tile

    def put(self, url: str, tile: RasterImage) -> None:
        cache_path = self._path(url, ensure_parent=True)
        self._atomic_write(cache_path, tile.to_png())
        metadata = {
            "url": url,
            "stored_at": datetime.now(UTC).isoformat(),
            "width": tile.width,
            "height": tile.height,
        }
        self._write_metadata(cache_path, metadata)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self._path(url, ensure_parent=False).exists()

    def _path(self, url: str, *, ensure_parent: bool) -> Path:
        digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
        directory = self.root / digest[:2] / digest[2:4]
        if ensure_parent:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{digest}{TILE_EXTENSION}"

    def _metadata_path(self, cache_path: Path) -> Path:
        return cache_path.parent / f"{cache_path.name}.json"

    def _read_metadata(self, cache_path: Path) -> Dict[str, Any]:
        metadata_path = self._metadata_path(cache_path)
        if not metadata_path.exists():
            return {}
        try:
            return json.loads(metadata_path.read_text())
        except json.JSONDecodeError:
            return {}

    def _write_metadata(self, cache_path: Path, metadata: Dict[str, Any]) -> None:
        payload = json.dumps(metadata, sort_keys=True).encode("utf-8")
        self._atomic_write(self._metadata_path(cache_path), payload)

    @staticmethod
    def _atomic_write(path: Path, content: bytes) -> None:
        # Concurrent writers of the same URL replace each other whole; last one wins.
        handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(content)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise


class MemoryTileCache:
    """Process-local tile cache, safe to share between threads.

    Unbounded by default. With ``max_entries`` set, the oldest stored tiles are
    evicted first once the limit is reached.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.max_entries = max_entries
        self._tiles: OrderedDict[str, RasterImage] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, url: str) -> RasterImage | None:
        with self._lock:
            return self._tiles.get(url)

    def put(self, url: str, tile: RasterImage) -> None:
        with self._lock:
            self._tiles.pop(url, None)
            self._tiles[url] = tile
            if self.max_entries is not None:
                while len(self._tiles) > self.max_entries:
                    evicted, _ = self._tiles.popitem(last=False)
                    logger.debug("Evicted %s from the memory tile cache", evicted)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._tiles

    def __len__(self) -> int:
        with self._lock:
            return len(self._tiles)

    def clear(self) -> None:
        with self._lock:
            self._tiles.clear()


def get_tile_cache() -> TileCache:
    """Return the process-wide disk cache for the configured cache directory."""

    global _tile_cache
    cache_dir = config.cache_dir()
    if _tile_cache is None or _tile_cache.root != cache_dir:
        _tile_cache = TileCache(cache_dir)
    return _tile_cache
