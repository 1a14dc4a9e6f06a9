import asyncio
import io
import os
import tempfile
from typing import Dict, List, Tuple

import httpx
import pytest
from PIL import Image

# Must be set before the package resolves its data directory.
os.environ.setdefault("RASTERMAP_DATA_DIR", tempfile.mkdtemp(prefix="rastermap-tests-"))

from rastermap.services import cache as cache_module  # noqa: E402
from rastermap.services.providers import TileProvider  # noqa: E402

TEST_TEMPLATE = "https://tiles.test/{z}/{x}/{y}.png"


def tile_color(z: int, x: int, y: int) -> Tuple[int, int, int, int]:
    return ((x * 37 + z) % 256, (y * 53) % 256, (x + y) % 256, 255)


def png_bytes(color, size: int = 256) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), color=tuple(color)).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeTileServer:
    """Serves a solid-colour PNG per tile and records every request."""

    def __init__(self) -> None:
        self.requests: List[Tuple[int, int, int]] = []
        self.failures: Dict[Tuple[int, int, int], int] = {}
        self.tile_size = 256
        self.content_type = "image/png"
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        z, x, y = request.url.path.strip("/").split("/")[-3:]
        key = (int(z), int(x), int(y.split(".")[0]))
        self.requests.append(key)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        status = self.failures.get(key)
        if status is not None:
            return httpx.Response(status, text="tile missing", headers={"Content-Type": "text/plain"})
        if not self.content_type.startswith("image"):
            return httpx.Response(200, text="<html>", headers={"Content-Type": self.content_type})
        return httpx.Response(
            200,
            content=png_bytes(tile_color(*key), size=self.tile_size),
            headers={"Content-Type": self.content_type},
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def tile_server() -> FakeTileServer:
    return FakeTileServer()


@pytest.fixture
def provider() -> TileProvider:
    return TileProvider.from_template(TEST_TEMPLATE, key="test_tiles", label="Test tiles")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RASTERMAP_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("RASTERMAP_DATABASE_URL", f"sqlite:///{tmp_path / 'usage.db'}")
    monkeypatch.setenv("RASTERMAP_REQUEST_DELAY", "0")
    monkeypatch.setattr(cache_module, "_tile_cache", None)
    yield
