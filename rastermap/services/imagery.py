from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import replace
from typing import Dict, Iterable, List

import httpx

from .. import config
from .cache import TileStore, get_tile_cache
from .errors import TileUnavailable
from .projection import TILE_SIZE
from .providers import TileProvider, TileProviderKey, get_provider
from .raster import RasterImage, RasterKind, decode_raster
from .region import BoundingBox, RegionResult
from .stitching import crop_region, stitch_tiles
from .tiles import TileCoordinate, TileGrid, enumerate_tiles, normalize_bounds
from .usage import record_api_usage

logger = logging.getLogger(__name__)

DEFAULT_ZOOM = 10


async def _respect_rate_limit() -> None:
    delay = config.request_delay_seconds()
    if delay > 0:
        await asyncio.sleep(delay)


def _request_headers(provider: TileProvider) -> Dict[str, str]:
    headers = {"User-Agent": config.user_agent()}
    headers.update(provider.headers)
    return headers


async def fetch_tile(
    client: httpx.AsyncClient,
    url: str,
    *,
    cache: TileStore | None = None,
    use_cache: bool = True,
    headers: Dict[str, str] | None = None,
    quiet: bool = False,
) -> RasterImage:
    """Return the decoded tile at ``url``, consulting ``cache`` first when enabled.

    The returned raster's ``metadata["source"]`` is ``"cache"`` or ``"network"``.
    Raises :class:`TileUnavailable` for any unsuccessful response or undecodable payload.
    """

    if use_cache and cache is not None:
        cached = cache.get(url)
        if cached is not None:
            logger.debug("Tile cache hit for %s", url)
            return replace(cached, metadata={**cached.metadata, "source": "cache"})

    logger.log(logging.DEBUG if quiet else logging.INFO, "Fetching %s", url)
    await _respect_rate_limit()

    try:
        response = await client.get(url, headers=headers)
    except httpx.RequestError as exc:
        logger.warning("Tile request failed for %s: %s", url, exc)
        raise TileUnavailable(url, f"request error: {exc}") from exc

    if response.status_code == 204:
        raise TileUnavailable(url, "no imagery available (204 No Content)", status_code=204)

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        detail = _http_error_detail(exc.response)
        logger.warning(
            "Tile request for %s failed with status %s: %s",
            url,
            exc.response.status_code,
            detail,
        )
        raise TileUnavailable(
            url, f"{exc.response.status_code} {detail}", status_code=exc.response.status_code
        ) from exc

    if not _is_image_response(response):
        content_type = response.headers.get("Content-Type", "unknown")
        raise TileUnavailable(
            url,
            f"unexpected payload ({content_type}): {_http_error_detail(response)}",
            status_code=response.status_code,
        )

    try:
        tile = decode_raster(response.content, RasterKind.TILE, url=url)
    except (OSError, ValueError) as exc:
        raise TileUnavailable(url, f"unable to decode tile image: {exc}") from exc

    if tile.shape != (TILE_SIZE, TILE_SIZE):
        raise TileUnavailable(
            url, f"unexpected tile size {tile.width}x{tile.height}, expected {TILE_SIZE}x{TILE_SIZE}"
        )

    if use_cache and cache is not None:
        cache.put(url, tile)
    return replace(tile, metadata={**tile.metadata, "source": "network"})


async def fetch_tiles(
    grid: TileGrid,
    provider: TileProvider,
    *,
    client: httpx.AsyncClient,
    cache: TileStore | None = None,
    use_cache: bool = True,
    max_concurrency: int | None = None,
    quiet: bool = False,
) -> List[RasterImage]:
    """Fetch every tile of ``grid``, returning them in grid order.

    At most ``max_concurrency`` requests are in flight. The first failure cancels
    the remaining fetches and propagates.
    """

    limit = max_concurrency or config.max_concurrency()
    semaphore = asyncio.Semaphore(max(1, limit))
    headers = _request_headers(provider)

    async def _bounded_fetch(coordinate: TileCoordinate) -> RasterImage:
        url = provider.tile_url(coordinate.x, coordinate.y, coordinate.z)
        async with semaphore:
            tile = await fetch_tile(
                client,
                url,
                cache=cache,
                use_cache=use_cache,
                headers=headers,
                quiet=quiet,
            )
        if tile.metadata.get("source") == "network":
            record_api_usage(provider.key, increment=1)
        tile.metadata.update(x=coordinate.x, y=coordinate.y, z=coordinate.z)
        return tile

    tasks = [asyncio.create_task(_bounded_fetch(coordinate)) for coordinate in grid]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def fetch_region(
    lon_range: Iterable[float | None],
    lat_range: Iterable[float | None],
    provider: TileProvider | TileProviderKey | str,
    use_cache: bool = True,
    zoom: int = DEFAULT_ZOOM,
    *,
    cache: TileStore | None = None,
    client: httpx.AsyncClient | None = None,
    max_concurrency: int | None = None,
    quiet: bool = False,
) -> RegionResult:
    """Fetch, stitch and crop the tiles covering a longitude/latitude box.

    ``lon_range`` and ``lat_range`` may be given in any order and may contain
    missing values. When ``use_cache`` is true, tiles are read from and written to
    ``cache`` (the configured on-disk cache by default).

    Example::

        houston = await fetch_region(
            (-95.80204, -94.92313), (29.38048, 30.14344), "stamen_terrain"
        )
        print(houston)
    """

    lon_range = list(lon_range)
    lat_range = list(lat_range)
    tile_provider = get_provider(provider)
    grid = enumerate_tiles(lon_range, lat_range, zoom)
    if zoom > tile_provider.max_zoom:
        logger.warning(
            "Zoom level %s exceeds the maximum of %s served by %s; tiles may be unavailable.",
            zoom,
            tile_provider.max_zoom,
            tile_provider.label,
        )
    lon, lat = normalize_bounds(lon_range, lat_range)

    if use_cache and cache is None:
        cache = get_tile_cache()

    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(
                httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT, follow_redirects=True)
            )
        tiles = await fetch_tiles(
            grid,
            tile_provider,
            client=client,
            cache=cache,
            use_cache=use_cache,
            max_concurrency=max_concurrency,
            quiet=quiet,
        )

    network_count = sum(1 for tile in tiles if tile.metadata.get("source") == "network")

    stitched = stitch_tiles(grid, tiles)
    cropped = crop_region(stitched, grid, lon_range, lat_range, zoom)
    cropped.metadata["provider"] = tile_provider.key
    cropped.metadata["attribution"] = tile_provider.attribution

    result = RegionResult(
        raster=cropped,
        bbox=BoundingBox.from_ranges(lon, lat),
        zoom=zoom,
        provider=tile_provider.key,
    )
    logger.info(
        "Assembled region from %s tiles (%s fetched over the network): %s",
        len(tiles),
        network_count,
        result.summary(),
    )
    return result


def _http_error_detail(response: httpx.Response) -> str:
    """Summarize an error response from a tile server."""

    header_detail = response.headers.get("statustext")
    if header_detail and header_detail.strip():
        return _short_error_detail(header_detail)

    content_type = response.headers.get("Content-Type", "").lower()
    content_length = len(response.content or b"")

    if "image" in content_type:
        return f"{content_type} payload ({content_length} bytes)"

    if "application/json" in content_type or "text/json" in content_type:
        try:
            payload = response.json()
        except ValueError:
            return _short_error_detail(response.text)
        if isinstance(payload, dict):
            for key in ("message", "error", "detail", "description"):
                value = payload.get(key)
                if isinstance(value, str) and value.strip():
                    return _short_error_detail(value)
        return _short_error_detail(str(payload))

    return _short_error_detail(response.text)


def _short_error_detail(detail: str) -> str:
    detail = detail.strip()
    if len(detail) > 160:
        return f"{detail[:157]}..."
    return detail or "(no detail)"


def _is_image_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("Content-Type", "")
    return "image" in content_type.lower()
