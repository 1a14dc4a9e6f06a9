from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import Response
from sqlmodel import Session

from .database import get_session
from .services.errors import GridMismatch, TileUnavailable
from .services.imagery import DEFAULT_ZOOM, fetch_region
from .services.providers import PROVIDERS, TileProviderKey
from .services.region import RegionResult
from .services.usage import usage_summary

app = FastAPI(title="Slippy Map Region Fetcher", version="0.1.0")

logger = logging.getLogger(__name__)

DEFAULT_REGION_BOUNDS = {
    "north": 30.14344,
    "south": 29.38048,
    "west": -95.80204,
    "east": -94.92313,
}
DEFAULT_PROVIDER = TileProviderKey.OPENSTREETMAP
MAX_ZOOM = 18


def _region_payload(region: RegionResult) -> Dict[str, object]:
    return {
        "summary": region.summary(),
        "bbox": region.bbox.as_dict(),
        "width": region.width,
        "height": region.height,
        "zoom": region.zoom,
        "provider": region.provider,
        "attribution": region.raster.metadata.get("attribution", ""),
    }


async def _load_region(
    *,
    north: float,
    south: float,
    east: float,
    west: float,
    provider: TileProviderKey,
    zoom: int,
    cache: bool,
) -> RegionResult:
    try:
        return await fetch_region((west, east), (south, north), provider, use_cache=cache, zoom=zoom)
    except ValueError as exc:  # InvalidRange included
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TileUnavailable as exc:
        raise HTTPException(
            status_code=502, detail=f"Tile server request failed: {exc}"
        ) from exc
    except GridMismatch as exc:
        logger.exception("Region assembly failed: %s", exc)
        raise HTTPException(status_code=500, detail="Unable to assemble the requested region.") from exc


@app.get("/providers")
def list_providers() -> List[Dict[str, object]]:
    return [
        {
            "key": key.value,
            "label": provider.label,
            "attribution": provider.attribution,
            "max_zoom": provider.max_zoom,
        }
        for key, provider in PROVIDERS.items()
    ]


@app.get("/region")
async def get_region(
    north: float = Query(DEFAULT_REGION_BOUNDS["north"]),
    south: float = Query(DEFAULT_REGION_BOUNDS["south"]),
    east: float = Query(DEFAULT_REGION_BOUNDS["east"]),
    west: float = Query(DEFAULT_REGION_BOUNDS["west"]),
    provider: TileProviderKey = Query(DEFAULT_PROVIDER),
    zoom: int = Query(DEFAULT_ZOOM, ge=0, le=MAX_ZOOM),
    cache: bool = Query(True),
) -> Dict[str, object]:
    region = await _load_region(
        north=north, south=south, east=east, west=west, provider=provider, zoom=zoom, cache=cache
    )
    return _region_payload(region)


@app.get("/region.png")
async def get_region_png(
    north: float = Query(DEFAULT_REGION_BOUNDS["north"]),
    south: float = Query(DEFAULT_REGION_BOUNDS["south"]),
    east: float = Query(DEFAULT_REGION_BOUNDS["east"]),
    west: float = Query(DEFAULT_REGION_BOUNDS["west"]),
    provider: TileProviderKey = Query(DEFAULT_PROVIDER),
    zoom: int = Query(DEFAULT_ZOOM, ge=0, le=MAX_ZOOM),
    cache: bool = Query(True),
) -> Response:
    region = await _load_region(
        north=north, south=south, east=east, west=west, provider=provider, zoom=zoom, cache=cache
    )
    return Response(
        content=region.to_png(),
        media_type="image/png",
        headers={"X-Region-Summary": region.summary()},
    )


@app.get("/usage")
def get_usage(session: Session = Depends(get_session)) -> List[Dict[str, object]]:
    usage = usage_summary(session)
    for entry in usage:
        provider_key = str(entry["provider"])
        try:
            entry["provider_label"] = PROVIDERS[TileProviderKey(provider_key)].label
        except ValueError:
            entry["provider_label"] = provider_key
    return usage
