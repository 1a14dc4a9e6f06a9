from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class TileProviderKey(str, Enum):
    """Identifiers for the bundled slippy-map tile servers."""

    OPENSTREETMAP = "openstreetmap"
    OPENTOPOMAP = "opentopomap"
    ESRI_WORLD_IMAGERY = "esri_world_imagery"
    CARTO_POSITRON = "carto_positron"
    STAMEN_TERRAIN = "stamen_terrain"
    STAMEN_TONER = "stamen_toner"


@dataclass(frozen=True)
class TileProvider:
    """A tile server addressed by ``{z}``/``{x}``/``{y}`` (and optional ``{s}``) placeholders."""

    key: str
    label: str
    url_template: str
    attribution: str = ""
    max_zoom: int = 18
    subdomains: Tuple[str, ...] = ()
    headers: Dict[str, str] = field(default_factory=dict)

    def tile_url(self, x: int, y: int, z: int) -> str:
        values = {"x": x, "y": y, "z": z}
        if "{s}" in self.url_template:
            if not self.subdomains:
                raise ValueError(f"Provider {self.key} uses {{s}} but defines no subdomains.")
            values["s"] = self.subdomains[(x + y) % len(self.subdomains)]
        return self.url_template.format(**values)

    @classmethod
    def from_template(
        cls,
        url_template: str,
        *,
        key: str = "custom",
        label: str | None = None,
        attribution: str = "",
        max_zoom: int = 18,
        subdomains: Tuple[str, ...] = (),
    ) -> "TileProvider":
        for placeholder in ("{x}", "{y}", "{z}"):
            if placeholder not in url_template:
                raise ValueError(f"Tile URL template is missing the {placeholder} placeholder.")
        return cls(
            key=key,
            label=label or key,
            url_template=url_template,
            attribution=attribution,
            max_zoom=max_zoom,
            subdomains=tuple(subdomains),
        )


PROVIDERS: Dict[TileProviderKey, TileProvider] = {
    TileProviderKey.OPENSTREETMAP: TileProvider(
        key=TileProviderKey.OPENSTREETMAP.value,
        label="OpenStreetMap",
        url_template="https://tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors",
        max_zoom=19,
    ),
    TileProviderKey.OPENTOPOMAP: TileProvider(
        key=TileProviderKey.OPENTOPOMAP.value,
        label="OpenTopoMap",
        url_template="https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap, © SRTM, © OpenTopoMap",
        max_zoom=17,
        subdomains=("a", "b", "c"),
    ),
    # Esri orders the path as z/y/x.
    TileProviderKey.ESRI_WORLD_IMAGERY: TileProvider(
        key=TileProviderKey.ESRI_WORLD_IMAGERY.value,
        label="Esri World Imagery",
        url_template=(
            "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
        ),
        attribution="© Esri, Maxar, Earthstar Geographics",
        max_zoom=19,
    ),
    TileProviderKey.CARTO_POSITRON: TileProvider(
        key=TileProviderKey.CARTO_POSITRON.value,
        label="CARTO Positron",
        url_template="https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap, © CARTO",
        max_zoom=19,
        subdomains=("a", "b", "c", "d"),
    ),
    TileProviderKey.STAMEN_TERRAIN: TileProvider(
        key=TileProviderKey.STAMEN_TERRAIN.value,
        label="Stamen Terrain (Stadia)",
        url_template="https://tiles.stadiamaps.com/tiles/stamen_terrain/{z}/{x}/{y}.png",
        attribution="© Stamen Design, © Stadia Maps, © OpenStreetMap",
        max_zoom=18,
    ),
    TileProviderKey.STAMEN_TONER: TileProvider(
        key=TileProviderKey.STAMEN_TONER.value,
        label="Stamen Toner (Stadia)",
        url_template="https://tiles.stadiamaps.com/tiles/stamen_toner/{z}/{x}/{y}.png",
        attribution="© Stamen Design, © Stadia Maps, © OpenStreetMap",
        max_zoom=18,
    ),
}


def get_provider(provider: TileProvider | TileProviderKey | str) -> TileProvider:
    if isinstance(provider, TileProvider):
        return provider
    try:
        key = TileProviderKey(provider)
    except ValueError as exc:
        raise ValueError(f"Unsupported tile provider: {provider}") from exc
    return PROVIDERS[key]
