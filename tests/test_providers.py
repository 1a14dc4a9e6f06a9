import pytest

from rastermap.services.providers import PROVIDERS, TileProvider, TileProviderKey, get_provider


def test_every_bundled_provider_is_registered():
    assert set(PROVIDERS) == set(TileProviderKey)
    for key, provider in PROVIDERS.items():
        assert provider.key == key.value
        url = provider.tile_url(5, 11, 10)
        assert url.startswith("https://")
        assert "{" not in url


def test_lookup_by_key_string_and_instance():
    assert get_provider("openstreetmap") is PROVIDERS[TileProviderKey.OPENSTREETMAP]
    assert get_provider(TileProviderKey.STAMEN_TERRAIN).label.startswith("Stamen Terrain")
    custom = TileProvider.from_template("https://example.test/{z}/{x}/{y}.png")
    assert get_provider(custom) is custom


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError) as exc:
        get_provider("no_such_tiles")
    assert "Unsupported tile provider" in str(exc.value)


def test_openstreetmap_url_layout():
    provider = get_provider("openstreetmap")
    assert provider.tile_url(239, 422, 10) == "https://tile.openstreetmap.org/10/239/422.png"


def test_esri_swaps_row_and_column():
    provider = get_provider("esri_world_imagery")
    assert provider.tile_url(239, 422, 10).endswith("/tile/10/422/239")


def test_subdomains_rotate_with_tile_position():
    provider = get_provider("opentopomap")
    hosts = {provider.tile_url(x, 0, 4).split(".")[0] for x in range(3)}
    assert hosts == {"https://a", "https://b", "https://c"}


def test_templates_need_every_placeholder():
    with pytest.raises(ValueError):
        TileProvider.from_template("https://example.test/{z}/{x}.png")


def test_subdomain_placeholder_without_subdomains_fails():
    provider = TileProvider.from_template("https://{s}.example.test/{z}/{x}/{y}.png")
    with pytest.raises(ValueError):
        provider.tile_url(0, 0, 0)
