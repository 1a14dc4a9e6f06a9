from __future__ import annotations

import os
from pathlib import Path

import httpx

BASE_DIR = Path(__file__).resolve().parent.parent

DATA_DIR_ENV = "RASTERMAP_DATA_DIR"
CACHE_DIR_ENV = "RASTERMAP_CACHE_DIR"
DATABASE_URL_ENV = "RASTERMAP_DATABASE_URL"
REQUEST_DELAY_ENV = "RASTERMAP_REQUEST_DELAY"
MAX_CONCURRENCY_ENV = "RASTERMAP_MAX_CONCURRENCY"
USER_AGENT_ENV = "RASTERMAP_USER_AGENT"

DEFAULT_REQUEST_DELAY = 0.0
DEFAULT_MAX_CONCURRENCY = 4
DEFAULT_USER_AGENT = "rastermap/0.1.0"

REQUEST_TIMEOUT = httpx.Timeout(30.0)


def data_dir() -> Path:
    override = os.getenv(DATA_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return BASE_DIR / "data"


def cache_dir() -> Path:
    override = os.getenv(CACHE_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return data_dir() / "tile_cache"


def database_url() -> str:
    override = os.getenv(DATABASE_URL_ENV, "").strip()
    if override:
        return override
    return f"sqlite:///{data_dir() / 'rastermap.db'}"


def request_delay_seconds() -> float:
    raw_value = os.getenv(REQUEST_DELAY_ENV, "").strip()
    if not raw_value:
        return DEFAULT_REQUEST_DELAY
    try:
        delay = float(raw_value)
    except ValueError:
        return DEFAULT_REQUEST_DELAY
    return max(0.0, delay)


def max_concurrency() -> int:
    raw_value = os.getenv(MAX_CONCURRENCY_ENV, "").strip()
    if not raw_value:
        return DEFAULT_MAX_CONCURRENCY
    try:
        value = int(raw_value)
    except ValueError:
        return DEFAULT_MAX_CONCURRENCY
    if value < 1:
        return DEFAULT_MAX_CONCURRENCY
    return value


def user_agent() -> str:
    return os.getenv(USER_AGENT_ENV, "").strip() or DEFAULT_USER_AGENT
