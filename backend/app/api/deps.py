from typing import Any, Awaitable, Callable

from fastapi import Request

from app.core.cache import TTLCache
from app.services.nasa_api import NasaClient

# Longest look-back window a query may ask for
MAX_DAYS = 3650


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_nasa(request: Request) -> NasaClient:
    return request.app.state.nasa


def cache_key(request: Request) -> str:
    """Path plus raw query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def cached(cache: TTLCache, key: str, ttl_seconds: float, fetch: Callable[[], Awaitable[Any]]) -> Any:
    """Read-through helper: return a fresh hit or fetch, store and return."""
    hit = cache.get(key)
    if hit is not None:
        return hit
    value = await fetch()
    cache.set(key, value, ttl_seconds)
    return value
