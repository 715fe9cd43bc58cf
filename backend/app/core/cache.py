import logging
import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    In-memory key -> value map with per-entry expiry.

    Expired entries are only removed when they are read; there is no
    background sweep. Values are returned as stored, so callers must not
    mutate them. Two concurrent misses on the same key both go upstream and
    the later write wins.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._store: Dict[str, Tuple[T, float]] = {}

    def get(self, key: str) -> Optional[T]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            del self._store[key]
            return None
        logger.debug(f"Cache hit: {key}")
        return value

    def set(self, key: str, value: T, ttl_seconds: float) -> None:
        self._store[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
