# catalog_admin/core/cache.py
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from cachetools import TLRUCache

from catalog_admin.core.config import settings

T = TypeVar("T")

CATALOG_SNAPSHOT_KEY = "products_initial"


@dataclass
class CacheEntry(Generic[T]):
    payload: T
    ttl: float


def _expires_at(key: str, entry: CacheEntry[Any], now: float) -> float:
    # an entry is still live when exactly `ttl` seconds have passed
    return math.nextafter(now + entry.ttl, math.inf)


class ResultCache:
    """Time-boxed in-process memoization over a cachetools `TLRUCache`.

    Each entry carries its own TTL. Nothing is swept in the background: an
    expired entry reads as absent, and expired entries are dropped by the
    access that finds one missing or by the next write. Instances are created
    explicitly and handed to the engines that need them, so tests can pass a
    fake clock.
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        maxsize: Optional[int] = None,
    ):
        self.default_ttl = default_ttl if default_ttl is not None else settings.CACHE_DEFAULT_TTL_SECONDS
        self._entries: TLRUCache = TLRUCache(
            maxsize=maxsize or settings.CACHE_MAX_ENTRIES,
            ttu=_expires_at,
            timer=clock,
        )

    def _live_entry(self, key: str) -> Optional[CacheEntry[Any]]:
        entry = self._entries.get(key)
        if entry is None:
            self._entries.expire()
        return entry

    def get(self, key: str) -> Optional[Any]:
        entry = self._live_entry(key)
        return entry.payload if entry is not None else None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self._entries[key] = CacheEntry(payload=value, ttl=ttl if ttl is not None else self.default_ttl)

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)
