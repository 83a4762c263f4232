"""
Fixed-TTL response cache.

Purpose:
- Hold prepared GET responses keyed by resolved URI for a per-entry TTL.

Notes:
- Eviction is TTL-only; the store is unbounded in key count.
- Values are deep-copied on set and on get, so callers never share a
  cached object.
- Writes (POST/PUT/PATCH/DELETE) never invalidate entries. Callers that
  need consistency call RequestClient.delete_from_cache().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Protocol
import copy
import math
import time

from cachetools import TLRUCache

# Distinguishes "absent" from a cached None/""/{}.
MISSING: Any = object()


class CacheStore(Protocol):
    async def get(self, key: str) -> Any:
        ...

    async def set(self, key: str, value: Any, ttl: float) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheStore:
    """
    In-process store backed by cachetools.TLRUCache (per-entry TTL).
    """

    def __init__(self, *, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=math.inf, ttu=_time_to_use, timer=timer)

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> Any:
        entry = self._cache.get(key)
        return MISSING if entry is None else copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any, ttl: float) -> None:
        self._cache[key] = _Entry(copy.deepcopy(value), float(ttl))

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
